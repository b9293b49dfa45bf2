"""Configuration management for todoi using YAML files."""

from pathlib import Path
from typing import Any

import structlog
import yaml

from todoi.models import ChannelRule, SourceRule, TagRule

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".todoi"
TAG_RULES_KEY = "tag_rules"
SOURCE_RULES_KEY = "source_rules"
CHANNEL_RULES_KEY = "channel_rules"

BACKENDS = ("logseq", "zk", "obsidian")

# Settings editable with `todoi config`; rule lists have their own commands
KNOWN_KEYS = {
    "backend": "Note backend: logseq, zk or obsidian (default logseq)",
    "logseq.root": "Root directory of the LogSeq graph",
    "zk.root": "Root directory of the zk notebook",
    "zk.notes_dir": "Directory new zk notes are created in, relative to zk.root",
    "zk.journal_dir": "Daily journal directory, relative to zk.root (default journal/daily)",
    "obsidian.root": "Root directory of the Obsidian vault",
    "templates.dir": "Template directory (default depends on the backend)",
    "todoist.token": "Todoist API token (or TODOIST_API_TOKEN)",
    "youtube.api_key": "YouTube Data API key (or YOUTUBE_API_KEY)",
}
PATH_KEYS = ("logseq.root", "zk.root", "obsidian.root", "templates.dir")
SECRET_KEYS = ("todoist.token", "youtube.api_key")
RULE_COMMANDS = {TAG_RULES_KEY: "tags", SOURCE_RULES_KEY: "sources", CHANNEL_RULES_KEY: "channels"}


class Config:
    """Configuration manager using YAML file storage.

    Supports both local (directory-level) and global (user-level) configuration.
    Local config is stored in .todoi/config.yaml in the current directory.
    Global config is stored in ~/.todoi/config.yaml.

    When reading, values are looked up in local config first, then global config.
    """

    def __init__(self, use_global: bool = False, config_dir: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            use_global: If True, use global config only. If False, use local config with global fallback.
            config_dir: Custom directory to store config file (overrides use_global)
        """
        if config_dir is not None:
            self.config_dir = Path(config_dir)
            self.is_global = use_global
        elif use_global:
            self.config_dir = Path.home() / CONFIG_DIR_NAME
            self.is_global = True
        else:
            self.config_dir = Path.cwd() / CONFIG_DIR_NAME
            self.is_global = False

        self.config_file = self.config_dir / "config.yaml"
        self._config: dict[str, Any] = self._load()

        # Local config falls back to the global file
        self._global_config: dict[str, Any] = {}
        if not self.is_global:
            global_config_file = Path.home() / CONFIG_DIR_NAME / "config.yaml"
            if global_config_file.exists() and global_config_file != self.config_file:
                try:
                    with open(global_config_file, "r") as f:
                        self._global_config = yaml.safe_load(f) or {}
                except (OSError, yaml.YAMLError) as e:
                    logger.warning("Failed to load global config", error=str(e))

        logger.debug("Config initialized", config_file=str(self.config_file), is_global=self.is_global)

    def _load(self) -> dict[str, Any]:
        """Load configuration from YAML file.

        Returns:
            Configuration dictionary
        """
        if not self.config_file.exists():
            logger.debug("Config file does not exist, initializing empty config")
            return {}

        try:
            with open(self.config_file, "r") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config", error=str(e))
            raise ValueError(f"Failed to load config from {self.config_file}: {e}") from e

        if not isinstance(config, dict):
            raise ValueError(f"Config file {self.config_file} must contain a mapping")
        logger.debug("Config loaded successfully", keys=list(config.keys()))
        return config

    def _save(self) -> None:
        """Save configuration to YAML file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
            logger.debug("Config saved successfully")
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to save config", error=str(e))
            raise ValueError(f"Failed to save config to {self.config_file}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value.

        For local config, checks local config first, then falls back to global config.
        """
        if key in self._config:
            logger.debug("Getting config value from local", key=key)
            return self._config[key]

        if not self.is_global and key in self._global_config:
            logger.debug("Getting config value from global", key=key)
            return self._global_config[key]

        logger.debug("Config value not found", key=key)
        return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        logger.debug("Setting config value", key=key)
        self._config[key] = value
        self._save()

    def unset(self, key: str) -> None:
        """Remove a configuration value."""
        logger.debug("Unsetting config value", key=key)
        if key in self._config:
            del self._config[key]
            self._save()

    def list(self) -> dict[str, Any]:
        """List all configuration settings.

        For local config, merges global config with local config (local takes precedence).
        """
        if self.is_global:
            return self._config.copy()
        merged = self._global_config.copy()
        merged.update(self._config)
        return merged


def get_config(use_global: bool = False) -> Config:
    """Get a configuration instance.

    Args:
        use_global: If True, return global config. If False, return local config with global fallback.
    """
    return Config(use_global=use_global)


def _tag_list(value: Any) -> list[str]:
    if not value:
        return []
    return [value] if isinstance(value, str) else list(value)


def load_tag_rules(config: Config) -> list[TagRule]:
    """Read the ordered tag rules from config.

    Raises:
        ValueError: A rule entry is malformed.
    """
    rules = []
    for entry in config.get(TAG_RULES_KEY) or []:
        if not isinstance(entry, dict) or "keyword" not in entry:
            raise ValueError(f"Invalid tag rule entry: {entry!r}")
        rule = TagRule(
            keyword=str(entry["keyword"]),
            tags=tuple(str(t) for t in _tag_list(entry.get("tags"))),
            regex=bool(entry.get("regex", False)),
        )
        rules.append(rule)
    logger.debug("Loaded tag rules", count=len(rules))
    return rules


def load_source_rules(config: Config) -> list[SourceRule]:
    """Read the ordered source rules from config."""
    rules = []
    for entry in config.get(SOURCE_RULES_KEY) or []:
        if not isinstance(entry, dict) or "pattern" not in entry or "source" not in entry:
            raise ValueError(f"Invalid source rule entry: {entry!r}")
        rules.append(SourceRule(pattern=str(entry["pattern"]), source=str(entry["source"])))
    return rules


def add_tag_rule(config: Config, rule: TagRule) -> None:
    """Append a tag rule, merging its tags into an existing rule for the same keyword."""
    entries = [dict(entry) for entry in config.get(TAG_RULES_KEY) or []]
    for entry in entries:
        if entry.get("keyword") == rule.keyword and bool(entry.get("regex", False)) == rule.regex:
            existing = _tag_list(entry.get("tags"))
            entry["tags"] = existing + [t for t in rule.tags if t not in existing]
            break
    else:
        entry = {"keyword": rule.keyword, "tags": list(rule.tags)}
        if rule.regex:
            entry["regex"] = True
        entries.append(entry)
    config.set(TAG_RULES_KEY, entries)


def remove_tag_rule(config: Config, keyword: str) -> bool:
    """Remove all tag rules for keyword. Returns False if there were none."""
    entries = [dict(entry) for entry in config.get(TAG_RULES_KEY) or []]
    remaining = [entry for entry in entries if entry.get("keyword") != keyword]
    if len(remaining) == len(entries):
        return False
    config.set(TAG_RULES_KEY, remaining)
    return True


def add_source_rule(config: Config, rule: SourceRule) -> None:
    """Append a source rule."""
    entries = [dict(entry) for entry in config.get(SOURCE_RULES_KEY) or []]
    entries.append({"pattern": rule.pattern, "source": rule.source})
    config.set(SOURCE_RULES_KEY, entries)


def remove_source_rule(config: Config, pattern: str) -> bool:
    """Remove all source rules for pattern. Returns False if there were none."""
    entries = [dict(entry) for entry in config.get(SOURCE_RULES_KEY) or []]
    remaining = [entry for entry in entries if entry.get("pattern") != pattern]
    if len(remaining) == len(entries):
        return False
    config.set(SOURCE_RULES_KEY, remaining)
    return True


def load_channel_rules(config: Config) -> list[ChannelRule]:
    """Read the channel (or author) tag rules from config."""
    rules = []
    for entry in config.get(CHANNEL_RULES_KEY) or []:
        if not isinstance(entry, dict) or "channel" not in entry:
            raise ValueError(f"Invalid channel rule entry: {entry!r}")
        tags = tuple(str(t) for t in _tag_list(entry.get("tags")))
        rules.append(ChannelRule(channel=str(entry["channel"]), tags=tags))
    return rules


def add_channel_rule(config: Config, rule: ChannelRule) -> None:
    """Add tags for a channel, merging them into an existing rule for the same channel."""
    entries = [dict(entry) for entry in config.get(CHANNEL_RULES_KEY) or []]
    for entry in entries:
        if entry.get("channel") == rule.channel:
            existing = _tag_list(entry.get("tags"))
            entry["tags"] = existing + [t for t in rule.tags if t not in existing]
            break
    else:
        entries.append({"channel": rule.channel, "tags": list(rule.tags)})
    config.set(CHANNEL_RULES_KEY, entries)


def remove_channel_rule(config: Config, channel: str) -> bool:
    """Remove the rule for channel. Returns False if there was none."""
    entries = [dict(entry) for entry in config.get(CHANNEL_RULES_KEY) or []]
    remaining = [entry for entry in entries if entry.get("channel") != channel]
    if len(remaining) == len(entries):
        return False
    config.set(CHANNEL_RULES_KEY, remaining)
    return True
