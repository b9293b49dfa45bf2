"""Configuration commands for todoi CLI."""

from pathlib import Path
from typing import Any

import structlog
from cyclopts import App

from todoi.config import BACKENDS, KNOWN_KEYS, PATH_KEYS, RULE_COMMANDS, SECRET_KEYS, get_config

logger = structlog.get_logger()

config_app = App(name="config", help="Manage configuration")


def _scope(global_: bool) -> str:
    return "global" if global_ else "local"


def mask(key: str, value: Any) -> str:
    """Hide all but the last four characters of secrets."""
    text = str(value)
    if key not in SECRET_KEYS:
        return text
    return "*" * max(len(text) - 4, 4) + text[-4:]


def check_key(key: str) -> None:
    """Reject keys that are not plain settings.

    Raises:
        ValueError: The key is a rule list or is unknown.
    """
    if key in RULE_COMMANDS:
        raise ValueError(f"{key} is edited with: todoi {RULE_COMMANDS[key]} add|remove|list")
    if key not in KNOWN_KEYS:
        raise ValueError(f"Unknown configuration key: {key}. Known keys: {', '.join(KNOWN_KEYS)}")


def normalize(key: str, value: str) -> str:
    """Validate a value for key, returning the value to store."""
    if key == "backend" and value not in BACKENDS:
        raise ValueError(f"Unknown backend: {value}. Choose one of: {', '.join(BACKENDS)}")
    if key in PATH_KEYS:
        path = Path(value).expanduser().resolve()
        if not path.is_dir():
            logger.warning("Configured directory does not exist", key=key, path=str(path))
            print(f"Warning: {path} is not a directory")
        return str(path)
    return value


@config_app.command
def set(key: str, value: str, global_: bool = False) -> None:
    """Set a configuration setting.

    Directories are stored as absolute paths.

    Args:
        key: Configuration key, e.g. backend, zk.root or todoist.token (see `todoi config keys`)
        value: Configuration value
        global_: If True, set in global config. If False, set in local config.
    """
    check_key(key)
    value = normalize(key, value)
    get_config(use_global=global_).set(key, value)
    print(f"Set {key} = {mask(key, value)} ({_scope(global_)})")


@config_app.command
def unset(key: str, global_: bool = False) -> None:
    """Unset a configuration setting.

    Args:
        key: Configuration key
        global_: If True, unset from global config. If False, unset from local config.
    """
    check_key(key)
    get_config(use_global=global_).unset(key)
    print(f"Unset {key} ({_scope(global_)})")


@config_app.command
def get(key: str, global_: bool = False) -> None:
    """Get the value of a configuration setting."""
    value = get_config(use_global=global_).get(key)
    if value is None:
        print(f"{key} is not set")
    else:
        print(f"{key} = {mask(key, value)}")


@config_app.command(name="list")
def list_config(global_: bool = False) -> None:
    """List configuration settings. Rule lists are shown by their own commands."""
    settings = {k: v for k, v in get_config(use_global=global_).list().items() if k not in RULE_COMMANDS}

    if not settings:
        print(f"No {_scope(global_)} configuration settings")
        return

    print(f"{'Global' if global_ else 'Configuration'} settings:\n")
    for key, value in settings.items():
        print(f"{key} = {mask(key, value)}")


@config_app.command(name="keys")
def list_keys() -> None:
    """List the known configuration keys."""
    width = max(len(key) for key in KNOWN_KEYS)
    for key, description in KNOWN_KEYS.items():
        print(f"{key:<{width}}  {description}")
