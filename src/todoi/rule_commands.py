"""Tag, source and channel rule commands for todoi CLI."""

from cyclopts import App

from todoi.config import (
    add_channel_rule,
    add_source_rule,
    add_tag_rule,
    get_config,
    load_channel_rules,
    load_source_rules,
    load_tag_rules,
    remove_channel_rule,
    remove_source_rule,
    remove_tag_rule,
)
from todoi.models import ChannelRule, SourceRule, TagRule

tags_app = App(name="tags", help="Manage keyword tag rules")
sources_app = App(name="sources", help="Manage URL source rules")
channels_app = App(name="channels", help="Manage YouTube channel and author tag rules")


@tags_app.command
def add(keyword: str, *tags: str, regex: bool = False, global_: bool = False) -> None:
    """Add tags for a keyword. Matching is case-insensitive.

    Args:
        keyword: Keyword (or regular expression with --regex) to look for in task titles and URLs
        tags: Tags contributed when the keyword matches
        regex: Treat keyword as a regular expression
        global_: If True, store in global config. If False, store in local config.
    """
    if not tags:
        raise ValueError("At least one tag is required")
    config = get_config(use_global=global_)
    add_tag_rule(config, TagRule(keyword=keyword, tags=tags, regex=regex))
    print(f"Added {keyword} -> {', '.join(tags)}")


@tags_app.command
def remove(keyword: str, global_: bool = False) -> None:
    """Remove the tag rules for a keyword."""
    config = get_config(use_global=global_)
    if remove_tag_rule(config, keyword):
        print(f"Removed tag rules for {keyword}")
    else:
        print(f"No tag rules for {keyword}")


@tags_app.command(name="list")
def list_tags(global_: bool = False) -> None:
    """List tag rules in evaluation order."""
    rules = load_tag_rules(get_config(use_global=global_))

    if not rules:
        print("No tag rules")
        return

    for rule in rules:
        kind = " (regex)" if rule.regex else ""
        print(f"{rule.keyword}{kind} -> {', '.join(rule.tags)}")


@sources_app.command(name="add")
def add_source(pattern: str, source: str, global_: bool = False) -> None:
    """Add a source name for URLs containing pattern."""
    config = get_config(use_global=global_)
    add_source_rule(config, SourceRule(pattern=pattern, source=source))
    print(f"Added {pattern} -> {source}")


@sources_app.command(name="remove")
def remove_source(pattern: str, global_: bool = False) -> None:
    """Remove the source rules for a pattern."""
    config = get_config(use_global=global_)
    if remove_source_rule(config, pattern):
        print(f"Removed source rules for {pattern}")
    else:
        print(f"No source rules for {pattern}")


@sources_app.command(name="list")
def list_sources(global_: bool = False) -> None:
    """List source rules."""
    rules = load_source_rules(get_config(use_global=global_))

    if not rules:
        print("No source rules")
        return

    for rule in rules:
        print(f"{rule.pattern} -> {rule.source}")


@channels_app.command(name="add")
def add_channel(channel: str, *tags: str, global_: bool = False) -> None:
    """Add tags for every video of a YouTube channel or article of an author.

    Args:
        channel: Channel or author name, as reported by YouTube or the article page
        tags: Tags contributed by the channel
        global_: If True, store in global config. If False, store in local config.
    """
    if not tags:
        raise ValueError("At least one tag is required")
    config = get_config(use_global=global_)
    add_channel_rule(config, ChannelRule(channel=channel, tags=tags))
    print(f"Added {channel} -> {', '.join(tags)}")


@channels_app.command(name="remove")
def remove_channel(channel: str, global_: bool = False) -> None:
    """Remove the tag rule for a channel."""
    config = get_config(use_global=global_)
    if remove_channel_rule(config, channel):
        print(f"Removed channel rule for {channel}")
    else:
        print(f"No channel rule for {channel}")


@channels_app.command(name="list")
def list_channels(global_: bool = False) -> None:
    """List channel tag rules."""
    rules = load_channel_rules(get_config(use_global=global_))

    if not rules:
        print("No channel rules")
        return

    for rule in rules:
        print(f"{rule.channel} -> {', '.join(rule.tags)}")
