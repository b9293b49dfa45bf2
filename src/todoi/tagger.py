"""Keyword based tagging of task text."""

import re
from collections.abc import Iterable, Sequence

import structlog

from todoi.models import ChannelRule, SourceRule, TagRule

logger = structlog.get_logger()


def _matches(rule: TagRule, text: str) -> bool:
    if rule.regex:
        return re.search(rule.keyword, text, re.IGNORECASE) is not None
    return rule.keyword.casefold() in text.casefold()


def tag(text: str, rules: Sequence[TagRule]) -> set[str]:
    """Return the union of the tags of every rule whose keyword occurs in text.

    Rules are evaluated in order and none of them stops the evaluation of the
    others, so overlapping rules accumulate.
    """
    tags: set[str] = set()
    if not text:
        return tags

    for rule in rules:
        if _matches(rule, text):
            logger.debug("Tag rule matched", keyword=rule.keyword, tags=rule.tags)
            tags.update(rule.tags)

    return tags


def sources(url: str, rules: Iterable[SourceRule]) -> list[str]:
    """Return the source names whose pattern occurs in the URL, in rule order."""
    result: list[str] = []
    if not url:
        return result

    lowered = url.casefold()
    for rule in rules:
        if rule.pattern.casefold() in lowered and rule.source not in result:
            result.append(rule.source)
    return result


def channel_tags(name: str, rules: Iterable[ChannelRule]) -> set[str]:
    """Return the tags of every rule naming this channel or author, ignoring case."""
    tags: set[str] = set()
    if not name:
        return tags

    wanted = name.strip().casefold()
    for rule in rules:
        if rule.channel.strip().casefold() == wanted:
            logger.debug("Channel rule matched", channel=rule.channel, tags=rule.tags)
            tags.update(rule.tags)
    return tags
