"""Data models for todoi."""

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator


@dataclass
class Task:
    """Represents an item fetched from the task tracker."""

    id: str
    title: str
    url: str | None = None
    description: str = ""
    scheduled: bool = False
    subtask_count: int = 0
    labels: list[str] = field(default_factory=list)

    @property
    def is_eligible(self) -> bool:
        """Only unscheduled tasks without sub-items that carry a URL are imported."""
        return not self.scheduled and self.subtask_count == 0 and bool(self.url and self.url.strip())


@dataclass(frozen=True)
class TagRule:
    """A keyword (or regular expression) and the tags it contributes."""

    keyword: str
    tags: tuple[str, ...]
    regex: bool = False

    def __post_init__(self) -> None:
        if not self.keyword:
            raise ValueError("Tag rule keyword must not be empty")
        if self.regex:
            try:
                re.compile(self.keyword)
            except re.error as e:
                raise ValueError(f"Invalid tag rule pattern {self.keyword!r}: {e}") from e
        object.__setattr__(self, "tags", tuple(self.tags))


@dataclass(frozen=True)
class SourceRule:
    """Maps a URL substring to a source name."""

    pattern: str
    source: str

    def __post_init__(self) -> None:
        if not self.pattern:
            raise ValueError("Source rule pattern must not be empty")


@dataclass(frozen=True)
class ChannelRule:
    """Tags contributed by every video of a YouTube channel (or every article of an author)."""

    channel: str
    tags: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.channel:
            raise ValueError("Channel rule channel must not be empty")
        object.__setattr__(self, "tags", tuple(self.tags))


class UrlClass(Enum):
    """Classification of a task URL."""

    YOUTUBE = "youtube"
    YOUTUBE_PLAYLIST = "youtube-playlist"
    STRONGER_BY_SCIENCE = "stronger-by-science"
    GENERIC = "generic"


@dataclass(frozen=True)
class Template:
    """A named note blueprint loaded from the template directory."""

    name: str
    text: str
    path: Path | None = None


@dataclass(frozen=True)
class NoteMetadata:
    """Details looked up for a URL before rendering.

    Fields that could not be determined are empty strings.
    """

    video_title: str = ""
    channel: str = ""
    author: str = ""
    article_title: str = ""
    embed: str = ""
    tags: frozenset[str] = frozenset()


@dataclass(frozen=True)
class RenderedNote:
    """Note content ready to be persisted."""

    title: str
    tags: frozenset[str]
    url: str
    body: str
    template: str = ""


@dataclass(frozen=True)
class PersistenceRef:
    """Where a backend put a note."""

    backend: str
    path: Path
    block_index: int | None = None
    link_target: str | None = None

    def __str__(self) -> str:
        if self.block_index is not None:
            return f"{self.path}#block-{self.block_index}"
        return str(self.path)


class ImportStatus(Enum):
    """Outcome of importing a single task."""

    PERSISTED = "persisted"
    SKIPPED = "skipped"
    PARTIAL = "partial"
    FAILED = "failed"
    UNPROCESSED = "unprocessed"


@dataclass
class ImportRecord:
    """One row per task seen by a pipeline run."""

    task_id: str
    status: ImportStatus
    ref: PersistenceRef | None = None
    template: str | None = None
    completed: bool = False
    completion_failed: bool = False
    reason: str = ""


@dataclass
class ImportRun:
    """Result of a pipeline run."""

    records: list[ImportRecord] = field(default_factory=list)
    aborted: bool = False
    abort_reason: str = ""

    def __iter__(self) -> Iterator[ImportRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def with_status(self, status: ImportStatus) -> list[ImportRecord]:
        """Return the records that ended in the given status."""
        return [record for record in self.records if record.status == status]

    def summary(self) -> dict[str, int]:
        """Count records per status, plus completion-marking failures."""
        counts = Counter(record.status.value for record in self.records)
        result = {status.value: counts.get(status.value, 0) for status in ImportStatus}
        result["marking_failed"] = sum(1 for record in self.records if record.completion_failed)
        return result
