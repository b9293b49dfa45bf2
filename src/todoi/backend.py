"""Backend interface for note stores."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import structlog

from todoi.exceptions import BackendIOError
from todoi.models import PersistenceRef, RenderedNote

logger = structlog.get_logger()

# Characters that continue a URL; a stored URL followed by one of them is a different URL.
URL_CONTINUATION = r"[\w/?#&=%~+@:-]|\.[\w/]"


def url_pattern(url: str) -> re.Pattern[str]:
    """Match url as a whole token, not as the prefix of a longer URL."""
    return re.compile(rf"(?<![\w/]){re.escape(url)}(?!{URL_CONTINUATION})")


@dataclass(frozen=True)
class TagSyntax:
    """How a note system writes a list of tags."""

    prefix: str = ""
    separator: str = ", "
    open: str = ""
    close: str = ""
    space: str | None = None
    multiword_open: str = ""
    multiword_close: str = ""

    def format_tag(self, tag: str) -> str:
        """Format a single tag."""
        if self.space is not None:
            tag = tag.replace(" ", self.space)
        if " " in tag and self.multiword_open:
            tag = f"{self.multiword_open}{tag}{self.multiword_close}"
        return f"{self.prefix}{tag}"

    def format(self, tags: Iterable[str]) -> str:
        """Format tags in sorted order."""
        formatted = self.separator.join(self.format_tag(t) for t in sorted(tags))
        return f"{self.open}{formatted}{self.close}"


class NoteBackend(ABC):
    """Abstract base class for note storage backends."""

    name: str = ""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()

    @abstractmethod
    def tag_syntax(self) -> TagSyntax:
        """Return the native tag convention of the note system."""
        pass

    @abstractmethod
    def default_template_dir(self) -> Path:
        """Return the directory templates are read from when none is configured."""
        pass

    @abstractmethod
    def persist(self, note: RenderedNote, journal_date: date) -> PersistenceRef:
        """Persist a rendered note.

        Raises:
            BackendIOError: The underlying storage failed.
        """
        pass

    def validate(self) -> None:
        """Check the store can be written to before a run starts."""
        if not self.root.is_dir():
            raise BackendIOError(f"{self.name} root {self.root} does not exist")

    def contains_url(self, url: str) -> bool:
        """Return True if any markdown file in the store already mentions url as a whole URL."""
        if not url or not self.root.is_dir():
            return False

        pattern = url_pattern(url)
        for path in self.root.rglob("*.md"):
            if any(part.startswith(".") for part in path.relative_to(self.root).parts):
                continue
            try:
                if pattern.search(path.read_text(encoding="utf-8", errors="replace")):
                    logger.debug("Found existing url", url=url, path=str(path))
                    return True
            except OSError as e:
                logger.warning("Could not read note while checking for duplicates", path=str(path), error=str(e))
        return False
