"""zk backend: one file per note, linked from the daily journal note."""

import os
import re
import unicodedata
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path

import structlog

from todoi.backend import NoteBackend, TagSyntax
from todoi.exceptions import BackendIOError, PartialPersistence
from todoi.models import PersistenceRef, RenderedNote

logger = structlog.get_logger()

JOURNAL_FILE_FORMAT = "%Y-%m-%d.md"
MAX_SLUG_LENGTH = 60


def slugify(title: str) -> str:
    """Lowercase ASCII slug of a title, "note" when nothing is left."""
    text = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9]+", "-", text).strip("-").lower()
    return text[:MAX_SLUG_LENGTH].rstrip("-") or "note"


class ZkBackend(NoteBackend):
    """zk notebook backend.

    Persisting is a two-step operation: the note file is created and synced to
    disk first, then a link to it is appended to the daily journal note. If the
    second step fails the created note is kept and PartialPersistence is raised,
    so the link can be added later with link_note().
    """

    name = "zk"

    def __init__(
        self,
        notebook_root: Path | str,
        notes_dir: str = "",
        journal_dir: str = "journal/daily",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize zk backend.

        Args:
            notebook_root: Root directory of the zk notebook (contains .zk/)
            notes_dir: Directory, relative to the root, new notes are created in
            journal_dir: Directory, relative to the root, holding the daily notes
            clock: Callable returning the current datetime, used to name notes
        """
        super().__init__(notebook_root)
        self.notes_dir = self.root / notes_dir
        self.journal_dir = self.root / journal_dir
        self.clock = clock
        logger.debug(
            "Initializing zk backend",
            notebook_root=str(self.root),
            notes_dir=str(self.notes_dir),
            journal_dir=str(self.journal_dir),
        )

    def tag_syntax(self) -> TagSyntax:
        return TagSyntax(separator=", ", open="[", close="]")

    def default_template_dir(self) -> Path:
        return self.root / ".zk" / "templates"

    def journal_path(self, journal_date: date) -> Path:
        """Return the daily note for a day."""
        return self.journal_dir / journal_date.strftime(JOURNAL_FILE_FORMAT)

    def note_path(self, title: str) -> Path:
        """Return a path for a new note that does not exist yet."""
        stem = f"{slugify(title)}-{self.clock():%Y%m%d%H%M%S}"
        path = self.notes_dir / f"{stem}.md"
        counter = 2
        while path.exists():
            path = self.notes_dir / f"{stem}-{counter}.md"
            counter += 1
        return path

    def link_target(self, note_path: Path) -> str:
        """Return the link target of a note as seen from the journal directory."""
        return Path(os.path.relpath(note_path, self.journal_dir)).as_posix()

    def create_note(self, note: RenderedNote) -> Path:
        """Write the note body to a new file and sync it to disk."""
        path = self.note_path(note.title)
        logger.info("Creating zk note", path=str(path), title=note.title)
        created = False
        try:
            with open(path, "x", encoding="utf-8") as f:
                created = True
                f.write(note.body)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            logger.error("Failed to create zk note", path=str(path), error=str(e))
            if created:
                path.unlink(missing_ok=True)
            raise BackendIOError(f"Could not create {path}: {e}") from e
        return path

    def link_note(self, note_path: Path, title: str, journal_date: date) -> str:
        """Append a link to note_path to the daily journal note.

        Raises:
            OSError: The journal could not be written.
        """
        journal = self.journal_path(journal_date)
        target = self.link_target(note_path)
        line = f"- [{title}]({target})\n"
        logger.info("Linking zk note from journal", journal=str(journal), target=target)

        if not self.journal_dir.is_dir():
            raise FileNotFoundError(f"zk journal directory {self.journal_dir} does not exist")

        existing = journal.read_bytes() if journal.exists() else b""
        if existing and not existing.endswith(b"\n"):
            line = "\n" + line
        with open(journal, "a", encoding="utf-8") as f:
            f.write(line)
        return target

    def persist(self, note: RenderedNote, journal_date: date) -> PersistenceRef:
        """Create the note file, then link it from the journal of journal_date."""
        path = self.create_note(note)
        try:
            target = self.link_note(path, note.title, journal_date)
        except OSError as e:
            logger.warning("Created zk note but could not link it", path=str(path), error=str(e))
            raise PartialPersistence(path, e) from e

        return PersistenceRef(backend=self.name, path=path, link_target=target)
