"""LogSeq backend: notes become blocks in the day's journal page."""

from datetime import date
from pathlib import Path

import structlog

from todoi.backend import NoteBackend, TagSyntax
from todoi.exceptions import BackendIOError
from todoi.models import PersistenceRef, RenderedNote

logger = structlog.get_logger()

JOURNAL_FILE_FORMAT = "%Y_%m_%d.md"


def _to_block(body: str) -> str:
    """Turn rendered text into a single top-level outline block."""
    lines = body.strip("\n").splitlines() or [""]
    if lines[0].startswith("- ") or lines[0] == "-":
        return "\n".join(lines) + "\n"
    first, rest = lines[0], lines[1:]
    indented = [f"  {line}" if line else line for line in rest]
    return "\n".join([f"- {first}", *indented]) + "\n"


def count_blocks(text: str) -> int:
    """Count top-level blocks in a LogSeq page."""
    return sum(1 for line in text.splitlines() if line.startswith("- ") or line == "-")


class LogSeqBackend(NoteBackend):
    """LogSeq graph backend appending blocks to journal pages."""

    name = "logseq"

    def __init__(self, graph_root: Path | str) -> None:
        """Initialize LogSeq backend.

        Args:
            graph_root: Root directory of the LogSeq graph (contains journals/ and pages/)
        """
        super().__init__(graph_root)
        self.journals_dir = self.root / "journals"
        logger.debug("Initializing LogSeq backend", graph_root=str(self.root))

    def tag_syntax(self) -> TagSyntax:
        return TagSyntax(separator=", ", multiword_open="[[", multiword_close="]]")

    def default_template_dir(self) -> Path:
        return self.root / "templates"

    def journal_path(self, journal_date: date) -> Path:
        """Return the journal page for a day."""
        return self.journals_dir / journal_date.strftime(JOURNAL_FILE_FORMAT)

    def validate(self) -> None:
        super().validate()
        if not self.journals_dir.is_dir():
            raise BackendIOError(f"LogSeq journals directory {self.journals_dir} does not exist")

    def persist(self, note: RenderedNote, journal_date: date) -> PersistenceRef:
        """Append the note as a new block to the journal page of journal_date."""
        path = self.journal_path(journal_date)
        logger.info("Appending block to LogSeq journal", path=str(path), title=note.title)

        if not self.journals_dir.is_dir():
            raise BackendIOError(f"LogSeq journals directory {self.journals_dir} does not exist")

        try:
            existing = path.read_bytes().decode("utf-8", errors="replace") if path.exists() else ""
            block_index = count_blocks(existing)
            block = _to_block(note.body)
            if existing and not existing.endswith("\n"):
                block = "\n" + block
            with open(path, "a", encoding="utf-8") as f:
                f.write(block)
        except OSError as e:
            logger.error("Failed to append to LogSeq journal", path=str(path), error=str(e))
            raise BackendIOError(f"Could not write to {path}: {e}") from e

        logger.debug("Appended LogSeq block", path=str(path), block_index=block_index)
        return PersistenceRef(backend=self.name, path=path, block_index=block_index)
