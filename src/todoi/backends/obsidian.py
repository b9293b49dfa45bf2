"""Obsidian backend placeholder."""

from datetime import date
from pathlib import Path

import structlog

from todoi.backend import NoteBackend, TagSyntax
from todoi.exceptions import UnsupportedBackend
from todoi.models import PersistenceRef, RenderedNote

logger = structlog.get_logger()


class ObsidianBackend(NoteBackend):
    """Obsidian vault backend. Importing into Obsidian is not implemented."""

    name = "obsidian"

    def __init__(self, vault_root: Path | str) -> None:
        super().__init__(vault_root)
        logger.debug("Initializing Obsidian backend", vault_root=str(self.root))

    def tag_syntax(self) -> TagSyntax:
        return TagSyntax(prefix="#", separator=" ", space="-")

    def default_template_dir(self) -> Path:
        return self.root / "templates"

    def validate(self) -> None:
        logger.error("Obsidian backend is not supported", vault_root=str(self.root))
        raise UnsupportedBackend(self.name)

    def persist(self, note: RenderedNote, journal_date: date) -> PersistenceRef:
        raise UnsupportedBackend(self.name)
