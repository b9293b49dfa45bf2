"""Template lookup, resolution and rendering."""

import re
from collections.abc import Iterable
from datetime import date
from pathlib import Path

import structlog

from todoi.backend import TagSyntax
from todoi.exceptions import TemplateNotFound
from todoi.models import NoteMetadata, RenderedNote, Task, Template, UrlClass
from todoi.prompt import TemplatePrompt

logger = structlog.get_logger()

AUTOMATIC_TEMPLATES = {
    UrlClass.YOUTUBE: "youtube",
    UrlClass.YOUTUBE_PLAYLIST: "youtube_playlist",
    UrlClass.STRONGER_BY_SCIENCE: "stronger-by-science",
}

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][\w-]*)\s*\}\}")


class TemplateStore:
    """Templates stored as one plain text file per name in a directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory).expanduser()

    def _files(self) -> dict[str, Path]:
        if not self.directory.is_dir():
            logger.debug("Template directory does not exist", directory=str(self.directory))
            return {}
        files: dict[str, Path] = {}
        for path in sorted(self.directory.iterdir()):
            if path.is_file() and not path.name.startswith("."):
                files.setdefault(path.stem, path)
        return files

    def names(self) -> list[str]:
        """List the available template names, sorted."""
        return sorted(self._files())

    def has(self, name: str) -> bool:
        return name in self._files()

    def load(self, name: str) -> Template:
        """Read a template by name.

        Raises:
            TemplateNotFound: No file with that name exists.
        """
        path = self._files().get(name)
        if path is None:
            raise TemplateNotFound(name, self.directory)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise TemplateNotFound(name, self.directory) from e
        logger.debug("Loaded template", name=name, path=str(path))
        return Template(name=name, text=text, path=path)


class TemplateResolver:
    """Chooses the template for a URL class, asking the operator for generic URLs."""

    def __init__(self, store: TemplateStore, prompt: TemplatePrompt) -> None:
        self.store = store
        self.prompt = prompt

    def resolve(self, url_class: UrlClass, task: Task) -> str | None:
        """Return a template name, or None if the operator cancelled the choice.

        Raises:
            TemplateNotFound: The resolved template does not exist.
        """
        name = AUTOMATIC_TEMPLATES.get(url_class)
        if name is not None:
            if not self.store.has(name):
                raise TemplateNotFound(name, self.store.directory)
            logger.debug("Resolved template automatically", task_id=task.id, template=name)
            return name

        names = self.store.names()
        if not names:
            raise TemplateNotFound("<any>", self.store.directory)

        choice = self.prompt.choose(task, names)
        if choice is None:
            logger.info("Template selection cancelled", task_id=task.id)
            return None
        if choice not in names:
            raise TemplateNotFound(choice, self.store.directory)

        logger.debug("Resolved template interactively", task_id=task.id, template=choice)
        return choice


class TemplateRenderer:
    """Fills the {{ placeholder }} tokens of a template."""

    def render(
        self,
        template: Template,
        task: Task,
        url: str,
        tags: Iterable[str],
        syntax: TagSyntax,
        sources: Iterable[str] = (),
        journal_date: date | None = None,
        metadata: NoteMetadata | None = None,
    ) -> RenderedNote:
        """Render a template for a task.

        Unknown placeholders are left untouched. Metadata placeholders render
        empty when nothing was looked up, except {{embed}} which falls back to
        the bare URL.
        """
        tag_set = frozenset(tags)
        metadata = metadata or NoteMetadata()
        values = {
            "url": url,
            "title": task.title,
            "tags": syntax.format(tag_set),
            "description": task.description,
            "id": task.id,
            "date": (journal_date or date.today()).isoformat(),
            "sources": ", ".join(sources),
            "video_title": metadata.video_title,
            "channel": metadata.channel,
            "author": metadata.author,
            "article_title": metadata.article_title,
            "embed": metadata.embed or url,
        }

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key in values:
                return values[key]
            return match.group(0)

        body = PLACEHOLDER_RE.sub(substitute, template.text)
        return RenderedNote(title=task.title, tags=tag_set, url=url, body=body, template=template.name)
