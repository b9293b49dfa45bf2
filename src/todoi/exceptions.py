"""Exceptions raised by todoi."""

from pathlib import Path


class TodoiError(Exception):
    """Base class for todoi errors."""


class TemplateNotFound(TodoiError):
    """A requested template file does not exist."""

    def __init__(self, name: str, directory: Path | None = None) -> None:
        self.name = name
        self.directory = directory
        location = f" in {directory}" if directory is not None else ""
        super().__init__(f"Template {name!r} not found{location}")


class UnsupportedBackend(TodoiError):
    """The selected note backend cannot persist notes."""

    def __init__(self, backend: str) -> None:
        self.backend = backend
        super().__init__(f"Backend {backend!r} is not supported")


class BackendIOError(TodoiError):
    """A storage fault occurred while persisting a note."""


class PartialPersistence(TodoiError):
    """The note file was created but linking it from the journal failed."""

    def __init__(self, path: Path, cause: BaseException | None = None) -> None:
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Created {path} but could not link it from the journal{detail}")


class TaskSourceError(TodoiError):
    """The task tracker could not be reached or returned an unexpected response."""


class CompletionMarkingFailed(TaskSourceError):
    """The task tracker refused to mark a task as complete."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Could not mark task {task_id} as complete")


class EnrichmentError(TodoiError):
    """Details for a URL could not be looked up."""
