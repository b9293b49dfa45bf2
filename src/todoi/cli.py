"""CLI for todoi."""

import os
import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Literal

import structlog
from cyclopts import App, Parameter

from todoi.backend import NoteBackend
from todoi.backends import LogSeqBackend, ObsidianBackend, ZkBackend
from todoi.config import Config, get_config, load_channel_rules, load_source_rules, load_tag_rules
from todoi.config_commands import config_app
from todoi.enrichment import Enricher
from todoi.models import ImportRun, ImportStatus, Task
from todoi.pipeline import ImportPipeline
from todoi.prompt import ConsolePrompt
from todoi.rule_commands import channels_app, sources_app, tags_app
from todoi.task_source import TodoistTaskSource
from todoi.templates import TemplateResolver, TemplateStore

logger = structlog.get_logger()

BackendName = Literal["logseq", "zk", "obsidian"]

app = App(
    help="todoi - Import Todoist inbox tasks into LogSeq, zk or Obsidian notes",
)

app.command(config_app)
app.command(tags_app)
app.command(sources_app)
app.command(channels_app)


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(min_level=log_level.lower()))


def get_backend(config: Config, backend_type: str | None = None, root: Path | None = None) -> NoteBackend:
    """Get the configured note backend."""
    backend_type = backend_type or config.get("backend", "logseq")
    root = root or config.get(f"{backend_type}.root")

    if not root:
        raise ValueError(
            f"{backend_type} root not configured. Set it using:\n"
            f"  todoi config set {backend_type}.root <path>"
        )

    if backend_type == "logseq":
        return LogSeqBackend(graph_root=root)
    elif backend_type == "zk":
        return ZkBackend(
            notebook_root=root,
            notes_dir=config.get("zk.notes_dir", ""),
            journal_dir=config.get("zk.journal_dir", "journal/daily"),
        )
    elif backend_type == "obsidian":
        return ObsidianBackend(vault_root=root)
    else:
        raise ValueError(f"Unknown backend: {backend_type}")


def get_template_store(config: Config, backend: NoteBackend, templates: Path | None = None) -> TemplateStore:
    """Get the template store, from the command line, the config or the backend default."""
    directory = templates or config.get("templates.dir") or backend.default_template_dir()
    return TemplateStore(directory)


def print_run(run: ImportRun, tasks: list[Task]) -> None:
    """Print one line per record followed by a summary."""
    titles = {task.id: task.title for task in tasks}
    markers = {
        ImportStatus.PERSISTED: "+",
        ImportStatus.SKIPPED: "-",
        ImportStatus.PARTIAL: "~",
        ImportStatus.FAILED: "!",
        ImportStatus.UNPROCESSED: " ",
    }
    for record in run:
        line = f"{markers[record.status]} {record.task_id}: {titles.get(record.task_id, '')}"
        if record.ref is not None:
            line += f" -> {record.ref}"
        if record.reason:
            line += f" ({record.reason})"
        if record.completion_failed:
            line += " [completion marking failed]"
        print(line)

    summary = run.summary()
    print()
    print(", ".join(f"{key}: {value}" for key, value in summary.items()))
    if run.aborted:
        print(f"Run aborted: {run.abort_reason}")


@app.command(name="import")
def import_tasks(
    complete: bool = False,
    backend: BackendName | None = None,
    root: Path | None = None,
    templates: Path | None = None,
    lookup: bool = True,
) -> None:
    """Import the Todoist inbox into the configured note backend.

    Args:
        complete: Mark imported tasks as complete in Todoist.
        backend: Note backend to import into (defaults to the configured backend).
        root: Root directory of the note store (defaults to <backend>.root).
        templates: Template directory (defaults to templates.dir or the backend default).
        lookup: Look up video titles, channels and article authors online.
    """
    config = get_config()
    note_backend = get_backend(config, backend, root)
    store = get_template_store(config, note_backend, templates)

    token = config.get("todoist.token") or os.environ.get("TODOIST_API_TOKEN")
    if not token:
        raise ValueError(
            "Todoist token not configured. Set it using:\n"
            "  todoi config set todoist.token <token>\n"
            "or export TODOIST_API_TOKEN"
        )

    source = TodoistTaskSource(token=token)
    tasks = source.fetch_inbox_candidates()
    print(f"Found {len(tasks)} task(s) in the inbox\n")

    enricher = None
    if lookup:
        enricher = Enricher(youtube_api_key=config.get("youtube.api_key") or os.environ.get("YOUTUBE_API_KEY"))

    pipeline = ImportPipeline(
        TemplateResolver(store, ConsolePrompt()),
        task_source=source,
        source_rules=load_source_rules(config),
        enricher=enricher,
        channel_rules=load_channel_rules(config),
    )
    run = pipeline.run(tasks, note_backend, load_tag_rules(config), mark_complete=complete)
    print_run(run, tasks)

    if run.aborted:
        sys.exit(1)


@app.command(name="templates")
def list_templates(
    backend: BackendName | None = None,
    root: Path | None = None,
    templates: Path | None = None,
) -> None:
    """List the available templates."""
    config = get_config()
    store = get_template_store(config, get_backend(config, backend, root), templates)
    names = store.names()

    if not names:
        print(f"No templates found in {store.directory}")
        return

    print(f"Templates in {store.directory}:\n")
    for name in names:
        print(f"  {name}")


@app.command
def relink(
    note: Path,
    title: str | None = None,
    day: str | None = None,
    root: Path | None = None,
) -> None:
    """Link an existing zk note from a daily journal note.

    Use this to finish an import that created a note but failed to link it.

    Args:
        note: Path of the created note.
        title: Link text (defaults to the note's file name).
        day: Journal date as YYYY-MM-DD (defaults to today).
        root: Root directory of the zk notebook (defaults to zk.root).
    """
    config = get_config()
    journal_date = date.fromisoformat(day) if day else date.today()
    zk = get_backend(config, "zk", root)
    target = zk.link_note(note.resolve(), title or note.stem, journal_date)
    print(f"Linked {target} from the journal of {journal_date.isoformat()}")


@app.meta.default
def main(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    log_level: Literal["debug", "info", "warning", "error", "critical"] = "critical",
) -> None:
    """Main entry point with global options."""
    configure_logging(log_level)
    app(tokens)


if __name__ == "__main__":
    app.meta()
