"""Import pipeline: tracker tasks in, notes out."""

from collections.abc import Sequence
from datetime import date

import structlog

from todoi.backend import NoteBackend
from todoi.classifier import classify
from todoi.enrichment import Enricher, base_metadata
from todoi.exceptions import (
    BackendIOError,
    CompletionMarkingFailed,
    PartialPersistence,
    TaskSourceError,
    TemplateNotFound,
)
from todoi.models import (
    ChannelRule,
    ImportRecord,
    ImportRun,
    ImportStatus,
    PersistenceRef,
    SourceRule,
    TagRule,
    Task,
)
from todoi.tagger import channel_tags, sources, tag
from todoi.task_source import TaskSource
from todoi.templates import TemplateRenderer, TemplateResolver

logger = structlog.get_logger()


class ImportPipeline:
    """Imports tasks one at a time into a note backend.

    Tasks are processed strictly in order. A storage fault aborts the run and
    leaves the remaining tasks unprocessed; every other problem only affects
    the task it happened on.
    """

    def __init__(
        self,
        resolver: TemplateResolver,
        renderer: TemplateRenderer | None = None,
        task_source: TaskSource | None = None,
        source_rules: Sequence[SourceRule] = (),
        enricher: Enricher | None = None,
        channel_rules: Sequence[ChannelRule] = (),
    ) -> None:
        """Initialize the pipeline.

        Args:
            resolver: Chooses the template of each task
            renderer: Fills the chosen template
            task_source: Tracker used to mark imported tasks complete
            source_rules: URL substring to source name rules
            enricher: Looks up titles, channels and authors; without one only offline metadata is used
            channel_rules: Tags contributed by YouTube channels and article authors
        """
        self.resolver = resolver
        self.renderer = renderer or TemplateRenderer()
        self.task_source = task_source
        self.source_rules = list(source_rules)
        self.enricher = enricher
        self.channel_rules = list(channel_rules)

    def run(
        self,
        tasks: Sequence[Task],
        backend: NoteBackend,
        rules: Sequence[TagRule],
        mark_complete: bool,
        journal_date: date | None = None,
    ) -> ImportRun:
        """Import tasks into backend.

        Raises:
            UnsupportedBackend: The backend cannot persist notes at all.
            ValueError: mark_complete was requested without a task source.
        """
        if mark_complete and self.task_source is None:
            raise ValueError("A task source is required to mark tasks complete")

        journal_date = journal_date or date.today()
        backend.validate()
        logger.info("Starting import", backend=backend.name, tasks=len(tasks), mark_complete=mark_complete)

        run = ImportRun()
        for index, task in enumerate(tasks):
            try:
                record = self._import_task(task, backend, rules, mark_complete, journal_date)
            except BackendIOError as e:
                logger.error("Storage fault, aborting import", task_id=task.id, error=str(e))
                run.records.append(ImportRecord(task_id=task.id, status=ImportStatus.FAILED, reason=str(e)))
                run.records.extend(
                    ImportRecord(task_id=rest.id, status=ImportStatus.UNPROCESSED, reason="run aborted")
                    for rest in tasks[index + 1 :]
                )
                run.aborted = True
                run.abort_reason = str(e)
                break
            run.records.append(record)

        logger.info("Import finished", aborted=run.aborted, **run.summary())
        return run

    def _import_task(
        self,
        task: Task,
        backend: NoteBackend,
        rules: Sequence[TagRule],
        mark_complete: bool,
        journal_date: date,
    ) -> ImportRecord:
        if not task.is_eligible:
            logger.info("Skipping ineligible task", task_id=task.id)
            return ImportRecord(task_id=task.id, status=ImportStatus.SKIPPED, reason="not eligible")

        url = task.url.strip()
        if backend.contains_url(url):
            logger.info("Skipping duplicate url", task_id=task.id, url=url)
            return ImportRecord(task_id=task.id, status=ImportStatus.SKIPPED, reason="duplicate")

        url_class = classify(url)
        try:
            template_name = self.resolver.resolve(url_class, task)
            if template_name is None:
                return ImportRecord(task_id=task.id, status=ImportStatus.SKIPPED, reason="cancelled")
            template = self.resolver.store.load(template_name)
        except TemplateNotFound as e:
            logger.warning("Template not found", task_id=task.id, template=e.name)
            return ImportRecord(task_id=task.id, status=ImportStatus.FAILED, reason=str(e))

        if self.enricher is not None:
            metadata = self.enricher.enrich(url_class, url)
        else:
            metadata = base_metadata(url_class, url)

        text = " ".join(part for part in (task.title, url, metadata.video_title, metadata.article_title) if part)
        tags = tag(text, rules) | metadata.tags | channel_tags(metadata.channel or metadata.author, self.channel_rules)
        note = self.renderer.render(
            template,
            task,
            url,
            tags,
            backend.tag_syntax(),
            sources=sources(url, self.source_rules),
            journal_date=journal_date,
            metadata=metadata,
        )

        try:
            ref = backend.persist(note, journal_date)
        except PartialPersistence as e:
            logger.warning("Note created but not linked", task_id=task.id, path=str(e.path))
            return ImportRecord(
                task_id=task.id,
                status=ImportStatus.PARTIAL,
                template=template_name,
                ref=PersistenceRef(backend=backend.name, path=e.path),
                reason=str(e),
            )

        logger.info("Persisted note", task_id=task.id, template=template_name, ref=str(ref))
        record = ImportRecord(task_id=task.id, status=ImportStatus.PERSISTED, ref=ref, template=template_name)
        if mark_complete:
            self._complete(task, record)
        return record

    def _complete(self, task: Task, record: ImportRecord) -> None:
        try:
            if not self.task_source.mark_complete(task.id):
                raise CompletionMarkingFailed(task.id)
        except TaskSourceError as e:
            logger.warning("Completion marking failed", task_id=task.id, error=str(e))
            record.completion_failed = True
            record.reason = str(e)
            return
        record.completed = True
