"""
Import Orchestrator - Materializes an uploaded file as notes.

Handles:
- Parser selection and file-level failure
- Destination notebook resolution
- Per-note import with failure isolation
- Continuous job progress persistence
"""

import asyncio

from noteport.config import ImportConfig
from noteport.core.note_store.base import NoteStore
from noteport.core.object_storage.base import ObjectStorage
from noteport.models.export import ContentFormat, ExportDocument, ExportNote, ImportFormat
from noteport.models.ingestion import ImportUpload, NoteFailed, NoteImported, NoteOutcome
from noteport.models.job import ImportJob
from noteport.models.records import Attachment, Note, Notebook, normalize_tag_name
from noteport.parsers.detector import FormatDetector
from noteport.services.content_translator import ContentTranslator
from noteport.services.resource_resolver import ResolvedResources, ResourceResolver
from noteport.utils.exceptions import (
    ImportJobError,
    MalformedExportError,
    UnparseableFileError,
)
from noteport.utils.id_generator import (
    generate_attachment_id,
    generate_job_id,
    generate_note_id,
    generate_notebook_id,
)
from noteport.utils.logger import get_logger, job_logger
from noteport.utils.timestamps import utc_now

logger = get_logger(__name__)


def unique_tag_names(tag_names: list[str]) -> list[str]:
    """
    Trim tag names and drop case-insensitive duplicates.

    The first spelling of each tag wins; blank names are skipped.
    """
    seen: set[str] = set()
    unique = []
    for name in tag_names:
        clean = name.strip()
        key = normalize_tag_name(clean)
        if not clean or key in seen:
            continue
        seen.add(key)
        unique.append(clean)
    return unique


class ImportOrchestrator:
    """
    Runs one import job from uploaded bytes to persisted notes.

    A note either lands completely (note, tag links, attachment rows) or not
    at all, and its failure is recorded on the job without stopping the
    remaining notes. File-level failures end the job immediately.
    """

    def __init__(
        self,
        store: NoteStore,
        storage: ObjectStorage,
        config: ImportConfig | None = None,
        detector: FormatDetector | None = None,
        translator: ContentTranslator | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Note store receiving notebooks, notes, tags and jobs
            storage: Object storage receiving attachment bytes
            config: Import configuration
            detector: Format detector (built from config if omitted)
            translator: Content translator
        """
        self.store = store
        self.storage = storage
        self.config = config or ImportConfig()
        self.detector = detector or FormatDetector(self.config.source_application)
        self.translator = translator or ContentTranslator()

    async def run(self, upload: ImportUpload) -> ImportJob:
        """
        Import an uploaded file.

        Args:
            upload: File bytes and import options

        Returns:
            The job in its terminal state

        Raises:
            UnsupportedFormatError: If no parser accepts the file (no job is created)
            ImportJobError: If infrastructure fails outside a single note
        """
        parser = self.detector.select(upload.filename, upload.mime_type)

        job = ImportJob(
            id=generate_job_id(),
            owner_id=upload.owner_id,
            source_filename=upload.filename,
        )
        await self.store.create_job(job)
        job.start()
        await self.store.update_job(job)

        log = job_logger(__name__, job.id)
        log.info(f"Import job {job.id} started for {upload.filename} ({len(upload.data)} bytes)")

        try:
            document = await asyncio.to_thread(
                parser.parse, upload.data, upload.filename, upload.last_modified
            )

            if document.attempted_count == 0:
                job.fail("No notes found in file")
                await self.store.update_job(job)
                log.info(f"Import job {job.id} failed: file contained no notes")
                return job

            notebook = await self._resolve_notebook(upload.owner_id, upload.notebook_name)
            job.notebook_id = notebook.id
            job.set_total(document.attempted_count)
            for failure in document.failures:
                job.record_failure(failure.note_title, failure.message)
            await self.store.update_job(job)

            await self._import_notes(job, document, notebook)

            status = job.finish()
            await self.store.update_job(job)

        except (MalformedExportError, UnparseableFileError) as e:
            job.fail(e.message)
            await self.store.update_job(job)
            log.warning(f"Import job {job.id} failed: {e.message}")
            return job

        except Exception as e:
            await self._abort(job, e)
            raise ImportJobError(
                f"Import job {job.id} aborted: {e}",
                context={"job_id": job.id, "filename": upload.filename},
            ) from e

        log.info(
            f"Import job {job.id} {status.value}: {job.imported_count} imported, "
            f"{job.failed_count} failed of {job.total_notes}"
        )
        return job

    # ═══════════════════════════════════════════════════════════
    # NOTEBOOK
    # ═══════════════════════════════════════════════════════════

    async def _resolve_notebook(self, owner_id: str, notebook_name: str | None) -> Notebook:
        """Named notebook, else the owner's default, else a new default."""
        name = (notebook_name or "").strip()
        if name:
            notebook = await self.store.find_notebook(owner_id, name)
            if notebook:
                return notebook
            logger.info(f"Creating notebook {name!r} for {owner_id}")
            return await self.store.create_notebook(
                Notebook(id=generate_notebook_id(), owner_id=owner_id, name=name)
            )

        notebook = await self.store.find_default_notebook(owner_id)
        if notebook:
            return notebook

        logger.info(f"Creating default notebook for {owner_id}")
        return await self.store.create_notebook(
            Notebook(
                id=generate_notebook_id(),
                owner_id=owner_id,
                name=self.config.default_notebook_name,
                is_default=True,
            )
        )

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    async def _import_notes(self, job: ImportJob, document: ExportDocument, notebook: Notebook) -> None:
        resolver = ResourceResolver(self.storage, job.owner_id, job.id)
        job_lock = asyncio.Lock()

        async def process(note: ExportNote) -> None:
            outcome = await self._import_note(note, job, notebook, resolver, document.source_format)
            async with job_lock:
                self._apply_outcome(job, outcome)
                await self.store.update_job(job)

        if self.config.max_concurrency <= 1:
            for note in document.notes:
                await process(note)
            return

        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def bounded(note: ExportNote) -> None:
            async with semaphore:
                await process(note)

        # A failure cancels the remaining notes before the job is aborted
        try:
            async with asyncio.TaskGroup() as group:
                for note in document.notes:
                    group.create_task(bounded(note))
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from eg

    async def _import_note(
        self,
        note: ExportNote,
        job: ImportJob,
        notebook: Notebook,
        resolver: ResourceResolver,
        source_format: ImportFormat,
    ) -> NoteOutcome:
        """Import one note; any error becomes a NoteFailed outcome."""
        note_id = generate_note_id()

        try:
            resolved = await resolver.resolve(note_id, note.resources)
            content = self.translator.translate(note.raw_content, resolved.entries, note.content_format)

            tag_ids = []
            for name in unique_tag_names(note.tag_names):
                tag = await self.store.upsert_tag(job.owner_id, name)
                tag_ids.append(tag.id)

            record = self._build_note(note_id, note, job, notebook, content, source_format)
            attachments = self._build_attachments(note_id, resolved)
            await self.store.create_note(record, tag_ids, attachments)

        except Exception as e:
            message = str(e) or type(e).__name__
            job_logger(__name__, job.id).warning(f"Note {note.title!r} failed to import: {message}")
            return NoteFailed(title=note.title, message=message)

        return NoteImported(
            note_id=note_id,
            title=note.title,
            attachment_count=len(attachments),
            tag_count=len(tag_ids),
            resource_failures=resolved.failures,
        )

    def _build_note(
        self,
        note_id: str,
        note: ExportNote,
        job: ImportJob,
        notebook: Notebook,
        content: str,
        source_format: ImportFormat,
    ) -> Note:
        now = utc_now()
        attributes = note.attributes

        return Note(
            id=note_id,
            notebook_id=notebook.id,
            owner_id=job.owner_id,
            title=note.title,
            content=content,
            content_plaintext=self.translator.plaintext(content),
            original_markup=note.raw_content if note.content_format == ContentFormat.ENML else None,
            source_url=attributes.source_url if attributes else None,
            author=attributes.author if attributes else None,
            latitude=attributes.latitude if attributes else None,
            longitude=attributes.longitude if attributes else None,
            altitude=attributes.altitude if attributes else None,
            attributes=attributes.model_dump(exclude_none=True) if attributes else {},
            source_created_at=note.created_at,
            source_updated_at=note.updated_at,
            import_source=source_format.value,
            import_job_id=job.id,
            imported_at=now,
            created_at=note.created_at or now,
            updated_at=note.updated_at or note.created_at or now,
        )

    def _build_attachments(self, note_id: str, resolved: ResolvedResources) -> list[Attachment]:
        return [
            Attachment(
                id=generate_attachment_id(),
                note_id=note_id,
                filename=entry.filename,
                original_name=entry.original_filename,
                mime_type=entry.mime_type,
                size=entry.size,
                storage_key=entry.storage_key,
                locator=entry.locator,
                hash=entry.content_hash,
                width=entry.width,
                height=entry.height,
                duration_seconds=entry.duration_seconds,
            )
            for entry in resolved.entries.values()
        ]

    # ═══════════════════════════════════════════════════════════
    # JOB BOOKKEEPING
    # ═══════════════════════════════════════════════════════════

    def _apply_outcome(self, job: ImportJob, outcome: NoteOutcome) -> None:
        if isinstance(outcome, NoteFailed):
            job.record_failure(outcome.title, outcome.message)
            return

        job.record_success()
        for failure in outcome.resource_failures:
            label = failure.filename or failure.content_hash
            job.record_warning(outcome.title, f"Attachment {label} was not imported: {failure.message}")

    async def _abort(self, job: ImportJob, error: Exception) -> None:
        """Mark a job failed after an infrastructure error."""
        job_logger(__name__, job.id).error(f"Import job {job.id} aborted: {error}")
        if job.is_terminal:
            return

        job.fail(str(error) or type(error).__name__)
        try:
            await self.store.update_job(job)
        except Exception as persist_error:
            logger.error(f"Could not persist failure of job {job.id}: {persist_error}")
