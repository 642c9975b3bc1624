"""
Import Engine - Composition root of the import pipeline.

Brings together:
- Note store & object storage
- Format detection, parsing and content translation
- Import orchestration & job tracking
"""

from datetime import datetime

from noteport.config import Config
from noteport.core.factory import NoteStoreFactory, ObjectStorageFactory
from noteport.core.note_store.base import NoteStore
from noteport.core.object_storage.base import ObjectStorage
from noteport.models.ingestion import ImportUpload
from noteport.models.job import ImportJobSnapshot
from noteport.parsers.detector import FormatDetector
from noteport.services.import_orchestrator import ImportOrchestrator
from noteport.services.job_tracker import JobTracker
from noteport.utils.exceptions import ValidationError
from noteport.utils.logger import get_logger

logger = get_logger(__name__)


class ImportEngine:
    """
    Unified entry point for imports.

    Features:
    - Upload validation and format detection
    - Synchronous import of ENEX, PDF, DOCX and TXT files
    - Job status and history queries
    """

    def __init__(
        self,
        config: Config,
        store: NoteStore | None = None,
        storage: ObjectStorage | None = None,
    ):
        """
        Initialize Import Engine.

        Args:
            config: Configuration object
            store: Note store (built from config if omitted)
            storage: Object storage (built from config if omitted)
        """
        self.config = config
        self.store = store or NoteStoreFactory.create(config)
        self.storage = storage or ObjectStorageFactory.create(config.storage)

        self.detector = FormatDetector(config.imports.source_application)
        self.orchestrator = ImportOrchestrator(
            store=self.store,
            storage=self.storage,
            config=config.imports,
            detector=self.detector,
        )
        self.tracker = JobTracker(self.store, default_limit=config.imports.job_list_limit)

    async def initialize(self) -> None:
        """Initialize the note store."""
        logger.info("Initializing Import Engine")

        await self.store.initialize()
        logger.info("Note store initialized")

        logger.info("Import Engine ready")

    async def import_file(
        self,
        owner_id: str,
        filename: str,
        data: bytes,
        mime_type: str | None = None,
        notebook_name: str | None = None,
        last_modified: datetime | None = None,
    ) -> ImportJobSnapshot:
        """
        Import an uploaded file and return the finished job.

        Args:
            owner_id: User the notes belong to
            filename: Upload filename, used for format detection and titles
            data: File bytes
            mime_type: Declared MIME type
            notebook_name: Destination notebook (default notebook if omitted)
            last_modified: File modification time for generic documents

        Returns:
            Job snapshot in a terminal state

        Raises:
            ValidationError: If the upload is empty or too large
            UnsupportedFormatError: If the file type is not supported
            ImportJobError: If the job aborted on an infrastructure error
        """
        if not filename:
            raise ValidationError("Upload has no filename")
        if not data:
            raise ValidationError("Uploaded file is empty", context={"filename": filename})
        if len(data) > self.config.imports.max_upload_bytes:
            raise ValidationError(
                f"Uploaded file exceeds {self.config.imports.max_upload_bytes} bytes",
                context={"filename": filename, "size": len(data)},
            )

        upload = ImportUpload(
            owner_id=owner_id,
            filename=filename,
            data=data,
            mime_type=mime_type or "application/octet-stream",
            notebook_name=notebook_name,
            last_modified=last_modified,
        )
        job = await self.orchestrator.run(upload)
        return job.snapshot()

    async def get_job(self, job_id: str, owner_id: str | None = None) -> ImportJobSnapshot:
        """
        Get a job owned by the caller.

        Raises:
            NotFoundError: If the job does not exist or belongs to another owner
        """
        return await self.tracker.require(job_id, owner_id=owner_id)

    async def list_jobs(self, owner_id: str, limit: int | None = None) -> list[ImportJobSnapshot]:
        """List the caller's recent jobs, newest first."""
        return await self.tracker.list(owner_id, limit=limit)

    async def close(self) -> None:
        """Close all connections."""
        logger.info("Shutting down Import Engine")

        await self.store.close()

        logger.info("Import Engine shutdown complete")
