"""
Base interface for the note store.

The surrounding application owns notebooks, notes, tags and attachments; the
import pipeline only needs the creation and lookup operations below plus
import-job bookkeeping.
"""

from abc import ABC, abstractmethod

from noteport.models.job import ImportJob
from noteport.models.records import Attachment, Note, Notebook, Tag


class NoteStore(ABC):
    """Abstract base class for note persistence."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the store (create tables/schema)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections."""
        pass

    # ═══════════════════════════════════════════════════════════
    # NOTEBOOKS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def find_notebook(self, owner_id: str, name: str) -> Notebook | None:
        """
        Find a notebook by owner and exact name.

        Args:
            owner_id: Notebook owner
            name: Notebook name

        Returns:
            Notebook or None if not found
        """
        pass

    @abstractmethod
    async def find_default_notebook(self, owner_id: str) -> Notebook | None:
        """Find the owner's default notebook."""
        pass

    @abstractmethod
    async def create_notebook(self, notebook: Notebook) -> Notebook:
        """
        Create a notebook.

        Returns:
            The stored notebook; if a notebook with the same owner and name
            already exists, that notebook is returned instead
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # TAGS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def upsert_tag(self, owner_id: str, name: str) -> Tag:
        """
        Get or create a tag, matching names case-insensitively.

        Must be safe under concurrent calls for the same name: a uniqueness
        violation on insert resolves to the existing row.

        Args:
            owner_id: Tag owner
            name: Tag name as authored

        Returns:
            Existing or newly created tag
        """
        pass

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def create_note(
        self, note: Note, tag_ids: list[str], attachments: list[Attachment]
    ) -> None:
        """
        Create a note with its tag links and attachment rows atomically.

        Either every row is written or none is.

        Raises:
            StoreError: If the note cannot be written
        """
        pass

    @abstractmethod
    async def get_note(self, note_id: str) -> Note | None:
        """Retrieve a note by ID."""
        pass

    @abstractmethod
    async def list_notes(self, notebook_id: str) -> list[Note]:
        """List notes of a notebook, oldest first."""
        pass

    @abstractmethod
    async def list_note_tags(self, note_id: str) -> list[Tag]:
        """List tags linked to a note."""
        pass

    @abstractmethod
    async def list_attachments(self, note_id: str) -> list[Attachment]:
        """List attachments of a note."""
        pass

    # ═══════════════════════════════════════════════════════════
    # IMPORT JOBS
    # ═══════════════════════════════════════════════════════════

    @abstractmethod
    async def create_job(self, job: ImportJob) -> None:
        """Insert a new import job."""
        pass

    @abstractmethod
    async def update_job(self, job: ImportJob) -> None:
        """Persist the current state of an import job."""
        pass

    @abstractmethod
    async def get_job(self, job_id: str) -> ImportJob | None:
        """Retrieve an import job by ID."""
        pass

    @abstractmethod
    async def list_jobs(self, owner_id: str, limit: int = 10) -> list[ImportJob]:
        """List an owner's jobs, newest first."""
        pass
