"""
Job Tracker - Read access to import job progress.
"""

from noteport.core.note_store.base import NoteStore
from noteport.models.job import ImportJobSnapshot
from noteport.utils.exceptions import NotFoundError


class JobTracker:
    """Serves job snapshots with computed progress to polling clients."""

    def __init__(self, store: NoteStore, default_limit: int = 10):
        self.store = store
        self.default_limit = default_limit

    async def get(self, job_id: str) -> ImportJobSnapshot | None:
        """Snapshot of a job, or None if it does not exist."""
        job = await self.store.get_job(job_id)
        return job.snapshot() if job else None

    async def require(self, job_id: str, owner_id: str | None = None) -> ImportJobSnapshot:
        """
        Snapshot of a job that must exist.

        Args:
            job_id: Job to look up
            owner_id: When given, jobs of other owners are reported as missing

        Raises:
            NotFoundError: If the job does not exist or belongs to someone else
        """
        snapshot = await self.get(job_id)
        if snapshot is None or (owner_id is not None and snapshot.owner_id != owner_id):
            raise NotFoundError(f"Import job not found: {job_id}", context={"job_id": job_id})
        return snapshot

    async def list(self, owner_id: str, limit: int | None = None) -> list[ImportJobSnapshot]:
        """An owner's most recent jobs, newest first."""
        jobs = await self.store.list_jobs(owner_id, limit=limit or self.default_limit)
        return [job.snapshot() for job in jobs]
