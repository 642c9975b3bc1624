"""
Import job model and lifecycle.

Job lifecycle:
    pending -> running -> completed | completed_with_errors | failed

Terminal states are final. Counters only grow, and once the total is known
``imported_count + failed_count`` never exceeds it.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from noteport.models.export import NoteFailure
from noteport.utils.exceptions import JobStateError
from noteport.utils.timestamps import utc_now


class ImportJobStatus(str, Enum):
    """Import job lifecycle status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = {
    ImportJobStatus.COMPLETED,
    ImportJobStatus.COMPLETED_WITH_ERRORS,
    ImportJobStatus.FAILED,
}


def compute_progress(processed: int, total: int | None) -> int:
    """
    Percentage of notes processed.

    Returns 0 when the total is unknown or zero instead of dividing by zero.
    """
    if not total:
        return 0
    return round(100 * processed / total)


class ImportJob(BaseModel):
    """
    One file-upload-to-persisted-notes operation.

    Mutated only by the import orchestrator through the transition methods
    below; each raises JobStateError instead of producing an inconsistent row.
    """

    id: str = Field(..., description="Unique job ID (job_xxx)")
    owner_id: str = Field(..., description="User who uploaded the file")
    source_filename: str
    status: ImportJobStatus = ImportJobStatus.PENDING
    notebook_id: str | None = None

    total_notes: int | None = Field(default=None, ge=0)
    imported_count: int = Field(default=0, ge=0)
    failed_count: int = Field(default=0, ge=0)
    errors: list[NoteFailure] = Field(default_factory=list)
    warnings: list[NoteFailure] = Field(default_factory=list)

    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def processed_count(self) -> int:
        return self.imported_count + self.failed_count

    @property
    def progress_percent(self) -> int:
        return compute_progress(self.processed_count, self.total_notes)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def start(self) -> None:
        """Move a pending job to running."""
        if self.status != ImportJobStatus.PENDING:
            raise JobStateError(
                f"Cannot start job in status {self.status.value}",
                context={"job_id": self.id},
            )
        self.status = ImportJobStatus.RUNNING
        self.started_at = utc_now()

    def set_total(self, total: int) -> None:
        """Record how many notes the source file contains."""
        self._require_running("set total")
        if total < self.processed_count:
            raise JobStateError(
                f"Total {total} is below already processed count {self.processed_count}",
                context={"job_id": self.id},
            )
        self.total_notes = total

    def record_success(self) -> None:
        self._require_running("record success")
        self._require_capacity()
        self.imported_count += 1

    def record_failure(self, note_title: str, message: str) -> None:
        self._require_running("record failure")
        self._require_capacity()
        self.failed_count += 1
        self.errors.append(NoteFailure(note_title=note_title, message=message))

    def record_warning(self, note_title: str, message: str) -> None:
        """Attach a non-fatal issue (e.g. a dropped attachment) to the job."""
        self._require_running("record warning")
        self.warnings.append(NoteFailure(note_title=note_title, message=message))

    def finish(self) -> ImportJobStatus:
        """
        Close a running job with the status implied by its counters.

        Returns:
            The terminal status that was applied
        """
        self._require_running("finish")
        if self.imported_count == 0:
            self.status = ImportJobStatus.FAILED
        elif self.failed_count > 0:
            self.status = ImportJobStatus.COMPLETED_WITH_ERRORS
        else:
            self.status = ImportJobStatus.COMPLETED
        self.completed_at = utc_now()
        return self.status

    def fail(self, message: str) -> None:
        """Abort the job with a file-level error."""
        if self.is_terminal:
            raise JobStateError(
                f"Cannot fail job in terminal status {self.status.value}",
                context={"job_id": self.id},
            )
        self.status = ImportJobStatus.FAILED
        self.errors.append(NoteFailure(note_title=self.source_filename, message=message))
        self.completed_at = utc_now()

    def snapshot(self) -> "ImportJobSnapshot":
        return ImportJobSnapshot(**self.model_dump(), progress=self.progress_percent)

    def _require_running(self, action: str) -> None:
        if self.status != ImportJobStatus.RUNNING:
            raise JobStateError(
                f"Cannot {action} on job in status {self.status.value}",
                context={"job_id": self.id},
            )

    def _require_capacity(self) -> None:
        if self.total_notes is not None and self.processed_count >= self.total_notes:
            raise JobStateError(
                f"Job already processed all {self.total_notes} notes",
                context={"job_id": self.id},
            )


class ImportJobSnapshot(ImportJob):
    """Read-only view of a job handed to polling clients."""

    progress: int = Field(default=0, ge=0, le=100)
