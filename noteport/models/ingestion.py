"""
Import request and per-note result models.

Each note-import attempt yields a NoteOutcome that the orchestrator folds
into the job counters, so a failure never unwinds past the note loop.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ImportUpload(BaseModel):
    """Uploaded file plus the caller's import options."""

    owner_id: str
    filename: str
    data: bytes
    mime_type: str = "application/octet-stream"
    notebook_name: str | None = None
    last_modified: datetime | None = None


class ResourceFailure(BaseModel):
    """Attachment dropped from an otherwise imported note."""

    content_hash: str
    filename: str | None = None
    message: str


class NoteImported(BaseModel):
    """Note materialized successfully."""

    kind: Literal["imported"] = "imported"
    note_id: str
    title: str
    attachment_count: int = Field(default=0, ge=0)
    tag_count: int = Field(default=0, ge=0)
    resource_failures: list[ResourceFailure] = Field(default_factory=list)


class NoteFailed(BaseModel):
    """Note rejected; nothing was written for it."""

    kind: Literal["failed"] = "failed"
    title: str
    message: str


NoteOutcome = NoteImported | NoteFailed
