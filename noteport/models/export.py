"""
Canonical export model produced by every parser.

An ExportDocument is built once per uploaded file, handed to the import
orchestrator and discarded. It is never persisted as-is.
"""

import hashlib
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ImportFormat(str, Enum):
    """Upload formats understood by the pipeline."""

    ENEX = "enex"
    PDF = "pdf"
    DOCX = "docx"
    TEXT = "txt"


class ContentFormat(str, Enum):
    """Markup dialect of a note's raw content."""

    ENML = "enml"  # Evernote note body (XML)
    HTML = "html"  # HTML fragment from a generic document


def compute_content_hash(data: bytes) -> str:
    """
    Compute the resource hash used for en-media references and dedup.

    Evernote addresses resources by the MD5 of their decoded bytes.

    Args:
        data: Decoded resource bytes

    Returns:
        Lowercase hex digest
    """
    return hashlib.md5(data).hexdigest()


class NoteAttributes(BaseModel):
    """Provenance block attached to a note."""

    source_url: str | None = None
    source_application: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    author: str | None = None
    source: str | None = None
    place_name: str | None = None
    content_class: str | None = None
    subject_date: str | None = None
    reminder_order: int | None = None
    reminder_time: str | None = None
    reminder_done_time: str | None = None


class ResourceAttributes(BaseModel):
    """Provenance block attached to a resource."""

    source_url: str | None = None
    timestamp: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    camera_make: str | None = None
    camera_model: str | None = None
    file_name: str | None = None
    attachment: bool = False


class ExportResource(BaseModel):
    """
    Binary attachment embedded in a note.

    ``content_hash`` is always derived from ``data``; hashes claimed by the
    source document are not trusted.
    """

    data: bytes = Field(..., description="Decoded resource bytes")
    mime_type: str = Field(default="application/octet-stream")
    content_hash: str = Field(..., description="MD5 hex digest of data")
    width: int | None = None
    height: int | None = None
    duration_seconds: int | None = None
    original_filename: str | None = None
    recognition: str | None = Field(default=None, description="OCR index, kept verbatim")
    attributes: ResourceAttributes | None = None

    @classmethod
    def from_data(cls, data: bytes, **fields) -> "ExportResource":
        """Build a resource and compute its hash from the bytes."""
        return cls(data=data, content_hash=compute_content_hash(data), **fields)

    @property
    def size(self) -> int:
        return len(self.data)


class ExportNote(BaseModel):
    """One note as read from the source file."""

    title: str
    raw_content: str = ""
    content_format: ContentFormat = ContentFormat.ENML
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tag_names: list[str] = Field(default_factory=list)
    attributes: NoteAttributes | None = None
    resources: list[ExportResource] = Field(default_factory=list)


class NoteFailure(BaseModel):
    """A note that could not be imported, with the reason."""

    note_title: str
    message: str


class ExportDocument(BaseModel):
    """Root of the canonical export model."""

    exported_at: datetime | None = None
    source_application: str | None = None
    format_version: str | None = None
    source_format: ImportFormat
    notes: list[ExportNote] = Field(default_factory=list)
    # Notes rejected individually while parsing
    failures: list[NoteFailure] = Field(default_factory=list)

    @property
    def attempted_count(self) -> int:
        """Notes found in the source, parsed or not."""
        return len(self.notes) + len(self.failures)
