"""
Persisted entities produced by an import.

These rows belong to the surrounding note-taking application; the pipeline
only creates them.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from noteport.utils.timestamps import utc_now


def normalize_tag_name(name: str) -> str:
    """Key used for case-insensitive tag matching."""
    return name.strip().casefold()


class Notebook(BaseModel):
    """Container notes are imported into."""

    id: str = Field(..., description="Unique notebook ID (nb_xxx)")
    owner_id: str
    name: str
    is_default: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Tag(BaseModel):
    """User tag, unique per owner regardless of case."""

    id: str = Field(..., description="Unique tag ID (tag_xxx)")
    owner_id: str
    name: str
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def normalized_name(self) -> str:
        return normalize_tag_name(self.name)


class Note(BaseModel):
    """
    Imported note.

    ``content`` is the translated HTML body, ``content_plaintext`` the derived
    search projection, and ``original_markup`` the untouched ENML (ENEX
    imports only).
    """

    id: str = Field(..., description="Unique note ID (note_xxx)")
    notebook_id: str
    owner_id: str
    title: str
    content: str
    content_plaintext: str = ""
    original_markup: str | None = None

    # Provenance
    source_url: str | None = None
    author: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    altitude: float | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    source_created_at: datetime | None = None
    source_updated_at: datetime | None = None

    import_source: str
    import_job_id: str | None = None
    imported_at: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Attachment(BaseModel):
    """Stored resource linked to a note."""

    id: str = Field(..., description="Unique attachment ID (att_xxx)")
    note_id: str
    filename: str
    original_name: str | None = None
    mime_type: str
    size: int = Field(..., ge=0)
    storage_key: str
    locator: str
    hash: str
    width: int | None = None
    height: int | None = None
    duration_seconds: int | None = None
    created_at: datetime = Field(default_factory=utc_now)
