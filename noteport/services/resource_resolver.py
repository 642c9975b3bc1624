"""
Resource Resolver - Stores note resources and maps hashes to locators.

Handles:
- Upload of decoded resource bytes to object storage
- Per-job de-duplication by content hash
- Capture of upload failures without failing the note
"""

import asyncio
import mimetypes
import re

from pydantic import BaseModel, Field

from noteport.core.object_storage.base import ObjectStorage
from noteport.models.export import ExportResource, compute_content_hash
from noteport.models.ingestion import ResourceFailure
from noteport.utils.logger import get_logger, job_logger

logger = get_logger(__name__)

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/ogg": "ogg",
    "audio/m4a": "m4a",
    "audio/x-m4a": "m4a",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "text/plain": "txt",
    "text/html": "html",
    "text/csv": "csv",
}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
MAX_FILENAME_LENGTH = 100


def extension_for_mime(mime_type: str) -> str:
    """File extension (without dot) for a MIME type, ``bin`` if unknown."""
    if mime_type in MIME_EXTENSIONS:
        return MIME_EXTENSIONS[mime_type]
    guessed = mimetypes.guess_extension(mime_type)
    return guessed.lstrip(".") if guessed else "bin"


def build_resource_filename(original_filename: str | None, content_hash: str, mime_type: str) -> str:
    """
    Build the stored filename for a resource.

    The original name is sanitized and suffixed with a short hash so two
    different files called ``image.png`` never collide.
    """
    if original_filename:
        sanitized = _UNSAFE_FILENAME_CHARS.sub("_", original_filename)[:MAX_FILENAME_LENGTH]
        base, dot, ext = sanitized.rpartition(".")
        if not dot or not base:
            base, ext = sanitized, extension_for_mime(mime_type)
        return f"{base}_{content_hash[:8]}.{ext}"

    return f"resource_{content_hash[:16]}.{extension_for_mime(mime_type)}"


class StoredResource(BaseModel):
    """A resource after upload, as seen by one note."""

    content_hash: str
    locator: str
    storage_key: str
    filename: str
    original_filename: str | None = None
    mime_type: str
    size: int = Field(..., ge=0)
    width: int | None = None
    height: int | None = None
    duration_seconds: int | None = None
    reused: bool = Field(default=False, description="Bytes were already stored by this job")


class ResolvedResources(BaseModel):
    """Per-note result of resolving resources."""

    entries: dict[str, StoredResource] = Field(default_factory=dict)
    failures: list[ResourceFailure] = Field(default_factory=list)


class ResourceResolver:
    """
    Stores resources for one import job.

    The dedup table lives as long as the resolver, so identical bytes are
    uploaded once per job even when several notes embed them.
    """

    def __init__(self, storage: ObjectStorage, owner_id: str, job_id: str | None = None):
        """
        Initialize resolver.

        Args:
            storage: Object storage receiving the bytes
            owner_id: User owning the imported notes
            job_id: Import job, bound to log records
        """
        self.storage = storage
        self.owner_id = owner_id
        self.job_id = job_id
        self.log = job_logger(__name__, job_id) if job_id else logger

        # content hash -> (locator, storage key)
        self._stored: dict[str, tuple[str, str]] = {}
        self._hash_locks: dict[str, asyncio.Lock] = {}

    @property
    def stored_count(self) -> int:
        return len(self._stored)

    async def resolve(self, note_key: str, resources: list[ExportResource]) -> ResolvedResources:
        """
        Store a note's resources.

        Args:
            note_key: Identifier of the owning note, used in storage keys
            resources: Resources in document order

        Returns:
            Hash -> stored resource entries plus captured upload failures
        """
        resolved = ResolvedResources()

        for resource in resources:
            content_hash = compute_content_hash(resource.data)
            if content_hash in resolved.entries:
                continue

            try:
                resolved.entries[content_hash] = await self._store(note_key, content_hash, resource)
            except Exception as e:
                self.log.warning(f"Dropping resource {content_hash} of note {note_key}: {e}")
                resolved.failures.append(
                    ResourceFailure(
                        content_hash=content_hash,
                        filename=resource.original_filename,
                        message=str(e),
                    )
                )

        return resolved

    async def _store(self, note_key: str, content_hash: str, resource: ExportResource) -> StoredResource:
        filename = build_resource_filename(
            resource.original_filename, content_hash, resource.mime_type
        )

        lock = self._hash_locks.setdefault(content_hash, asyncio.Lock())
        async with lock:
            existing = self._stored.get(content_hash)
            if existing is None:
                storage_key = f"attachments/{self.owner_id}/{note_key}/{filename}"
                locator = await self.storage.put(resource.data, resource.mime_type, key=storage_key)
                self._stored[content_hash] = (locator, storage_key)
                reused = False
            else:
                locator, storage_key = existing
                reused = True

        if reused:
            self.log.debug(f"Reusing stored resource {content_hash} for note {note_key}")

        return StoredResource(
            content_hash=content_hash,
            locator=locator,
            storage_key=storage_key,
            filename=filename,
            original_filename=resource.original_filename,
            mime_type=resource.mime_type,
            size=resource.size,
            width=resource.width,
            height=resource.height,
            duration_seconds=resource.duration_seconds,
            reused=reused,
        )
