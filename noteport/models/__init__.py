"""
Data models for Noteport.

Three groups:
1. Export model (ExportDocument, ExportNote, ExportResource) built by parsers
2. Persisted records (Notebook, Note, Tag, Attachment) written by an import
3. Job tracking (ImportJob, ImportJobSnapshot) and per-note outcomes
"""

from noteport.models.export import (
    ContentFormat,
    ExportDocument,
    ExportNote,
    ExportResource,
    ImportFormat,
    NoteAttributes,
    NoteFailure,
    ResourceAttributes,
    compute_content_hash,
)
from noteport.models.ingestion import (
    ImportUpload,
    NoteFailed,
    NoteImported,
    NoteOutcome,
    ResourceFailure,
)
from noteport.models.job import ImportJob, ImportJobSnapshot, ImportJobStatus, compute_progress
from noteport.models.records import Attachment, Note, Notebook, Tag, normalize_tag_name

__all__ = [
    # Export models
    "ExportDocument",
    "ExportNote",
    "ExportResource",
    "NoteAttributes",
    "ResourceAttributes",
    "NoteFailure",
    "ImportFormat",
    "ContentFormat",
    "compute_content_hash",
    # Ingestion
    "ImportUpload",
    "NoteOutcome",
    "NoteImported",
    "NoteFailed",
    "ResourceFailure",
    # Jobs
    "ImportJob",
    "ImportJobSnapshot",
    "ImportJobStatus",
    "compute_progress",
    # Records
    "Notebook",
    "Note",
    "Tag",
    "Attachment",
    "normalize_tag_name",
]
