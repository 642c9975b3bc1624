"""Utility modules for Noteport."""

from noteport.utils.exceptions import (
    ConfigurationError,
    ImportJobError,
    JobStateError,
    MalformedExportError,
    NoteImportError,
    NoteportError,
    NotFoundError,
    ResourceStorageError,
    StoreError,
    UnparseableFileError,
    UnsupportedFormatError,
    ValidationError,
)
from noteport.utils.id_generator import (
    generate_attachment_id,
    generate_job_id,
    generate_note_id,
    generate_notebook_id,
    generate_tag_id,
)
from noteport.utils.logger import get_logger, job_logger, setup_logging
from noteport.utils.timestamps import from_epoch_millis, parse_enex_timestamp, utc_now

__all__ = [
    # Logging
    "get_logger",
    "job_logger",
    "setup_logging",
    # ID Generators
    "generate_note_id",
    "generate_notebook_id",
    "generate_tag_id",
    "generate_attachment_id",
    "generate_job_id",
    # Timestamps
    "parse_enex_timestamp",
    "from_epoch_millis",
    "utc_now",
    # Exceptions
    "NoteportError",
    "UnsupportedFormatError",
    "MalformedExportError",
    "UnparseableFileError",
    "NoteImportError",
    "ResourceStorageError",
    "StoreError",
    "ImportJobError",
    "JobStateError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
]
