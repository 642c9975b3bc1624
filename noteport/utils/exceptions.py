"""
Custom exception hierarchy for Noteport.

Provides structured error types for the import pipeline.
All exceptions inherit from NoteportError for easy catching.
"""


class NoteportError(Exception):
    """
    Base exception for all Noteport errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, context: dict | None = None):
        """
        Initialize Noteport error.
        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class UnsupportedFormatError(NoteportError):
    """
    Unrecognized upload format.
    Raised by format detection before any import job is created.
    """

    pass


class MalformedExportError(NoteportError):
    """
    Export document cannot be parsed at all.
    Raised for invalid XML or a missing structural element in an ENEX file.
    """

    pass


class UnparseableFileError(NoteportError):
    """
    Single-note file cannot be decoded.
    Raised when a PDF, DOCX or text upload is corrupt or unreadable.
    """

    pass


class NoteImportError(NoteportError):
    """
    Failure while parsing or materializing one note.
    Recorded in the job's error list; processing continues.
    """

    pass


class ResourceStorageError(NoteportError):
    """
    A single attachment failed to upload.
    The owning note still imports without that attachment.
    """

    pass


class StoreError(NoteportError):
    """
    Persistence operation errors.
    Raised when the note store cannot read or write rows.
    """

    pass


class ImportJobError(NoteportError):
    """
    Job-level failure outside the per-note boundary.
    Raised after the job has been recorded as failed.
    """

    pass


class JobStateError(NoteportError):
    """
    Illegal import job transition.
    Raised when a terminal job is mutated or counters would move backwards.
    """

    pass


class ValidationError(NoteportError):
    """
    Validation errors.
    Raised when input validation fails or data is invalid.
    """

    pass


class NotFoundError(NoteportError):
    """
    Resource not found errors.
    Raised when a requested job, note or object doesn't exist.
    """

    pass


class ConfigurationError(NoteportError):
    """
    Configuration errors.
    Raised when configuration is invalid or missing required values.
    """

    pass
