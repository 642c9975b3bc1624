"""
Format detection for uploads.

The file extension wins over the declared MIME type, since browsers often
send ``application/octet-stream``. The MIME type is consulted only when the
filename has no extension at all.
"""

from pathlib import PurePath

from noteport.models.export import ImportFormat
from noteport.parsers.base import ExportParser
from noteport.parsers.document_parser import DocumentParser
from noteport.parsers.enex_parser import EnexParser
from noteport.utils.exceptions import UnsupportedFormatError

EXTENSION_FORMATS: dict[str, ImportFormat] = {
    ".enex": ImportFormat.ENEX,
    ".pdf": ImportFormat.PDF,
    ".docx": ImportFormat.DOCX,
    ".txt": ImportFormat.TEXT,
}

MIME_FORMATS: dict[str, ImportFormat] = {
    "application/enex+xml": ImportFormat.ENEX,
    "application/pdf": ImportFormat.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ImportFormat.DOCX,
    "text/plain": ImportFormat.TEXT,
}

SUPPORTED_EXTENSIONS = tuple(EXTENSION_FORMATS)


class FormatDetector:
    """Routes an upload to exactly one parser."""

    def __init__(self, source_application: str = "Noteport Import"):
        """
        Initialize format detector.

        Args:
            source_application: Label passed to the generic document parser
        """
        self.source_application = source_application

    def detect(self, filename: str, mime_type: str | None = None) -> ImportFormat:
        """
        Determine the upload format.

        Args:
            filename: Upload filename
            mime_type: Declared MIME type, possibly generic

        Returns:
            Detected ImportFormat

        Raises:
            UnsupportedFormatError: If the extension or MIME type is not recognized
        """
        extension = PurePath(filename).suffix.lower()
        if extension:
            file_format = EXTENSION_FORMATS.get(extension)
            if file_format is None:
                raise UnsupportedFormatError(
                    f"Unsupported file type {extension!r}. "
                    f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}",
                    context={"filename": filename, "mime_type": mime_type},
                )
            return file_format

        declared = (mime_type or "").split(";")[0].strip().lower()
        file_format = MIME_FORMATS.get(declared)
        if file_format is None:
            raise UnsupportedFormatError(
                f"Cannot determine format of {filename!r} (MIME type {mime_type!r})",
                context={"filename": filename, "mime_type": mime_type},
            )
        return file_format

    def select(self, filename: str, mime_type: str | None = None) -> ExportParser:
        """Return the parser for an upload."""
        file_format = self.detect(filename, mime_type)
        if file_format == ImportFormat.ENEX:
            return EnexParser()
        return DocumentParser(file_format, source_application=self.source_application)
