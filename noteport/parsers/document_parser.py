"""
Generic document parser for PDF, DOCX and plain-text uploads.

Each file becomes exactly one synthetic note with an HTML body. A PDF or DOCX
that cannot be decoded raises UnparseableFileError; text is decoded
leniently, with invalid bytes replaced.
"""

import html
import io
import re
from datetime import datetime
from pathlib import PurePath

import mammoth
from pypdf import PdfReader

from noteport.models.export import (
    ContentFormat,
    ExportDocument,
    ExportNote,
    ImportFormat,
    NoteAttributes,
)
from noteport.parsers.base import ExportParser
from noteport.utils.exceptions import UnparseableFileError, ValidationError
from noteport.utils.logger import get_logger
from noteport.utils.timestamps import utc_now

logger = get_logger(__name__)

IMPORT_FILE_SOURCE = "import-file"

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def title_from_filename(filename: str) -> str:
    """Filename without directory or extension."""
    return PurePath(filename).stem or "Untitled"


def reflow_text_to_html(text: str) -> str:
    """
    Turn extracted text into simple paragraphs.

    Blank-line separated blocks become ``<p>`` elements and remaining single
    line breaks become ``<br/>``.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    paragraphs = []
    for block in _PARAGRAPH_BREAK.split(normalized):
        lines = [line.strip() for line in block.split("\n") if line.strip()]
        if lines:
            paragraphs.append("<p>" + "<br/>".join(html.escape(line) for line in lines) + "</p>")
    return "<div>" + "".join(paragraphs) + "</div>"


class DocumentParser(ExportParser):
    """Parser wrapping one PDF, DOCX or text file as a single note."""

    def __init__(self, file_format: ImportFormat, source_application: str = "Noteport Import"):
        """
        Initialize document parser.

        Args:
            file_format: One of PDF, DOCX or TEXT
            source_application: Label recorded as the producing application
        """
        if file_format == ImportFormat.ENEX:
            raise ValidationError("DocumentParser does not handle ENEX exports")
        self.file_format = file_format
        self.source_application = source_application

    def parse(
        self,
        data: bytes,
        filename: str,
        last_modified: datetime | None = None,
    ) -> ExportDocument:
        """
        Convert a single file into a one-note ExportDocument.

        Raises:
            UnparseableFileError: If the file content cannot be decoded
        """
        try:
            if self.file_format == ImportFormat.PDF:
                body = self._pdf_to_html(data)
            elif self.file_format == ImportFormat.DOCX:
                body = self._docx_to_html(data, filename)
            else:
                body = self._text_to_html(data)
        except Exception as e:
            logger.error(f"Error parsing {self.file_format.value} file {filename}: {e}")
            raise UnparseableFileError(
                f"Failed to parse file {filename}: {e}",
                context={"filename": filename, "format": self.file_format.value},
            ) from e

        now = utc_now()
        note = ExportNote(
            title=title_from_filename(filename),
            raw_content=body,
            content_format=ContentFormat.HTML,
            created_at=last_modified or now,
            updated_at=last_modified or now,
            attributes=NoteAttributes(
                source_application=self.source_application,
                source=IMPORT_FILE_SOURCE,
            ),
        )

        return ExportDocument(
            exported_at=now,
            source_application=self.source_application,
            source_format=self.file_format,
            notes=[note],
        )

    def _pdf_to_html(self, data: bytes) -> str:
        reader = PdfReader(io.BytesIO(data))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
        return reflow_text_to_html("\n\n".join(page for page in pages if page))

    def _docx_to_html(self, data: bytes, filename: str) -> str:
        result = mammoth.convert_to_html(io.BytesIO(data))
        for message in result.messages:
            logger.warning(f"DOCX conversion {message.type} for {filename}: {message.message}")
        return result.value

    def _text_to_html(self, data: bytes) -> str:
        text = data.decode("utf-8-sig", errors="replace")
        return f"<pre>{html.escape(text)}</pre>"
