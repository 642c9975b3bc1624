"""
ENEX (Evernote Export) parser.

Streams an ``<en-export>`` document into an ExportDocument. Note bodies are
ENML carried in CDATA and are passed through as opaque strings; only the
surrounding export structure is interpreted here.

Failure policy:
- Invalid XML, a wrong root element, or a note without a ``<title>`` element
  fails the whole file with MalformedExportError.
- A note with a bad timestamp, number or resource payload is dropped from
  ``notes`` and reported in ``failures``; the rest of the export survives.
"""

import base64
import io
import re
import xml.etree.ElementTree as ET
from datetime import datetime

from noteport.models.export import (
    ContentFormat,
    ExportDocument,
    ExportNote,
    ExportResource,
    ImportFormat,
    NoteAttributes,
    NoteFailure,
    ResourceAttributes,
)
from noteport.parsers.base import ExportParser
from noteport.utils.exceptions import MalformedExportError, NoteImportError
from noteport.utils.logger import get_logger
from noteport.utils.timestamps import parse_enex_timestamp

logger = get_logger(__name__)

ROOT_TAG = "en-export"
NOTE_TAG = "note"
UNTITLED = "Untitled"
DEFAULT_RESOURCE_MIME = "application/octet-stream"

_WHITESPACE = re.compile(r"\s+")


def _child_text(parent: ET.Element | None, tag: str) -> str | None:
    """Stripped text of a child element, or None when missing or empty."""
    if parent is None:
        return None
    child = parent.find(tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _optional_int(parent: ET.Element | None, tag: str) -> int | None:
    text = _child_text(parent, tag)
    return int(text) if text is not None else None


def _optional_float(parent: ET.Element | None, tag: str) -> float | None:
    text = _child_text(parent, tag)
    return float(text) if text is not None else None


def _optional_timestamp(parent: ET.Element | None, tag: str) -> datetime | None:
    text = _child_text(parent, tag)
    return parse_enex_timestamp(text) if text is not None else None


class EnexParser(ExportParser):
    """Parser for Evernote ``.enex`` exports."""

    def parse(
        self,
        data: bytes,
        filename: str,
        last_modified: datetime | None = None,
    ) -> ExportDocument:
        """
        Parse an ENEX export.

        Args:
            data: Raw ENEX bytes
            filename: Upload filename, used in error context
            last_modified: Ignored; ENEX carries its own timestamps

        Returns:
            ExportDocument with parsed notes and per-note failures

        Raises:
            MalformedExportError: If the document itself cannot be parsed
        """
        root: ET.Element | None = None
        depth = 0
        note_index = 0
        document = ExportDocument(source_format=ImportFormat.ENEX)

        try:
            for event, elem in ET.iterparse(io.BytesIO(data), events=("start", "end")):
                if event == "start":
                    depth += 1
                    if root is None:
                        root = elem
                        self._read_export_metadata(elem, document, filename)
                    continue

                depth -= 1
                # Only direct children of <en-export> are notes
                if depth == 1 and elem.tag == NOTE_TAG:
                    note_index += 1
                    self._collect_note(elem, note_index, document, filename)
                    root.remove(elem)
        except ET.ParseError as e:
            raise MalformedExportError(
                f"Invalid ENEX XML in {filename}: {e}",
                context={"filename": filename},
            ) from e

        logger.info(
            f"Parsed ENEX {filename}: {len(document.notes)} notes, "
            f"{len(document.failures)} rejected"
        )
        return document

    def _read_export_metadata(
        self, root: ET.Element, document: ExportDocument, filename: str
    ) -> None:
        if root.tag != ROOT_TAG:
            raise MalformedExportError(
                f"Invalid ENEX file {filename}: root element is <{root.tag}>, expected <{ROOT_TAG}>",
                context={"filename": filename, "root": root.tag},
            )

        document.source_application = root.get("application")
        document.format_version = root.get("version")

        export_date = root.get("export-date")
        if export_date:
            try:
                document.exported_at = parse_enex_timestamp(export_date)
            except ValueError:
                logger.warning(f"Ignoring unparseable export-date {export_date!r} in {filename}")

    def _collect_note(
        self, elem: ET.Element, index: int, document: ExportDocument, filename: str
    ) -> None:
        title_elem = elem.find("title")
        if title_elem is None:
            raise MalformedExportError(
                f"Note #{index} in {filename} has no <title> element",
                context={"filename": filename, "note_index": index},
            )
        title = (title_elem.text or "").strip() or UNTITLED

        try:
            document.notes.append(self._parse_note(elem, title))
        except (ValueError, NoteImportError) as e:
            logger.warning(f"Skipping malformed note #{index} {title!r} in {filename}: {e}")
            document.failures.append(NoteFailure(note_title=title, message=str(e)))

    def _parse_note(self, elem: ET.Element, title: str) -> ExportNote:
        content_elem = elem.find("content")
        content = (content_elem.text or "").strip() if content_elem is not None else ""

        tags = [tag.text.strip() for tag in elem.findall("tag") if tag.text and tag.text.strip()]

        resources = []
        for resource_elem in elem.findall("resource"):
            resource = self._parse_resource(resource_elem)
            if resource is not None:
                resources.append(resource)

        return ExportNote(
            title=title,
            raw_content=content,
            content_format=ContentFormat.ENML,
            created_at=_optional_timestamp(elem, "created"),
            updated_at=_optional_timestamp(elem, "updated"),
            tag_names=tags,
            attributes=self._parse_note_attributes(elem.find("note-attributes")),
            resources=resources,
        )

    def _parse_resource(self, elem: ET.Element) -> ExportResource | None:
        data_elem = elem.find("data")
        if data_elem is None or not (data_elem.text or "").strip():
            return None

        encoding = (data_elem.get("encoding") or "base64").strip().lower()
        if encoding != "base64":
            raise NoteImportError(f"Unsupported resource encoding: {encoding}")

        payload = _WHITESPACE.sub("", data_elem.text)
        # binascii.Error is a ValueError and fails only this note
        data = base64.b64decode(payload, validate=True)
        if not data:
            return None

        attributes = self._parse_resource_attributes(elem.find("resource-attributes"))
        recognition_elem = elem.find("recognition")

        return ExportResource.from_data(
            data,
            mime_type=_child_text(elem, "mime") or DEFAULT_RESOURCE_MIME,
            width=_optional_int(elem, "width"),
            height=_optional_int(elem, "height"),
            duration_seconds=_optional_int(elem, "duration"),
            original_filename=attributes.file_name if attributes else None,
            recognition=recognition_elem.text if recognition_elem is not None else None,
            attributes=attributes,
        )

    def _parse_note_attributes(self, elem: ET.Element | None) -> NoteAttributes | None:
        if elem is None:
            return None
        return NoteAttributes(
            source_url=_child_text(elem, "source-url"),
            source_application=_child_text(elem, "source-application"),
            latitude=_optional_float(elem, "latitude"),
            longitude=_optional_float(elem, "longitude"),
            altitude=_optional_float(elem, "altitude"),
            author=_child_text(elem, "author"),
            source=_child_text(elem, "source"),
            place_name=_child_text(elem, "place-name"),
            content_class=_child_text(elem, "content-class"),
            subject_date=_child_text(elem, "subject-date"),
            reminder_order=_optional_int(elem, "reminder-order"),
            reminder_time=_child_text(elem, "reminder-time"),
            reminder_done_time=_child_text(elem, "reminder-done-time"),
        )

    def _parse_resource_attributes(self, elem: ET.Element | None) -> ResourceAttributes | None:
        if elem is None:
            return None
        return ResourceAttributes(
            source_url=_child_text(elem, "source-url"),
            timestamp=_child_text(elem, "timestamp"),
            latitude=_optional_float(elem, "latitude"),
            longitude=_optional_float(elem, "longitude"),
            altitude=_optional_float(elem, "altitude"),
            camera_make=_child_text(elem, "camera-make"),
            camera_model=_child_text(elem, "camera-model"),
            file_name=_child_text(elem, "file-name"),
            attachment=(_child_text(elem, "attachment") or "").lower() == "true",
        )
