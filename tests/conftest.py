"""
Shared test fixtures for all test modules.

Stores use temporary SQLite files and in-memory object storage, so no
external services are needed.
"""

import base64
from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest

from noteport.config import Config, DatabaseConfig, ImportConfig, LoggingConfig, StorageConfig
from noteport.core.note_store.sqlite_store import SQLiteNoteStore
from noteport.core.object_storage.memory_storage import InMemoryObjectStorage

ENML_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<!DOCTYPE en-note SYSTEM "http://xml.evernote.com/pub/enml2.dtd">'
)

# ENEX builders


def enex_resource(
    data: bytes,
    mime: str = "image/png",
    file_name: str | None = None,
    width: int | None = None,
    height: int | None = None,
) -> str:
    """Render a <resource> element with base64 data."""
    encoded = base64.b64encode(data).decode("ascii")
    # Wrapped like real exports
    wrapped = "\n".join(encoded[i : i + 76] for i in range(0, len(encoded), 76))
    parts = [f'<resource><data encoding="base64">\n{wrapped}\n</data><mime>{mime}</mime>']
    if width is not None:
        parts.append(f"<width>{width}</width>")
    if height is not None:
        parts.append(f"<height>{height}</height>")
    if file_name:
        parts.append(f"<resource-attributes><file-name>{file_name}</file-name></resource-attributes>")
    parts.append("</resource>")
    return "".join(parts)


def enex_note(
    title: str | None = "Note",
    body: str = "<div>Hello</div>",
    tags: list[str] | None = None,
    resources: list[str] | None = None,
    created: str | None = "20240115T103000Z",
    updated: str | None = "20240116T090000Z",
    attributes: str = "",
) -> str:
    """Render a <note> element whose content is an ENML document."""
    parts = ["<note>"]
    if title is not None:
        parts.append(f"<title>{title}</title>")
    parts.append(f"<content><![CDATA[{ENML_HEADER}<en-note>{body}</en-note>]]></content>")
    if created is not None:
        parts.append(f"<created>{created}</created>")
    if updated is not None:
        parts.append(f"<updated>{updated}</updated>")
    for tag in tags or []:
        parts.append(f"<tag>{tag}</tag>")
    if attributes:
        parts.append(f"<note-attributes>{attributes}</note-attributes>")
    parts.extend(resources or [])
    parts.append("</note>")
    return "".join(parts)


def enex_document(*notes: str, export_date: str = "20240201T120000Z") -> bytes:
    """Render a complete ENEX export."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<!DOCTYPE en-export SYSTEM "http://xml.evernote.com/pub/evernote-export3.dtd">\n'
        f'<en-export export-date="{export_date}" application="Evernote" version="10.0">'
        + "".join(notes)
        + "</en-export>"
    ).encode("utf-8")


@pytest.fixture
def enex():
    """ENEX builders: enex.note(...), enex.resource(...), enex.document(...)."""
    return SimpleNamespace(note=enex_note, resource=enex_resource, document=enex_document)


# Configuration


@pytest.fixture
def test_config(tmp_path) -> Config:
    """Config pointing at temporary paths with in-memory object storage."""
    return Config(
        database=DatabaseConfig(path=str(tmp_path / "noteport_test.db")),
        storage=StorageConfig(backend="memory"),
        imports=ImportConfig(),
        logging=LoggingConfig(log_to_file=False),
    )


# Stores


@pytest.fixture
async def sqlite_store(tmp_path) -> AsyncGenerator[SQLiteNoteStore, None]:
    """Initialized SQLite note store on a temporary file."""
    store = SQLiteNoteStore(db_path=str(tmp_path / "notes.db"))
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def memory_storage() -> InMemoryObjectStorage:
    """Fresh in-memory object storage."""
    return InMemoryObjectStorage()
