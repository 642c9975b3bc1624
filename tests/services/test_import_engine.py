"""
Tests for the ImportEngine composition root.
"""

import pytest

from noteport.core.object_storage import InMemoryObjectStorage
from noteport.core.note_store import SQLiteNoteStore
from noteport.models import ImportJobStatus
from noteport.services.import_engine import ImportEngine
from noteport.utils.exceptions import NotFoundError, UnsupportedFormatError, ValidationError


@pytest.fixture
async def engine(test_config):
    engine = ImportEngine(config=test_config)
    await engine.initialize()
    yield engine
    await engine.close()


@pytest.mark.integration
@pytest.mark.asyncio
class TestImportEngine:
    """Upload validation and job queries through the engine."""

    async def test_builds_components_from_config(self, engine):
        assert isinstance(engine.store, SQLiteNoteStore)
        assert isinstance(engine.storage, InMemoryObjectStorage)

    async def test_import_text_file(self, engine):
        snapshot = await engine.import_file("user-1", "todo.txt", b"Buy stamps", mime_type="text/plain")

        assert snapshot.status == ImportJobStatus.COMPLETED
        assert snapshot.progress == 100
        assert snapshot.imported_count == 1

        fetched = await engine.get_job(snapshot.id, owner_id="user-1")
        assert fetched.id == snapshot.id
        assert [j.id for j in await engine.list_jobs("user-1")] == [snapshot.id]

    async def test_import_enex_into_named_notebook(self, engine, enex):
        data = enex.document(enex.note(title="Trip"), enex.note(title="Packing"))

        snapshot = await engine.import_file("user-1", "travel.enex", data, notebook_name="Travel")

        notebook = await engine.store.find_notebook("user-1", "Travel")
        assert snapshot.notebook_id == notebook.id
        assert snapshot.total_notes == 2

    async def test_empty_upload_rejected(self, engine):
        with pytest.raises(ValidationError):
            await engine.import_file("user-1", "empty.enex", b"")

        assert await engine.list_jobs("user-1") == []

    async def test_missing_filename_rejected(self, engine):
        with pytest.raises(ValidationError):
            await engine.import_file("user-1", "", b"data")

    async def test_oversized_upload_rejected(self, engine):
        engine.config.imports.max_upload_bytes = 8

        with pytest.raises(ValidationError):
            await engine.import_file("user-1", "big.txt", b"0123456789")

    async def test_unsupported_format(self, engine):
        with pytest.raises(UnsupportedFormatError):
            await engine.import_file("user-1", "sheet.xlsx", b"PK\x03\x04")

    async def test_get_job_of_other_owner(self, engine):
        snapshot = await engine.import_file("user-1", "a.txt", b"hello")

        with pytest.raises(NotFoundError):
            await engine.get_job(snapshot.id, owner_id="user-2")
