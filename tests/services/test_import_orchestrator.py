"""
Tests for the import orchestrator.

Tests cover:
1. End-to-end ENEX import (the "Grocery List" scenario)
2. Partial-failure isolation
3. Resource de-duplication and degraded attachments
4. Notebook resolution and tag upsert
5. File-level failures and job status
6. Progress monotonicity
"""

import asyncio
import hashlib

import pytest

from noteport.config import ImportConfig
from noteport.core.object_storage import InMemoryObjectStorage
from noteport.models import ImportJobStatus, ImportUpload, Notebook
from noteport.services.import_orchestrator import ImportOrchestrator, unique_tag_names
from noteport.utils.exceptions import (
    ImportJobError,
    ResourceStorageError,
    StoreError,
    UnsupportedFormatError,
)

OWNER = "user-1"
IMAGE = b"\x89PNG\r\n\x1a\n" + b"grocery-photo" * 16
IMAGE_HASH = hashlib.md5(IMAGE).hexdigest()


class FailingStorage(InMemoryObjectStorage):
    async def put(self, data: bytes, mime_type: str, key: str | None = None) -> str:
        raise ResourceStorageError("storage offline", context={"key": key})


@pytest.fixture
def orchestrator(sqlite_store, memory_storage):
    return ImportOrchestrator(sqlite_store, memory_storage, ImportConfig())


def upload(data: bytes, filename: str = "export.enex", **fields) -> ImportUpload:
    return ImportUpload(owner_id=OWNER, filename=filename, data=data, **fields)


@pytest.mark.integration
@pytest.mark.asyncio
class TestGroceryListScenario:
    """One note, two tags, one embedded image."""

    async def test_import(self, orchestrator, sqlite_store, memory_storage, enex):
        data = enex.document(
            enex.note(
                title="Grocery List",
                body=f'<div>Milk</div><en-media hash="{IMAGE_HASH}" type="image/png"/>',
                tags=["errands", "home"],
                resources=[enex.resource(IMAGE, mime="image/png")],
            )
        )

        job = await orchestrator.run(upload(data))

        assert job.total_notes == 1
        assert job.imported_count == 1
        assert job.failed_count == 0
        assert job.status == ImportJobStatus.COMPLETED
        assert job.progress_percent == 100
        assert job.completed_at is not None

        notes = await sqlite_store.list_notes(job.notebook_id)
        assert [n.title for n in notes] == ["Grocery List"]
        note = notes[0]

        tags = await sqlite_store.list_note_tags(note.id)
        assert sorted(t.name for t in tags) == ["errands", "home"]

        attachments = await sqlite_store.list_attachments(note.id)
        assert len(attachments) == 1
        assert attachments[0].hash == IMAGE_HASH
        assert attachments[0].size == len(IMAGE)
        assert attachments[0].locator in note.content
        assert IMAGE_HASH not in note.content

        assert note.content_plaintext == "Milk"
        assert note.original_markup.startswith("<?xml")
        assert note.import_source == "enex"
        assert note.import_job_id == job.id
        assert memory_storage.put_count == 1

        # Persisted job matches the returned one
        stored = await sqlite_store.get_job(job.id)
        assert stored.status == ImportJobStatus.COMPLETED
        assert stored.imported_count == 1


@pytest.mark.integration
@pytest.mark.asyncio
class TestPartialFailure:
    """One bad note never stops the others."""

    async def test_bad_timestamp_isolated(self, orchestrator, sqlite_store, enex):
        data = enex.document(
            enex.note(title="Monday"),
            enex.note(title="Broken", created="99999999T999999Z"),
            enex.note(title="Wednesday"),
            enex.note(title="Thursday"),
        )

        job = await orchestrator.run(upload(data))

        assert job.total_notes == 4
        assert job.imported_count == 3
        assert job.failed_count == 1
        assert job.status == ImportJobStatus.COMPLETED_WITH_ERRORS
        assert job.errors[0].note_title == "Broken"

        titles = [n.title for n in await sqlite_store.list_notes(job.notebook_id)]
        assert titles == ["Monday", "Wednesday", "Thursday"]

    async def test_store_failure_isolated(self, orchestrator, sqlite_store, enex, monkeypatch):
        """Test a persistence error on one note is recorded and skipped."""
        original = sqlite_store.create_note

        async def flaky_create_note(note, tag_ids, attachments):
            if note.title == "Cursed":
                raise StoreError("disk I/O error")
            await original(note, tag_ids, attachments)

        monkeypatch.setattr(sqlite_store, "create_note", flaky_create_note)
        data = enex.document(enex.note(title="Fine"), enex.note(title="Cursed"))

        job = await orchestrator.run(upload(data))

        assert job.imported_count == 1
        assert job.failed_count == 1
        assert job.errors[0].note_title == "Cursed"
        assert job.errors[0].message == "disk I/O error"

    async def test_all_notes_failing_marks_job_failed(self, orchestrator, enex):
        data = enex.document(enex.note(title="A", created="bad-date"), enex.note(title="B", created="bad-date"))

        job = await orchestrator.run(upload(data))

        assert job.status == ImportJobStatus.FAILED
        assert job.failed_count == 2
        assert job.progress_percent == 100


@pytest.mark.integration
@pytest.mark.asyncio
class TestResources:
    """Attachment handling across notes."""

    async def test_dedup_across_notes(self, orchestrator, sqlite_store, memory_storage, enex):
        """Test identical bytes are stored once and both notes point at it."""
        body = f'<en-media hash="{IMAGE_HASH}" type="image/png"/>'
        resource = enex.resource(IMAGE, mime="image/png")
        data = enex.document(
            enex.note(title="One", body=body, resources=[resource]),
            enex.note(title="Two", body=body, resources=[resource]),
        )

        job = await orchestrator.run(upload(data))

        assert memory_storage.put_count == 1
        notes = await sqlite_store.list_notes(job.notebook_id)
        locators = set()
        for note in notes:
            attachments = await sqlite_store.list_attachments(note.id)
            assert len(attachments) == 1
            locators.add(attachments[0].locator)
            assert attachments[0].locator in note.content
        assert len(locators) == 1

    async def test_failed_upload_degrades_note(self, sqlite_store, enex):
        """Test a storage failure leaves a placeholder and a warning."""
        orchestrator = ImportOrchestrator(sqlite_store, FailingStorage(), ImportConfig())
        data = enex.document(
            enex.note(
                title="Receipt",
                body=f'<p>Total</p><en-media hash="{IMAGE_HASH}" type="image/png"/>',
                resources=[enex.resource(IMAGE, mime="image/png", file_name="receipt.png")],
            )
        )

        job = await orchestrator.run(upload(data))

        assert job.status == ImportJobStatus.COMPLETED
        assert job.imported_count == 1
        assert len(job.warnings) == 1
        assert "receipt.png" in job.warnings[0].message

        note = (await sqlite_store.list_notes(job.notebook_id))[0]
        assert "en-media-placeholder" in note.content
        assert await sqlite_store.list_attachments(note.id) == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestNotebooksAndTags:
    """Destination notebook and tag handling."""

    async def test_default_notebook_created(self, orchestrator, sqlite_store, enex):
        job = await orchestrator.run(upload(enex.document(enex.note())))

        notebook = await sqlite_store.find_default_notebook(OWNER)
        assert notebook.name == "Imported Notes"
        assert notebook.is_default
        assert job.notebook_id == notebook.id

    async def test_existing_default_reused(self, orchestrator, sqlite_store, enex):
        default = await sqlite_store.create_notebook(
            Notebook(id="nb_home", owner_id=OWNER, name="Home", is_default=True)
        )

        job = await orchestrator.run(upload(enex.document(enex.note())))

        assert job.notebook_id == default.id

    async def test_named_notebook_reused(self, orchestrator, sqlite_store, enex):
        travel = await sqlite_store.create_notebook(Notebook(id="nb_travel", owner_id=OWNER, name="Travel"))

        job = await orchestrator.run(upload(enex.document(enex.note()), notebook_name=" Travel "))

        assert job.notebook_id == travel.id

    async def test_named_notebook_created(self, orchestrator, sqlite_store, enex):
        job = await orchestrator.run(upload(enex.document(enex.note()), notebook_name="Recipes"))

        notebook = await sqlite_store.find_notebook(OWNER, "Recipes")
        assert notebook.id == job.notebook_id
        assert not notebook.is_default

    async def test_tags_matched_case_insensitively(self, orchestrator, sqlite_store, enex):
        await sqlite_store.upsert_tag(OWNER, "Errands")
        data = enex.document(enex.note(title="Shopping", tags=["errands", "ERRANDS", " home "]))

        job = await orchestrator.run(upload(data))

        note = (await sqlite_store.list_notes(job.notebook_id))[0]
        tags = await sqlite_store.list_note_tags(note.id)
        assert sorted(t.name for t in tags) == ["Errands", "home"]
        assert await sqlite_store.count_rows("tags") == 2

    def test_unique_tag_names(self):
        assert unique_tag_names(["Work", " work", "", "Home", "WORK "]) == ["Work", "Home"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestFileLevelOutcomes:
    """Format rejection and document-level failures."""

    async def test_unsupported_format_creates_no_job(self, orchestrator, sqlite_store):
        with pytest.raises(UnsupportedFormatError):
            await orchestrator.run(upload(b"PK\x03\x04", filename="notes.xlsx"))

        assert await sqlite_store.list_jobs(OWNER) == []

    async def test_malformed_export_fails_job(self, orchestrator, sqlite_store):
        job = await orchestrator.run(upload(b"<en-export><note>", filename="broken.enex"))

        assert job.status == ImportJobStatus.FAILED
        assert job.errors[0].note_title == "broken.enex"
        assert job.notebook_id is None
        assert await sqlite_store.find_default_notebook(OWNER) is None
        assert (await sqlite_store.get_job(job.id)).status == ImportJobStatus.FAILED

    async def test_empty_export_fails_job(self, orchestrator, sqlite_store):
        job = await orchestrator.run(upload(b"<en-export></en-export>"))

        assert job.status == ImportJobStatus.FAILED
        assert job.total_notes is None
        assert "No notes" in job.errors[0].message

    async def test_unparseable_document_fails_job(self, orchestrator):
        job = await orchestrator.run(upload(b"this is not a pdf", filename="broken.pdf"))

        assert job.status == ImportJobStatus.FAILED
        assert job.errors[0].note_title == "broken.pdf"

    async def test_text_file_imported(self, orchestrator, sqlite_store):
        job = await orchestrator.run(upload(b"Call the plumber", filename="Reminders.txt"))

        assert job.status == ImportJobStatus.COMPLETED
        note = (await sqlite_store.list_notes(job.notebook_id))[0]
        assert note.title == "Reminders"
        assert note.content == "<pre>Call the plumber</pre>"
        assert note.content_plaintext == "Call the plumber"
        assert note.original_markup is None
        assert note.import_source == "txt"
        assert note.attributes["source"] == "import-file"

    async def test_text_file_kept_verbatim(self, orchestrator, sqlite_store):
        """Test assignments and legacy bytes in text survive translation."""
        job = await orchestrator.run(upload(b"one = 1\nonly = 3\nCaf\xe9", filename="vars.txt"))

        assert job.status == ImportJobStatus.COMPLETED
        note = (await sqlite_store.list_notes(job.notebook_id))[0]
        assert note.content == "<pre>one = 1\nonly = 3\nCaf\ufffd</pre>"

    async def test_infrastructure_error_aborts_job(self, orchestrator, sqlite_store, enex, monkeypatch):
        """Test errors outside the note loop fail the job and surface."""

        async def broken_create_notebook(notebook):
            raise StoreError("database is locked")

        monkeypatch.setattr(sqlite_store, "create_notebook", broken_create_notebook)

        with pytest.raises(ImportJobError):
            await orchestrator.run(upload(enex.document(enex.note())))

        jobs = await sqlite_store.list_jobs(OWNER)
        assert jobs[0].status == ImportJobStatus.FAILED
        assert "database is locked" in jobs[0].errors[0].message


@pytest.mark.integration
@pytest.mark.asyncio
class TestProgress:
    """Progress reporting while a job runs."""

    async def test_progress_monotonic(self, orchestrator, sqlite_store, enex, monkeypatch):
        """Test persisted progress never decreases and ends at 100."""
        observed = []
        original = sqlite_store.update_job

        async def recording_update(job):
            observed.append((job.progress_percent, job.imported_count + job.failed_count))
            await original(job)

        monkeypatch.setattr(sqlite_store, "update_job", recording_update)
        data = enex.document(
            *(enex.note(title=f"Note {i}") for i in range(5)),
            enex.note(title="Bad", created="garbage"),
        )

        job = await orchestrator.run(upload(data))

        progress = [p for p, _ in observed]
        processed = [c for _, c in observed]
        assert progress == sorted(progress)
        assert processed == sorted(processed)
        assert progress[-1] == 100
        assert job.total_notes == 6

    async def test_concurrent_processing(self, sqlite_store, memory_storage, enex):
        """Test bounded concurrency imports every note once."""
        orchestrator = ImportOrchestrator(
            sqlite_store, memory_storage, ImportConfig(max_concurrency=4)
        )
        body = f'<en-media hash="{IMAGE_HASH}" type="image/png"/>'
        resource = enex.resource(IMAGE, mime="image/png")
        data = enex.document(
            *(enex.note(title=f"Note {i}", body=body, tags=["shared"], resources=[resource]) for i in range(10))
        )

        job = await orchestrator.run(upload(data))

        assert job.status == ImportJobStatus.COMPLETED
        assert job.imported_count == 10
        assert memory_storage.put_count == 1
        assert await sqlite_store.count_rows("tags") == 1
        assert len(await sqlite_store.list_notes(job.notebook_id)) == 10

    async def test_concurrent_persistence_failure_stops_remaining_notes(
        self, sqlite_store, memory_storage, enex, monkeypatch
    ):
        """Test a job-level failure cancels sibling notes before the job is failed."""
        orchestrator = ImportOrchestrator(
            sqlite_store, memory_storage, ImportConfig(max_concurrency=3)
        )
        original_update = sqlite_store.update_job
        original_create = sqlite_store.create_note
        failed = []

        async def failing_update(job):
            if job.processed_count == 1 and not failed:
                failed.append(job.id)
                raise StoreError("disk full")
            await original_update(job)

        async def slow_create(note, tag_ids, attachments):
            await asyncio.sleep(0.01)
            await original_create(note, tag_ids, attachments)

        monkeypatch.setattr(sqlite_store, "update_job", failing_update)
        monkeypatch.setattr(sqlite_store, "create_note", slow_create)
        data = enex.document(*(enex.note(title=f"Note {i}") for i in range(6)))

        with pytest.raises(ImportJobError, match="disk full"):
            await orchestrator.run(upload(data))

        job = (await sqlite_store.list_jobs(OWNER))[0]
        assert job.status == ImportJobStatus.FAILED
        assert "disk full" in job.errors[-1].message
        notes_at_failure = len(await sqlite_store.list_notes(job.notebook_id))

        await asyncio.sleep(0.1)

        assert len(await sqlite_store.list_notes(job.notebook_id)) == notes_at_failure
        assert notes_at_failure < 6
