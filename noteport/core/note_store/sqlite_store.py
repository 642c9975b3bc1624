"""
SQLite note store implementation using aiosqlite.

One connection per store. Writes are serialized with an asyncio lock so that
concurrent note imports never interleave statements inside each other's
transactions.
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path

import aiosqlite

from noteport.core.note_store.base import NoteStore
from noteport.models.export import NoteFailure
from noteport.models.job import ImportJob, ImportJobStatus
from noteport.models.records import Attachment, Note, Notebook, Tag, normalize_tag_name
from noteport.utils.exceptions import StoreError, ValidationError
from noteport.utils.id_generator import generate_tag_id
from noteport.utils.logger import get_logger

logger = get_logger(__name__)

COUNTABLE_TABLES = {"notebooks", "tags", "notes", "note_tags", "attachments", "import_jobs"}

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS notebooks (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        name TEXT NOT NULL,
        is_default INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (owner_id, name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tags (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        name TEXT NOT NULL,
        normalized_name TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE (owner_id, normalized_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notes (
        id TEXT PRIMARY KEY,
        notebook_id TEXT NOT NULL,
        owner_id TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        content_plaintext TEXT NOT NULL DEFAULT '',
        original_markup TEXT,
        source_url TEXT,
        author TEXT,
        latitude REAL,
        longitude REAL,
        altitude REAL,
        attributes TEXT DEFAULT '{}',
        source_created_at TEXT,
        source_updated_at TEXT,
        import_source TEXT NOT NULL,
        import_job_id TEXT,
        imported_at TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (notebook_id) REFERENCES notebooks(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS note_tags (
        note_id TEXT NOT NULL,
        tag_id TEXT NOT NULL,
        PRIMARY KEY (note_id, tag_id),
        FOREIGN KEY (note_id) REFERENCES notes(id) ON DELETE CASCADE,
        FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attachments (
        id TEXT PRIMARY KEY,
        note_id TEXT NOT NULL,
        filename TEXT NOT NULL,
        original_name TEXT,
        mime_type TEXT NOT NULL,
        size INTEGER NOT NULL,
        storage_key TEXT NOT NULL,
        locator TEXT NOT NULL,
        hash TEXT NOT NULL,
        width INTEGER,
        height INTEGER,
        duration_seconds INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY (note_id) REFERENCES notes(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS import_jobs (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL,
        source_filename TEXT NOT NULL,
        status TEXT NOT NULL,
        notebook_id TEXT,
        total_notes INTEGER,
        imported_count INTEGER NOT NULL DEFAULT 0,
        failed_count INTEGER NOT NULL DEFAULT 0,
        errors TEXT DEFAULT '[]',
        warnings TEXT DEFAULT '[]',
        started_at TEXT,
        completed_at TEXT,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_notes_notebook ON notes(notebook_id)",
    "CREATE INDEX IF NOT EXISTS idx_attachments_note ON attachments(note_id)",
    "CREATE INDEX IF NOT EXISTS idx_jobs_owner_created ON import_jobs(owner_id, created_at)",
]


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteNoteStore(NoteStore):
    """
    SQLite-backed note store.

    Features:
    - Case-insensitive tag uniqueness per owner enforced by the schema
    - One transaction per imported note
    - Import job rows with JSON error lists
    """

    def __init__(self, db_path: str = "data/noteport.db"):
        """
        Initialize SQLite note store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            self.connection.row_factory = aiosqlite.Row
            await self.connection.execute("PRAGMA foreign_keys = ON")
            await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.commit()

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        for statement in SCHEMA:
            await self.connection.execute(statement)
        await self.connection.commit()

        logger.info(f"SQLite note store ready at {self.db_path}")

    async def close(self) -> None:
        """Close the connection."""
        if self.connection is not None:
            await self.connection.close()
            self.connection = None

    # ═══════════════════════════════════════════════════════════
    # NOTEBOOKS
    # ═══════════════════════════════════════════════════════════

    async def find_notebook(self, owner_id: str, name: str) -> Notebook | None:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT * FROM notebooks WHERE owner_id = ? AND name = ?", (owner_id, name)
        )
        row = await cursor.fetchone()
        return self._row_to_notebook(row) if row else None

    async def find_default_notebook(self, owner_id: str) -> Notebook | None:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT * FROM notebooks WHERE owner_id = ? AND is_default = 1 "
            "ORDER BY created_at LIMIT 1",
            (owner_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_notebook(row) if row else None

    async def create_notebook(self, notebook: Notebook) -> Notebook:
        await self.connect()

        async with self._write_lock:
            try:
                await self.connection.execute(
                    """
                    INSERT INTO notebooks (id, owner_id, name, is_default, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        notebook.id,
                        notebook.owner_id,
                        notebook.name,
                        int(notebook.is_default),
                        notebook.created_at.isoformat(),
                        notebook.updated_at.isoformat(),
                    ),
                )
                await self.connection.commit()
                return notebook
            except aiosqlite.IntegrityError:
                await self.connection.rollback()

        existing = await self.find_notebook(notebook.owner_id, notebook.name)
        if existing is None:
            raise StoreError(
                f"Notebook {notebook.name!r} conflicted on insert but could not be fetched",
                context={"owner_id": notebook.owner_id},
            )
        return existing

    # ═══════════════════════════════════════════════════════════
    # TAGS
    # ═══════════════════════════════════════════════════════════

    async def upsert_tag(self, owner_id: str, name: str) -> Tag:
        await self.connect()

        clean_name = name.strip()
        if not clean_name:
            raise ValidationError("Tag name cannot be empty")
        normalized = normalize_tag_name(clean_name)
        tag = Tag(id=generate_tag_id(), owner_id=owner_id, name=clean_name)

        # Insert first; the unique index decides who wins a race
        async with self._write_lock:
            try:
                await self.connection.execute(
                    """
                    INSERT INTO tags (id, owner_id, name, normalized_name, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (tag.id, owner_id, clean_name, normalized, tag.created_at.isoformat()),
                )
                await self.connection.commit()
                return tag
            except aiosqlite.IntegrityError:
                await self.connection.rollback()

        cursor = await self.connection.execute(
            "SELECT * FROM tags WHERE owner_id = ? AND normalized_name = ?",
            (owner_id, normalized),
        )
        row = await cursor.fetchone()
        if row is None:
            raise StoreError(
                f"Tag {clean_name!r} conflicted on insert but could not be fetched",
                context={"owner_id": owner_id},
            )
        return self._row_to_tag(row)

    # ═══════════════════════════════════════════════════════════
    # NOTES
    # ═══════════════════════════════════════════════════════════

    async def create_note(
        self, note: Note, tag_ids: list[str], attachments: list[Attachment]
    ) -> None:
        await self.connect()

        async with self._write_lock:
            try:
                await self.connection.execute(
                    """
                    INSERT INTO notes (
                        id, notebook_id, owner_id, title, content, content_plaintext,
                        original_markup, source_url, author, latitude, longitude, altitude,
                        attributes, source_created_at, source_updated_at, import_source,
                        import_job_id, imported_at, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        note.id,
                        note.notebook_id,
                        note.owner_id,
                        note.title,
                        note.content,
                        note.content_plaintext,
                        note.original_markup,
                        note.source_url,
                        note.author,
                        note.latitude,
                        note.longitude,
                        note.altitude,
                        json.dumps(note.attributes),
                        _iso(note.source_created_at),
                        _iso(note.source_updated_at),
                        note.import_source,
                        note.import_job_id,
                        note.imported_at.isoformat(),
                        note.created_at.isoformat(),
                        note.updated_at.isoformat(),
                    ),
                )

                await self.connection.executemany(
                    "INSERT OR IGNORE INTO note_tags (note_id, tag_id) VALUES (?, ?)",
                    [(note.id, tag_id) for tag_id in tag_ids],
                )

                await self.connection.executemany(
                    """
                    INSERT INTO attachments (
                        id, note_id, filename, original_name, mime_type, size, storage_key,
                        locator, hash, width, height, duration_seconds, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            attachment.id,
                            note.id,
                            attachment.filename,
                            attachment.original_name,
                            attachment.mime_type,
                            attachment.size,
                            attachment.storage_key,
                            attachment.locator,
                            attachment.hash,
                            attachment.width,
                            attachment.height,
                            attachment.duration_seconds,
                            attachment.created_at.isoformat(),
                        )
                        for attachment in attachments
                    ],
                )

                await self.connection.commit()
            except aiosqlite.Error as e:
                await self.connection.rollback()
                raise StoreError(
                    f"Failed to create note {note.title!r}: {e}",
                    context={"note_id": note.id},
                ) from e
            except asyncio.CancelledError:
                await self.connection.rollback()
                raise

    async def get_note(self, note_id: str) -> Note | None:
        await self.connect()

        cursor = await self.connection.execute("SELECT * FROM notes WHERE id = ?", (note_id,))
        row = await cursor.fetchone()
        return self._row_to_note(row) if row else None

    async def list_notes(self, notebook_id: str) -> list[Note]:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT * FROM notes WHERE notebook_id = ? ORDER BY imported_at, rowid",
            (notebook_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_note(row) for row in rows]

    async def list_note_tags(self, note_id: str) -> list[Tag]:
        await self.connect()

        cursor = await self.connection.execute(
            """
            SELECT t.* FROM tags t
            JOIN note_tags nt ON nt.tag_id = t.id
            WHERE nt.note_id = ?
            ORDER BY t.name
            """,
            (note_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_tag(row) for row in rows]

    async def list_attachments(self, note_id: str) -> list[Attachment]:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT * FROM attachments WHERE note_id = ? ORDER BY rowid", (note_id,)
        )
        rows = await cursor.fetchall()
        return [self._row_to_attachment(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # IMPORT JOBS
    # ═══════════════════════════════════════════════════════════

    async def create_job(self, job: ImportJob) -> None:
        await self.connect()

        async with self._write_lock:
            await self.connection.execute(
                """
                INSERT INTO import_jobs (
                    id, owner_id, source_filename, status, notebook_id, total_notes,
                    imported_count, failed_count, errors, warnings, started_at,
                    completed_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.id,
                    job.owner_id,
                    job.source_filename,
                    job.status.value,
                    job.notebook_id,
                    job.total_notes,
                    job.imported_count,
                    job.failed_count,
                    self._dump_issues(job.errors),
                    self._dump_issues(job.warnings),
                    _iso(job.started_at),
                    _iso(job.completed_at),
                    job.created_at.isoformat(),
                ),
            )
            await self.connection.commit()

    async def update_job(self, job: ImportJob) -> None:
        await self.connect()

        async with self._write_lock:
            cursor = await self.connection.execute(
                """
                UPDATE import_jobs
                SET status = ?, notebook_id = ?, total_notes = ?, imported_count = ?,
                    failed_count = ?, errors = ?, warnings = ?, started_at = ?, completed_at = ?
                WHERE id = ?
                """,
                (
                    job.status.value,
                    job.notebook_id,
                    job.total_notes,
                    job.imported_count,
                    job.failed_count,
                    self._dump_issues(job.errors),
                    self._dump_issues(job.warnings),
                    _iso(job.started_at),
                    _iso(job.completed_at),
                    job.id,
                ),
            )
            await self.connection.commit()

        if cursor.rowcount == 0:
            raise StoreError(f"Import job {job.id} does not exist", context={"job_id": job.id})

    async def get_job(self, job_id: str) -> ImportJob | None:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT * FROM import_jobs WHERE id = ?", (job_id,)
        )
        row = await cursor.fetchone()
        return self._row_to_job(row) if row else None

    async def list_jobs(self, owner_id: str, limit: int = 10) -> list[ImportJob]:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT * FROM import_jobs WHERE owner_id = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (owner_id, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_job(row) for row in rows]

    # ═══════════════════════════════════════════════════════════
    # UTILITY METHODS
    # ═══════════════════════════════════════════════════════════

    async def count_rows(self, table: str) -> int:
        """Count rows of one of the store's tables."""
        if table not in COUNTABLE_TABLES:
            raise ValidationError(f"Unknown table: {table}")
        await self.connect()

        cursor = await self.connection.execute(f"SELECT COUNT(*) FROM {table}")
        row = await cursor.fetchone()
        return row[0] if row else 0

    # ═══════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════

    @staticmethod
    def _dump_issues(issues: list[NoteFailure]) -> str:
        return json.dumps([issue.model_dump() for issue in issues])

    @staticmethod
    def _load_issues(raw: str | None) -> list[NoteFailure]:
        return [NoteFailure(**item) for item in json.loads(raw)] if raw else []

    def _row_to_notebook(self, row: aiosqlite.Row) -> Notebook:
        return Notebook(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            is_default=bool(row["is_default"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_tag(self, row: aiosqlite.Row) -> Tag:
        return Tag(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_note(self, row: aiosqlite.Row) -> Note:
        return Note(
            id=row["id"],
            notebook_id=row["notebook_id"],
            owner_id=row["owner_id"],
            title=row["title"],
            content=row["content"],
            content_plaintext=row["content_plaintext"],
            original_markup=row["original_markup"],
            source_url=row["source_url"],
            author=row["author"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            altitude=row["altitude"],
            attributes=json.loads(row["attributes"]) if row["attributes"] else {},
            source_created_at=_from_iso(row["source_created_at"]),
            source_updated_at=_from_iso(row["source_updated_at"]),
            import_source=row["import_source"],
            import_job_id=row["import_job_id"],
            imported_at=datetime.fromisoformat(row["imported_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _row_to_attachment(self, row: aiosqlite.Row) -> Attachment:
        return Attachment(
            id=row["id"],
            note_id=row["note_id"],
            filename=row["filename"],
            original_name=row["original_name"],
            mime_type=row["mime_type"],
            size=row["size"],
            storage_key=row["storage_key"],
            locator=row["locator"],
            hash=row["hash"],
            width=row["width"],
            height=row["height"],
            duration_seconds=row["duration_seconds"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_job(self, row: aiosqlite.Row) -> ImportJob:
        return ImportJob(
            id=row["id"],
            owner_id=row["owner_id"],
            source_filename=row["source_filename"],
            status=ImportJobStatus(row["status"]),
            notebook_id=row["notebook_id"],
            total_notes=row["total_notes"],
            imported_count=row["imported_count"],
            failed_count=row["failed_count"],
            errors=self._load_issues(row["errors"]),
            warnings=self._load_issues(row["warnings"]),
            started_at=_from_iso(row["started_at"]),
            completed_at=_from_iso(row["completed_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
