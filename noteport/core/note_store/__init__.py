"""
Note store implementations for Noteport.

Provides abstract base and concrete implementations for persistence.

Available backends:
- SQLiteNoteStore: Local SQLite database via aiosqlite
"""

from noteport.core.note_store.base import NoteStore
from noteport.core.note_store.sqlite_store import SQLiteNoteStore

__all__ = [
    "NoteStore",
    "SQLiteNoteStore",
]
