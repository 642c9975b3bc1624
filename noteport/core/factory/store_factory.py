"""
Factory for creating note store backends.
"""

from noteport.config import Config
from noteport.core.note_store.base import NoteStore
from noteport.core.note_store.sqlite_store import SQLiteNoteStore


class NoteStoreFactory:
    """Factory for creating note stores from configuration."""

    @staticmethod
    def create(config: Config) -> NoteStore:
        """
        Create note store from configuration.

        Args:
            config: Main configuration object

        Returns:
            Note store instance
        """
        return SQLiteNoteStore(db_path=config.database.path)
