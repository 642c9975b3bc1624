"""
Tests for component factories.
"""

import pytest

from noteport.config import Config, DatabaseConfig, StorageConfig
from noteport.core.factory import NoteStoreFactory, ObjectStorageFactory
from noteport.core.note_store import SQLiteNoteStore
from noteport.core.object_storage import InMemoryObjectStorage, LocalObjectStorage
from noteport.utils.exceptions import ConfigurationError


class TestNoteStoreFactory:
    """Tests for NoteStoreFactory."""

    def test_create_sqlite(self, tmp_path):
        """Test creating SQLite note store from config."""
        db_path = str(tmp_path / "db" / "notes.db")
        config = Config(database=DatabaseConfig(path=db_path))

        store = NoteStoreFactory.create(config)

        assert isinstance(store, SQLiteNoteStore)
        assert store.db_path == db_path


class TestObjectStorageFactory:
    """Tests for ObjectStorageFactory."""

    def test_create_local(self, tmp_path):
        """Test creating local storage from config."""
        config = StorageConfig(backend="local", base_path=str(tmp_path), base_url="/media/")

        storage = ObjectStorageFactory.create(config)

        assert isinstance(storage, LocalObjectStorage)
        assert storage.base_url == "/media"

    def test_create_memory(self):
        """Test creating in-memory storage from config."""
        storage = ObjectStorageFactory.create(StorageConfig(backend="memory"))

        assert isinstance(storage, InMemoryObjectStorage)

    def test_unsupported_backend(self):
        """Test unsupported backend raises error."""
        with pytest.raises(ConfigurationError, match="Unsupported storage backend"):
            ObjectStorageFactory.create(StorageConfig(backend="s3"))
