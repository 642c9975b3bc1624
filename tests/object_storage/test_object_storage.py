"""
Tests for object storage backends.
"""

import pytest

from noteport.core.object_storage import InMemoryObjectStorage, LocalObjectStorage
from noteport.utils.exceptions import ResourceStorageError, ValidationError


@pytest.fixture
def local_storage(tmp_path):
    return LocalObjectStorage(base_path=str(tmp_path / "files"), base_url="/files")


@pytest.mark.unit
@pytest.mark.asyncio
class TestLocalObjectStorage:
    """Tests for filesystem storage."""

    async def test_put_and_get(self, local_storage, tmp_path):
        """Test bytes round-trip through a key."""
        locator = await local_storage.put(b"hello", "text/plain", key="attachments/u1/n1/a.txt")

        assert locator == "/files/attachments/u1/n1/a.txt"
        assert (tmp_path / "files" / "attachments" / "u1" / "n1" / "a.txt").read_bytes() == b"hello"
        assert await local_storage.get("attachments/u1/n1/a.txt") == b"hello"
        assert await local_storage.exists("attachments/u1/n1/a.txt")

    async def test_generated_key(self, local_storage):
        """Test a key is generated when none is given."""
        locator = await local_storage.put(b"data", "application/octet-stream")

        key = local_storage.key_for(locator)
        assert await local_storage.get(key) == b"data"

    async def test_locator_quotes_key(self, local_storage):
        """Test unsafe URL characters are percent-encoded in locators."""
        locator = await local_storage.put(b"x", "text/plain", key="a/my file.txt")

        assert locator == "/files/a/my%20file.txt"
        assert local_storage.key_for(locator) == "a/my file.txt"

    async def test_missing_object(self, local_storage):
        """Test missing keys return None / False."""
        assert await local_storage.get("nope") is None
        assert not await local_storage.exists("nope")
        assert not await local_storage.delete("nope")

    async def test_delete(self, local_storage):
        await local_storage.put(b"x", "text/plain", key="k.txt")

        assert await local_storage.delete("k.txt")
        assert not await local_storage.exists("k.txt")

    async def test_path_traversal_rejected(self, local_storage):
        """Test keys cannot escape the base path."""
        with pytest.raises(ValidationError):
            await local_storage.put(b"x", "text/plain", key="../../etc/passwd")

    async def test_write_failure_wrapped(self, tmp_path):
        """Test filesystem errors surface as ResourceStorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        storage = LocalObjectStorage(base_path=str(blocker))

        with pytest.raises(ResourceStorageError) as exc_info:
            await storage.put(b"x", "image/png", key="a/b.png")

        assert exc_info.value.context["key"] == "a/b.png"

    async def test_foreign_locator_rejected(self, local_storage):
        with pytest.raises(ValidationError):
            local_storage.key_for("https://elsewhere.example/a.png")


@pytest.mark.unit
@pytest.mark.asyncio
class TestInMemoryObjectStorage:
    """Tests for in-memory storage."""

    async def test_put_get_delete(self):
        storage = InMemoryObjectStorage()

        locator = await storage.put(b"abc", "text/plain", key="k")

        assert locator == "memory://k"
        assert storage.key_for(locator) == "k"
        assert await storage.get("k") == b"abc"
        assert storage.put_count == 1
        assert await storage.delete("k")
        assert await storage.get("k") is None
