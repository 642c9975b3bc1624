"""
Base interface for object storage.

Stores attachment bytes and hands back an opaque locator the application
can later use to fetch or publicly address the object.
"""

from abc import ABC, abstractmethod


class ObjectStorage(ABC):
    """Abstract base class for object storage implementations."""

    @abstractmethod
    async def put(self, data: bytes, mime_type: str, key: str | None = None) -> str:
        """
        Store an object.

        Args:
            data: Object bytes
            mime_type: MIME type of the object
            key: Storage key; generated when omitted

        Returns:
            Locator for the stored object

        Raises:
            ResourceStorageError: If the object cannot be stored
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """
        Fetch an object by key.

        Returns:
            Object bytes or None if not found
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether an object exists."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete an object.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def key_for(self, locator: str) -> str:
        """Recover the storage key from a locator returned by put()."""
        pass
