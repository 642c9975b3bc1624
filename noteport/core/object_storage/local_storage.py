"""
Local filesystem object storage.

Objects live under ``base_path`` and are addressed through ``base_url``,
which the web layer serves. File I/O runs in a worker thread so uploads do
not block the event loop.
"""

import asyncio
from pathlib import Path
from urllib.parse import quote, unquote
from uuid import uuid4

from noteport.core.object_storage.base import ObjectStorage
from noteport.utils.exceptions import ResourceStorageError, ValidationError
from noteport.utils.logger import get_logger
from noteport.utils.timestamps import utc_now

logger = get_logger(__name__)


class LocalObjectStorage(ObjectStorage):
    """Object storage backed by a directory tree."""

    def __init__(self, base_path: str = "data/attachments", base_url: str = "/files"):
        """
        Initialize local storage.

        Args:
            base_path: Root directory for stored objects
            base_url: URL prefix used to build locators
        """
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/")

    async def put(self, data: bytes, mime_type: str, key: str | None = None) -> str:
        key = key or self._generate_key()
        path = self._path_for(key)

        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            logger.error(f"Failed to store object {key}: {e}")
            raise ResourceStorageError(
                f"Failed to store object {key}: {e}",
                context={"key": key, "mime_type": mime_type, "size": len(data)},
            ) from e

        logger.debug(f"Stored {len(data)} bytes ({mime_type}) at {key}")
        return f"{self.base_url}/{quote(key)}"

    async def get(self, key: str) -> bytes | None:
        path = self._path_for(key)
        if not path.is_file():
            return None
        return await asyncio.to_thread(path.read_bytes)

    async def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    async def delete(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.is_file():
            return False
        await asyncio.to_thread(path.unlink)
        return True

    def key_for(self, locator: str) -> str:
        prefix = f"{self.base_url}/"
        if not locator.startswith(prefix):
            raise ValidationError(f"Locator {locator!r} does not belong to this storage")
        return unquote(locator[len(prefix) :])

    def _generate_key(self) -> str:
        now = utc_now()
        return f"{now.year}/{now.month:02d}/{uuid4().hex}"

    def _path_for(self, key: str) -> Path:
        root = self.base_path.resolve()
        path = (root / key).resolve()
        if not path.is_relative_to(root):
            raise ValidationError(f"Storage key escapes base path: {key!r}")
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
