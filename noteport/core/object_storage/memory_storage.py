"""In-process object storage, used for tests and ephemeral deployments."""

from uuid import uuid4

from noteport.core.object_storage.base import ObjectStorage

MEMORY_SCHEME = "memory://"


class InMemoryObjectStorage(ObjectStorage):
    """Keeps objects in a dict keyed by storage key."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.put_count = 0

    async def put(self, data: bytes, mime_type: str, key: str | None = None) -> str:
        key = key or uuid4().hex
        self.objects[key] = (bytes(data), mime_type)
        self.put_count += 1
        return f"{MEMORY_SCHEME}{key}"

    async def get(self, key: str) -> bytes | None:
        stored = self.objects.get(key)
        return stored[0] if stored else None

    async def exists(self, key: str) -> bool:
        return key in self.objects

    async def delete(self, key: str) -> bool:
        return self.objects.pop(key, None) is not None

    def key_for(self, locator: str) -> str:
        return locator.removeprefix(MEMORY_SCHEME)
