"""
Object storage implementations for Noteport.

Available backends:
- LocalObjectStorage: Files under a local directory, served by the web layer
- InMemoryObjectStorage: Process-local dict, for tests
"""

from noteport.core.object_storage.base import ObjectStorage
from noteport.core.object_storage.local_storage import LocalObjectStorage
from noteport.core.object_storage.memory_storage import InMemoryObjectStorage

__all__ = [
    "ObjectStorage",
    "LocalObjectStorage",
    "InMemoryObjectStorage",
]
