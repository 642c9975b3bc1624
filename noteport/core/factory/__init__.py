"""
Factory modules for creating Noteport components.

Provides modular factories for the note store and object storage.
"""

from noteport.core.factory.storage_factory import ObjectStorageFactory
from noteport.core.factory.store_factory import NoteStoreFactory

__all__ = [
    "NoteStoreFactory",
    "ObjectStorageFactory",
]
