"""
Factory for creating object storage backends.
"""

from noteport.config import StorageConfig
from noteport.core.object_storage.base import ObjectStorage
from noteport.core.object_storage.local_storage import LocalObjectStorage
from noteport.core.object_storage.memory_storage import InMemoryObjectStorage
from noteport.utils.exceptions import ConfigurationError


class ObjectStorageFactory:
    """Factory for creating object storage backends from configuration."""

    @staticmethod
    def create(config: StorageConfig) -> ObjectStorage:
        """
        Create object storage from configuration.

        Args:
            config: Storage configuration

        Returns:
            Object storage instance

        Raises:
            ConfigurationError: If backend is not supported
        """
        if config.backend == "local":
            return LocalObjectStorage(base_path=config.base_path, base_url=config.base_url)
        elif config.backend == "memory":
            return InMemoryObjectStorage()
        else:
            raise ConfigurationError(
                f"Unsupported storage backend: {config.backend}",
                context={"backend": config.backend},
            )
