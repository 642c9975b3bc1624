"""
Base interface for upload parsers.

Every parser turns raw upload bytes into the canonical ExportDocument.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from noteport.models.export import ExportDocument


class ExportParser(ABC):
    """Abstract base class for upload parsers."""

    @abstractmethod
    def parse(
        self,
        data: bytes,
        filename: str,
        last_modified: datetime | None = None,
    ) -> ExportDocument:
        """
        Parse an uploaded file.

        Args:
            data: Raw upload bytes
            filename: Name the file was uploaded under
            last_modified: Client-reported modification time, if any

        Returns:
            ExportDocument with the parsed notes
        """
        pass
