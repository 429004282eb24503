"""
Abstract interface for persisted column metadata.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..columns.models import ColumnChange, ColumnDescriptor


class MetadataStore(ABC):
    """Reads and writes the column descriptors saved for a sheet."""

    @abstractmethod
    async def load_columns(self, sheet_id: str) -> Optional[List[ColumnDescriptor]]:
        """
        Load the saved descriptors for a sheet.

        Returns:
            The saved descriptors, or None if metadata was never saved

        Raises:
            MetadataStoreError: If stored metadata cannot be read or decoded
        """
        pass

    @abstractmethod
    async def save_columns(
        self,
        sheet_id: str,
        columns: List[ColumnDescriptor],
        sheet_name: Optional[str] = None,
        removed_columns: Optional[List[ColumnDescriptor]] = None,
    ) -> None:
        """
        Persist descriptors for a sheet, replacing what was saved before.

        ``removed_columns`` holds retired descriptors kept outside the
        positional list; None leaves any previously retired ones untouched.
        """
        pass

    async def load_removed_columns(self, sheet_id: str) -> List[ColumnDescriptor]:
        """Load retired descriptors; stores that never retire columns return []."""
        return []

    @abstractmethod
    async def mark_synced(
        self, sheet_id: str, changes: Optional[List[ColumnChange]] = None
    ) -> None:
        """Record that the sheet was just reconciled, with any drift detected."""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        pass

    async def initialize(self) -> None:
        """Open any underlying connections."""
        pass

    async def close(self) -> None:
        pass

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
