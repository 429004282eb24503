"""
Abstract base class for sheet readers.

This module provides the interface the sync service uses to read the live
header row and sample data of a spreadsheet.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..columns.inference import infer_column_type
from ..columns.models import ColumnType, SheetColumn


logger = logging.getLogger(__name__)


@dataclass
class SheetColumnsResult:
    """Columns read from a sheet's header row."""

    columns: List[SheetColumn] = field(default_factory=list)
    is_empty: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "columns": [c.to_dict() for c in self.columns],
            "isEmpty": self.is_empty,
        }


class SheetReader(ABC):
    """
    Abstract base class for all sheet readers.

    Implementations fetch raw header and sample rows; turning them into
    typed SheetColumn records is shared here.
    """

    def __init__(self, max_samples: int = 3):
        self.max_samples = max_samples
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def read_columns(
        self, sheet_id: str, tab: Optional[str] = None
    ) -> SheetColumnsResult:
        """
        Read the header row and a few sample rows of a sheet.

        Args:
            sheet_id: Spreadsheet identifier
            tab: Optional tab (worksheet) name

        Returns:
            SheetColumnsResult; is_empty is True when the header row has no
            non-empty cells

        Raises:
            SheetError: If the sheet cannot be read
        """
        pass

    @abstractmethod
    async def read_header_row(
        self, sheet_id: str, tab: Optional[str] = None
    ) -> List[str]:
        """Read the raw header row, blanks included."""
        pass

    @abstractmethod
    async def write_header_row(
        self, sheet_id: str, headers: List[str], tab: Optional[str] = None
    ) -> Dict[str, Any]:
        """Overwrite the header row with the given cells."""
        pass

    @abstractmethod
    async def get_sheet_info(self, sheet_id: str) -> Dict[str, Any]:
        """Fetch spreadsheet title and tab names."""
        pass

    @abstractmethod
    async def health_check(self, sheet_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Check that the backing API is reachable with our credentials.

        Returns:
            Dictionary with health status information
        """
        pass

    def build_columns(
        self,
        headers: List[Any],
        sample_rows: Optional[List[List[Any]]] = None,
    ) -> SheetColumnsResult:
        """
        Turn raw header and sample rows into typed columns.

        Without sample rows every column is typed TEXT.
        """
        header_cells = ["" if h is None else str(h) for h in headers or []]
        if not any(h.strip() for h in header_cells):
            return SheetColumnsResult(columns=[], is_empty=True)

        columns = []
        for index, header in enumerate(header_cells):
            if sample_rows is None:
                columns.append(SheetColumn(name=header, type=ColumnType.TEXT))
                continue

            samples = [
                str(row[index])
                for row in sample_rows
                if index < len(row) and row[index] not in (None, "")
            ]
            columns.append(
                SheetColumn(
                    name=header,
                    type=infer_column_type(samples),
                    sample_data=samples[: self.max_samples],
                )
            )

        return SheetColumnsResult(columns=columns, is_empty=False)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the reader and release any sessions."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(max_samples={self.max_samples})"
