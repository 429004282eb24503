"""
sheetsync: Keep saved spreadsheet column metadata in step with live sheets.

sheetsync compares the column metadata an application stores for a sheet
with the sheet's current header row, reports drift and merges the two
without losing user customizations.
"""

__version__ = "0.1.0"
__author__ = "sheetsync Contributors"

from .config import SheetsyncConfig
from .exceptions import SheetsyncError, ConfigurationError, ValidationError, SyncError
from .columns import ColumnSyncResult, infer_column_type, reconcile
from .sync import ColumnSyncService

__all__ = [
    "__version__",
    "SheetsyncConfig",
    "SheetsyncError",
    "ConfigurationError",
    "ValidationError",
    "SyncError",
    "ColumnSyncResult",
    "infer_column_type",
    "reconcile",
    "ColumnSyncService",
]
