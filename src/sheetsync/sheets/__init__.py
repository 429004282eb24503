"""
Sheet reader system for sheetsync.

This package provides the interface the sync service uses to read a live
sheet's header row and sample data, and its Google Sheets implementation.
"""

from .base import SheetReader, SheetColumnsResult
from .google_client import GoogleSheetsReader

__all__ = [
    "SheetReader",
    "SheetColumnsResult",
    "GoogleSheetsReader",
]
