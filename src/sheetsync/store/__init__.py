"""
Column metadata storage package for sheetsync.

This package provides:
- The MetadataStore interface the sync service depends on
- Async PostgreSQL connection pooling
- A PostgreSQL/JSONB implementation of the store
"""

from .base import MetadataStore
from .connection import ConnectionConfig, ConnectionPool
from .postgres import PostgresMetadataStore

__all__ = [
    "MetadataStore",
    "ConnectionConfig",
    "ConnectionPool",
    "PostgresMetadataStore",
]
