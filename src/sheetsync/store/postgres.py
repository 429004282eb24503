"""
PostgreSQL-backed column metadata store.

Keeps one row per sheet holding its column descriptors as JSONB, plus a
sync log of detected drift, in a dedicated schema.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from .base import MetadataStore
from .connection import ConnectionConfig, ConnectionPool
from ..config import MetadataStoreConfig
from ..columns.models import ChangeType, ColumnChange, ColumnDescriptor
from ..exceptions import MetadataStoreError, StoreConfigurationError, ValidationError


logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise StoreConfigurationError(f"Invalid SQL identifier: {name!r}")
    return name


class PostgresMetadataStore(MetadataStore):
    """Column metadata store on an asyncpg connection pool."""

    def __init__(
        self,
        pool: ConnectionPool,
        schema_name: str = "sheetsync",
        table_name: str = "column_metadata",
    ):
        self.pool = pool
        self.schema_name = _identifier(schema_name)
        self.table_name = _identifier(table_name)

    @classmethod
    def from_config(cls, config: MetadataStoreConfig) -> "PostgresMetadataStore":
        """Create a store with its own pool from the metadata_store config section."""
        pool = ConnectionPool(ConnectionConfig.from_store_config(config))
        return cls(pool, schema_name=config.schema_name, table_name=config.table_name)

    @property
    def table(self) -> str:
        return f"{self.schema_name}.{self.table_name}"

    @property
    def sync_log_table(self) -> str:
        return f"{self.schema_name}.sync_log"

    async def ensure_schema(self) -> None:
        """Create the metadata schema and tables if they don't exist."""
        try:
            async with self.pool.acquire() as conn:
                await conn.execute(f"CREATE SCHEMA IF NOT EXISTS {self.schema_name}")
                await conn.execute(self._get_metadata_table_ddl())
                await conn.execute(self._get_sync_log_ddl())
        except MetadataStoreError:
            raise
        except Exception as e:
            logger.error(f"Failed to set up metadata schema {self.schema_name}: {e}")
            raise MetadataStoreError(f"Failed to set up metadata schema: {e}") from e

        logger.info(f"Metadata schema {self.schema_name} is ready")

    async def load_columns(self, sheet_id: str) -> Optional[List[ColumnDescriptor]]:
        return await self._load(sheet_id, "columns_metadata")

    async def load_removed_columns(self, sheet_id: str) -> List[ColumnDescriptor]:
        return await self._load(sheet_id, "removed_columns") or []

    async def _load(
        self, sheet_id: str, field: str
    ) -> Optional[List[ColumnDescriptor]]:
        query = f"SELECT {field} FROM {self.table} WHERE sheet_id = $1"

        try:
            raw = await self.pool.fetchval(query, sheet_id)
        except MetadataStoreError:
            raise
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to load column metadata for {sheet_id}: {e}"
            ) from e

        if raw is None:
            return None

        return self._decode(sheet_id, raw)

    async def save_columns(
        self,
        sheet_id: str,
        columns: List[ColumnDescriptor],
        sheet_name: Optional[str] = None,
        removed_columns: Optional[List[ColumnDescriptor]] = None,
    ) -> None:
        # Removal is advisory; descriptors flagged removed are never persisted
        kept = [c for c in columns if not c.is_removed]
        payload = json.dumps([c.to_dict() for c in kept])
        retired = None
        if removed_columns is not None:
            retired = json.dumps([c.to_dict() for c in removed_columns])

        query = f"""
        INSERT INTO {self.table}
            (sheet_id, sheet_name, columns_metadata, removed_columns, updated_at)
        VALUES ($1, $2, $3::jsonb, COALESCE($4::jsonb, '[]'::jsonb), NOW())
        ON CONFLICT (sheet_id) DO UPDATE SET
            sheet_name = COALESCE(EXCLUDED.sheet_name, {self.table_name}.sheet_name),
            columns_metadata = EXCLUDED.columns_metadata,
            removed_columns = COALESCE($4::jsonb, {self.table_name}.removed_columns),
            updated_at = NOW()
        """

        try:
            await self.pool.execute(query, sheet_id, sheet_name, payload, retired)
        except MetadataStoreError:
            raise
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to save column metadata for {sheet_id}: {e}"
            ) from e

        logger.info(f"Saved {len(kept)} columns for sheet {sheet_id}")

    async def mark_synced(
        self, sheet_id: str, changes: Optional[List[ColumnChange]] = None
    ) -> None:
        drift = [c for c in changes or [] if c.type != ChangeType.UNCHANGED]

        try:
            async with self.pool.acquire() as conn:
                await conn.execute(
                    f"UPDATE {self.table} SET last_synced = NOW() WHERE sheet_id = $1",
                    sheet_id,
                )
                if drift:
                    await conn.execute(
                        f"INSERT INTO {self.sync_log_table} (sheet_id, changes) "
                        f"VALUES ($1, $2::jsonb)",
                        sheet_id,
                        json.dumps([c.to_dict() for c in drift]),
                    )
        except MetadataStoreError:
            raise
        except Exception as e:
            raise MetadataStoreError(f"Failed to mark {sheet_id} as synced: {e}") from e

    async def health_check(self) -> Dict[str, Any]:
        try:
            exists = await self.pool.fetchval(
                "SELECT to_regclass($1) IS NOT NULL", self.table
            )
            return {
                "status": "healthy" if exists else "degraded",
                "table": self.table,
                "table_exists": bool(exists),
                "pool": self.pool.get_stats(),
            }
        except Exception as e:
            logger.error(f"Metadata store health check failed: {e}")
            return {
                "status": "unhealthy",
                "table": self.table,
                "error": str(e),
            }

    async def initialize(self) -> None:
        await self.pool.initialize()

    async def close(self) -> None:
        await self.pool.close()

    def _decode(self, sheet_id: str, raw: Any) -> List[ColumnDescriptor]:
        """Decode stored JSONB (asyncpg hands it back as text by default)."""
        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        except json.JSONDecodeError as e:
            raise MetadataStoreError(
                f"Stored column metadata for {sheet_id} is not valid JSON", cause=e
            ) from e

        if not isinstance(data, list):
            raise MetadataStoreError(
                f"Stored column metadata for {sheet_id} is not a list",
                details={"type": type(data).__name__},
            )

        try:
            return [ColumnDescriptor.from_dict(item) for item in data]
        except ValidationError as e:
            raise MetadataStoreError(
                f"Stored column metadata for {sheet_id} is malformed", cause=e
            ) from e

    # DDL definitions

    def _get_metadata_table_ddl(self) -> str:
        return f"""
        CREATE TABLE IF NOT EXISTS {self.table} (
            sheet_id TEXT PRIMARY KEY,
            sheet_name TEXT,
            columns_metadata JSONB NOT NULL DEFAULT '[]'::jsonb,
            removed_columns JSONB NOT NULL DEFAULT '[]'::jsonb,
            last_synced TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
        """

    def _get_sync_log_ddl(self) -> str:
        return f"""
        CREATE TABLE IF NOT EXISTS {self.sync_log_table} (
            id SERIAL PRIMARY KEY,
            sheet_id TEXT NOT NULL,
            detected_at TIMESTAMPTZ DEFAULT NOW(),
            changes JSONB NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_sync_log_sheet
        ON {self.sync_log_table}(sheet_id, detected_at)
        """
