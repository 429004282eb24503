"""
Column sync service for sheetsync.

Sequences the sheet reader, the metadata store and the reconciler: reads
the live header row, loads what was saved, diffs the two and optionally
persists the merged result. The reconciler itself never performs I/O.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .columns.headers import HeaderPlan, plan_header_row
from .columns.inference import infer_options
from .columns.models import ColumnDescriptor, ColumnSyncResult, SheetColumn
from .columns.reconciler import ColumnReconciler
from .config import SheetsyncConfig, SyncConfig
from .exceptions import SyncError
from .sheets.base import SheetReader
from .store.base import MetadataStore

logger = logging.getLogger(__name__)


@dataclass
class SyncOutcome:
    """Result of a sync run for one sheet."""

    sheet_id: str
    result: Optional[ColumnSyncResult]
    applied: bool = False
    persisted_columns: List[ColumnDescriptor] = field(default_factory=list)
    retired_columns: List[ColumnDescriptor] = field(default_factory=list)

    @property
    def is_empty_sheet(self) -> bool:
        return self.result is None

    @property
    def has_changes(self) -> bool:
        return bool(self.result and self.result.has_changes)


class ColumnSyncService:
    """
    Service for keeping saved column metadata in step with a live sheet.

    Collaborators are injected so the service can run against any sheet
    backend and store.
    """

    def __init__(
        self,
        reader: SheetReader,
        store: MetadataStore,
        sync_config: Optional[SyncConfig] = None,
        reconciler: Optional[ColumnReconciler] = None,
    ):
        self.reader = reader
        self.store = store
        self.sync_config = sync_config or SyncConfig()
        self.reconciler = reconciler or ColumnReconciler()

    @classmethod
    def from_config(cls, config: SheetsyncConfig) -> "ColumnSyncService":
        """Build a service wired to Google Sheets and PostgreSQL."""
        from .sheets.google_client import GoogleSheetsReader
        from .store.postgres import PostgresMetadataStore

        reader = GoogleSheetsReader(config.google)
        store = PostgresMetadataStore.from_config(config.metadata_store)
        return cls(reader, store, sync_config=config.sync)

    def _tab(self, tab: Optional[str]) -> Optional[str]:
        return tab or self.sync_config.default_tab

    def _with_inferred_types(
        self, descriptors: List[ColumnDescriptor], columns: List[SheetColumn]
    ) -> List[ColumnDescriptor]:
        """Copy first-time descriptors with the types the reader inferred."""
        if not self.sync_config.infer_types_on_init:
            return list(descriptors)

        return [
            replace(
                descriptor,
                type=column.type,
                options=infer_options(column.sample_data, column.type),
            )
            for descriptor, column in zip(descriptors, columns)
        ]

    async def _retire(
        self, sheet_id: str, removed: List[ColumnDescriptor]
    ) -> List[ColumnDescriptor]:
        """Merge newly removed columns into the sheet's retired set."""
        retired = {c.id: c for c in await self.store.load_removed_columns(sheet_id)}
        for column in removed:
            # Unpositioned and inactive, so nothing aligns against it again
            retired[column.id] = replace(
                column,
                options=list(column.options),
                original_index=None,
                active=False,
                is_removed=False,
            )
        return list(retired.values())

    async def check_changes(
        self, sheet_id: str, tab: Optional[str] = None
    ) -> Optional[ColumnSyncResult]:
        """
        Compare saved metadata with the live sheet.

        Returns:
            ColumnSyncResult, or None when the sheet has no header row

        Raises:
            SheetError: If the sheet cannot be read
            MetadataStoreError: If saved metadata cannot be loaded
        """
        sheet = await self.reader.read_columns(sheet_id, self._tab(tab))
        if sheet.is_empty or not sheet.columns:
            logger.info(f"Sheet {sheet_id} is empty, nothing to reconcile")
            return None

        saved = await self.store.load_columns(sheet_id)
        result = self.reconciler.reconcile(saved or [], sheet.columns)

        if result.has_changes:
            logger.info(f"Column drift detected for {sheet_id}: {result.summary()}")
        else:
            logger.debug(f"No column drift for {sheet_id}")

        return result

    async def apply(
        self,
        sheet_id: str,
        result: ColumnSyncResult,
        sheet_name: Optional[str] = None,
    ) -> SyncOutcome:
        """
        Persist the merged columns of a sync result.

        On first association the new descriptors get inferred types, as
        ``initialize_columns`` would give them. Removed columns are dropped
        when ``drop_removed_on_apply`` is set; otherwise they are retired,
        stored apart from the positional column list.
        """
        if result.saved_columns:
            columns = list(result.active_columns)
        else:
            columns = self._with_inferred_types(
                result.active_columns, result.current_columns
            )

        retired = None
        if not self.sync_config.drop_removed_on_apply and result.removed_columns:
            retired = await self._retire(sheet_id, result.removed_columns)

        await self.store.save_columns(
            sheet_id, columns, sheet_name=sheet_name, removed_columns=retired
        )
        await self.store.mark_synced(sheet_id, result.changes)
        return SyncOutcome(
            sheet_id=sheet_id,
            result=result,
            applied=True,
            persisted_columns=columns,
            retired_columns=retired or [],
        )

    async def sync(
        self, sheet_id: str, tab: Optional[str] = None, apply: bool = False
    ) -> SyncOutcome:
        """Check a sheet for drift and optionally persist the merged columns."""
        result = await self.check_changes(sheet_id, tab)
        if result is None or not apply:
            return SyncOutcome(sheet_id=sheet_id, result=result)

        if result.has_changes or not result.saved_columns:
            return await self.apply(sheet_id, result, sheet_name=self._tab(tab))

        await self.store.mark_synced(sheet_id, result.changes)
        return SyncOutcome(sheet_id=sheet_id, result=result)

    async def initialize_columns(
        self, sheet_id: str, tab: Optional[str] = None, overwrite: bool = False
    ) -> List[ColumnDescriptor]:
        """
        Create and save descriptors for a sheet seen for the first time.

        Types come from sample data when ``infer_types_on_init`` is set,
        with option lists derived for dropdown/checkbox columns.

        Raises:
            SyncError: If the sheet is empty, or metadata already exists and
                overwrite is False
        """
        tab = self._tab(tab)
        if not overwrite and await self.store.load_columns(sheet_id):
            raise SyncError(
                f"Column metadata already exists for {sheet_id}",
                details={"hint": "run sync instead, or pass overwrite"},
            )

        sheet = await self.reader.read_columns(sheet_id, tab)
        if sheet.is_empty:
            raise SyncError(f"Sheet {sheet_id} has no header row to initialize from")

        columns = self._with_inferred_types(
            [
                ColumnDescriptor.new(column.name, index=index)
                for index, column in enumerate(sheet.columns)
            ],
            sheet.columns,
        )

        await self.store.save_columns(
            sheet_id, columns, sheet_name=tab, removed_columns=[]
        )
        logger.info(f"Initialized {len(columns)} columns for sheet {sheet_id}")
        return columns

    async def push_headers(
        self, sheet_id: str, tab: Optional[str] = None
    ) -> HeaderPlan:
        """
        Write saved column names back to the sheet's header row.

        Existing headers keep their positions; new names are appended.

        Raises:
            SyncError: If no metadata was saved for the sheet
        """
        tab = self._tab(tab)
        saved = await self.store.load_columns(sheet_id)
        if not saved:
            raise SyncError(f"No column metadata saved for {sheet_id}")

        existing = await self.reader.read_header_row(sheet_id, tab)
        plan = plan_header_row(existing, saved)

        if plan.headers == existing:
            logger.info(f"Header row of {sheet_id} already up to date")
            return plan

        await self.reader.write_header_row(sheet_id, plan.headers, tab)
        logger.info(
            f"Pushed headers to {sheet_id}: {plan.updated_in_place} in place, "
            f"{len(plan.appended)} appended"
        )
        return plan

    async def health_check(self, sheet_id: Optional[str] = None) -> Dict[str, Any]:
        return {
            "sheets": await self.reader.health_check(sheet_id),
            "store": await self.store.health_check(),
        }

    async def close(self) -> None:
        await self.reader.close()
        await self.store.close()

    async def __aenter__(self):
        await self.store.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
