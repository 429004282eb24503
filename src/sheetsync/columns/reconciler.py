"""
Column schema reconciliation core logic for sheetsync.

Compares the column metadata an application saved for a sheet against the
sheet's current header row, classifies every position as unchanged, added,
removed or renamed, and builds a merged descriptor list that keeps user
customizations on surviving columns.

Alignment is purely positional: saved columns are ordered by their
``original_index`` and compared slot by slot with the live headers. A column
moved from one position to another therefore shows up as renames (or an
added/removed pair at the tail), never as a move.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Callable, List, Optional, Tuple

from ..exceptions import ValidationError
from .models import (
    ChangeType,
    ColumnChange,
    ColumnDescriptor,
    ColumnSyncResult,
    ColumnType,
    SheetColumn,
    generate_column_id,
)


logger = logging.getLogger(__name__)


def _as_sequence(value: Any, argument: str) -> Sequence:
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Sequence):
        raise ValidationError(
            f"{argument} must be a sequence of columns, got {type(value).__name__}"
        )
    return value


def _coerce_saved(saved: Any) -> List[ColumnDescriptor]:
    if saved is None:
        return []
    items = _as_sequence(saved, "saved")
    return [ColumnDescriptor.from_dict(item) for item in items]


def _coerce_current(current: Any) -> List[SheetColumn]:
    if current is None:
        raise ValidationError("current columns are required")
    items = _as_sequence(current, "current")
    if not items:
        raise ValidationError(
            "current columns must not be empty; handle empty sheets before reconciling"
        )
    return [SheetColumn.from_dict(item) for item in items]


def order_saved_columns(saved: List[ColumnDescriptor]) -> List[ColumnDescriptor]:
    """
    Order saved descriptors by their persisted position.

    Descriptors without an ``original_index`` fall back to their position in
    the input list; ties keep input order.
    """
    def sort_key(item: Tuple[int, ColumnDescriptor]) -> int:
        position, column = item
        if column.original_index is not None:
            return column.original_index
        return position

    return [column for _, column in sorted(enumerate(saved), key=sort_key)]


class ColumnReconciler:
    """
    Positional diff and merge of saved column metadata against a live sheet.

    The reconciler is stateless apart from its id factory, so one instance
    can be shared freely.
    """

    def __init__(self, id_factory: Optional[Callable[[], str]] = None):
        self.id_factory = id_factory or generate_column_id

    def reconcile(self, saved: Any, current: Any) -> ColumnSyncResult:
        """
        Reconcile saved descriptors with the current sheet columns.

        Args:
            saved: Previously persisted descriptors (models or dicts); None or
                empty means the sheet has never been saved.
            current: Columns read from the live sheet (models, dicts or
                header strings), in left-to-right order. Must not be empty.

        Returns:
            ColumnSyncResult with per-position changes and merged columns

        Raises:
            ValidationError: If an argument is not a sequence of columns, or
                current is empty
        """
        current_columns = _coerce_current(current)
        saved_columns = order_saved_columns(_coerce_saved(saved))

        if not saved_columns:
            result = self._fresh_association(current_columns)
        else:
            changes = self._diff(saved_columns, current_columns)
            merged = self._merge(saved_columns, current_columns, changes)
            result = ColumnSyncResult(
                has_changes=any(c.type != ChangeType.UNCHANGED for c in changes),
                changes=changes,
                merged_columns=merged,
                saved_columns=saved_columns,
                current_columns=current_columns,
            )

        logger.debug(
            f"Reconciled {len(saved_columns)} saved against "
            f"{len(current_columns)} current columns: {result.summary()}"
        )
        return result

    def _fresh_association(self, current: List[SheetColumn]) -> ColumnSyncResult:
        """Nothing saved yet: every column is new, but nothing has drifted."""
        changes = [
            ColumnChange(type=ChangeType.ADDED, name=column.name, index=i)
            for i, column in enumerate(current)
        ]
        merged = [self._new_descriptor(column, i) for i, column in enumerate(current)]
        return ColumnSyncResult(
            has_changes=False,
            changes=changes,
            merged_columns=merged,
            saved_columns=[],
            current_columns=current,
        )

    def _diff(
        self, saved: List[ColumnDescriptor], current: List[SheetColumn]
    ) -> List[ColumnChange]:
        saved_len = len(saved)
        current_len = len(current)
        changes = []

        for i in range(max(saved_len, current_len)):
            if i >= saved_len:
                changes.append(
                    ColumnChange(type=ChangeType.ADDED, name=current[i].name, index=i)
                )
            elif i >= current_len:
                changes.append(
                    ColumnChange(type=ChangeType.REMOVED, name=saved[i].name, index=i)
                )
            elif saved[i].normalized_name != current[i].normalized_name:
                changes.append(
                    ColumnChange(
                        type=ChangeType.RENAMED,
                        name=current[i].name,
                        index=i,
                        old_name=saved[i].name,
                        new_name=current[i].name,
                    )
                )
            else:
                changes.append(
                    ColumnChange(type=ChangeType.UNCHANGED, name=current[i].name, index=i)
                )

        return changes

    def _merge(
        self,
        saved: List[ColumnDescriptor],
        current: List[SheetColumn],
        changes: List[ColumnChange],
    ) -> List[ColumnDescriptor]:
        added = {c.index for c in changes if c.type == ChangeType.ADDED}
        removed = sorted(c.index for c in changes if c.type == ChangeType.REMOVED)

        merged = []
        for i, column in enumerate(current):
            if i in added:
                merged.append(self._new_descriptor(column, i))
                continue

            previous = saved[i]
            merged.append(
                ColumnDescriptor(
                    id=previous.id,
                    name=column.name,
                    type=previous.type,
                    description=previous.description,
                    options=list(previous.options),
                    original_index=i,
                    active=previous.active,
                )
            )

        for i in removed:
            previous = saved[i]
            merged.append(
                ColumnDescriptor(
                    id=previous.id,
                    name=previous.name,
                    type=previous.type,
                    description=previous.description,
                    options=list(previous.options),
                    original_index=previous.original_index,
                    active=previous.active,
                    is_removed=True,
                )
            )

        return merged

    def _new_descriptor(self, column: SheetColumn, index: int) -> ColumnDescriptor:
        return ColumnDescriptor(
            id=self.id_factory(),
            name=column.name,
            type=ColumnType.TEXT,
            original_index=index,
        )


_default_reconciler = ColumnReconciler()


def reconcile(saved: Any, current: Any) -> ColumnSyncResult:
    """Reconcile saved column metadata against current sheet columns."""
    return _default_reconciler.reconcile(saved, current)
