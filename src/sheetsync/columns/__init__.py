"""
Column metadata package for sheetsync.

This package provides:
- Column descriptor and diff record types
- Type inference from sample values
- Positional reconciliation of saved metadata against a live sheet
- Non-destructive header row planning
"""

from .models import (
    ChangeType,
    ColumnChange,
    ColumnDescriptor,
    ColumnSyncResult,
    ColumnType,
    SheetColumn,
)
from .inference import infer_column_type, infer_options
from .reconciler import ColumnReconciler, reconcile
from .headers import HeaderPlan, column_letter, plan_header_row

__all__ = [
    "ChangeType",
    "ColumnChange",
    "ColumnDescriptor",
    "ColumnSyncResult",
    "ColumnType",
    "SheetColumn",
    "infer_column_type",
    "infer_options",
    "ColumnReconciler",
    "reconcile",
    "HeaderPlan",
    "column_letter",
    "plan_header_row",
]
