"""
Non-destructive header row planning.

When column metadata is pushed back to a sheet, existing headers keep their
positions: columns with a known ``original_index`` are renamed in place,
columns whose name already exists stay where they are, and genuinely new
columns are appended. Headers the metadata doesn't mention are left alone.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence

from ..exceptions import ValidationError
from .models import ColumnDescriptor


@dataclass
class HeaderPlan:
    """Header row to write, with bookkeeping about how it was built."""

    headers: List[str]
    updated_in_place: int = 0
    appended: List[str] = field(default_factory=list)

    @property
    def range(self) -> str:
        """A1 range covering the planned header row."""
        return f"A1:{column_letter(max(len(self.headers), 1))}1"

    @property
    def final_count(self) -> int:
        return len(self.headers)


def column_letter(column: int) -> str:
    """
    Convert a 1-based column number to A1 letters.

    1 -> A, 26 -> Z, 27 -> AA, 703 -> AAA
    """
    if isinstance(column, bool) or not isinstance(column, int) or column < 1:
        raise ValidationError(f"Column number must be a positive integer, got {column!r}")

    letters = ""
    while column > 0:
        column, remainder = divmod(column - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def plan_header_row(
    existing_headers: Optional[Sequence[Any]],
    columns: Iterable[Any],
) -> HeaderPlan:
    """
    Build the header row to write for a list of column descriptors.

    Args:
        existing_headers: Current header row cells (may contain blanks)
        columns: Descriptors (or dicts) in the order they should be applied

    Returns:
        HeaderPlan with the final header row
    """
    headers = ["" if h is None else str(h) for h in (existing_headers or [])]
    existing_index = {}
    for index, header in enumerate(headers):
        if header.strip() and header not in existing_index:
            existing_index[header] = index

    placed = set()
    pending = []
    updated_in_place = 0

    for raw in columns:
        column = ColumnDescriptor.from_dict(raw)
        if column.is_removed:
            continue
        name = column.name

        position = column.original_index
        if position is not None and 0 <= position < len(headers):
            headers[position] = name
            placed.add(name)
            updated_in_place += 1
            continue

        if name in existing_index:
            headers[existing_index[name]] = name
            placed.add(name)
            updated_in_place += 1
            continue

        pending.append(name)

    appended = []
    for name in pending:
        if name in placed or name in existing_index or name in appended:
            continue
        appended.append(name)

    return HeaderPlan(
        headers=headers + appended,
        updated_in_place=updated_in_place,
        appended=appended,
    )
