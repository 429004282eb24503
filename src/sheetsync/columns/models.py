"""
Column metadata records for sheetsync.

Defines the descriptor an application keeps for each sheet column, the
column shape read from a live sheet, and the diff records produced when
the two are reconciled. Persisted metadata uses camelCase keys, so the
``from_dict``/``to_dict`` helpers translate at the boundary.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..exceptions import ValidationError


class ColumnType(str, Enum):
    """Semantic type of a sheet column."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    EMAIL = "email"
    URL = "url"
    TEL = "tel"
    DROPDOWN = "dropdown"
    CHECKBOX = "checkbox"

    @classmethod
    def coerce(cls, value: Any) -> "ColumnType":
        """Map a persisted or user-supplied type label onto the closed set."""
        if isinstance(value, ColumnType):
            return value
        if not isinstance(value, str):
            return cls.TEXT

        label = value.strip().lower()
        label = _TYPE_ALIASES.get(label, label)
        try:
            return cls(label)
        except ValueError:
            return cls.TEXT

    @property
    def has_options(self) -> bool:
        return self in OPTION_TYPES


# Labels written by older versions of the app and the field editor
_TYPE_ALIASES = {
    "phone": "tel",
    "checkbox group": "checkbox",
    "select": "dropdown",
    "radio": "dropdown",
    "string": "text",
    "bool": "boolean",
    "link": "url",
}

OPTION_TYPES = frozenset({ColumnType.DROPDOWN, ColumnType.CHECKBOX})


class ChangeType(str, Enum):
    """Per-position classification of a column diff."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    RENAMED = "renamed"


def generate_column_id() -> str:
    """Generate a fresh opaque column id."""
    return f"col-{uuid.uuid4().hex[:9]}"


def normalize_name(name: Optional[str]) -> str:
    """Normalize a header for comparison (trim + casefold)."""
    return (name or "").strip().casefold()


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class ColumnDescriptor:
    """One logical column as the application understands it."""

    id: str
    name: str
    type: ColumnType = ColumnType.TEXT
    description: str = ""
    options: List[str] = field(default_factory=list)
    original_index: Optional[int] = None
    active: bool = True
    is_removed: bool = False

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @classmethod
    def new(
        cls,
        name: str,
        index: Optional[int] = None,
        column_type: ColumnType = ColumnType.TEXT,
        options: Optional[List[str]] = None,
    ) -> "ColumnDescriptor":
        """Create a descriptor with a freshly generated id."""
        return cls(
            id=generate_column_id(),
            name=name,
            type=column_type,
            options=list(options or []),
            original_index=index,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "ColumnDescriptor":
        """
        Build a descriptor from persisted JSON.

        Accepts camelCase or snake_case keys. A missing id is generated,
        a missing name becomes an empty (unmatchable) name.

        Raises:
            ValidationError: If data is not a mapping
        """
        if isinstance(data, ColumnDescriptor):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"Column descriptor must be a mapping, got {type(data).__name__}"
            )

        original_index = _first(data, "originalIndex", "original_index")
        if isinstance(original_index, bool) or not isinstance(original_index, int):
            original_index = None

        options = _first(data, "options", default=[])
        if not isinstance(options, list):
            options = []

        active = _first(data, "active", default=True)

        name = _first(data, "name", default="")
        return cls(
            id=str(_first(data, "id", default="") or generate_column_id()),
            name=name if isinstance(name, str) else str(name),
            type=ColumnType.coerce(_first(data, "type", default="text")),
            description=str(_first(data, "description", default="")),
            options=list(options),
            original_index=original_index,
            active=active if isinstance(active, bool) else True,
            is_removed=bool(_first(data, "isRemoved", "is_removed", default=False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted camelCase shape."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "options": list(self.options),
            "originalIndex": self.original_index,
            "active": self.active,
        }
        if self.is_removed:
            data["isRemoved"] = True
        return data


@dataclass
class SheetColumn:
    """A column as read from the live sheet header row."""

    name: str
    type: ColumnType = ColumnType.TEXT
    description: str = ""
    sample_data: List[str] = field(default_factory=list)

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @classmethod
    def from_dict(cls, data: Any) -> "SheetColumn":
        if isinstance(data, SheetColumn):
            return data
        if isinstance(data, str):
            return cls(name=data)
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"Sheet column must be a mapping or header string, got {type(data).__name__}"
            )

        samples = _first(data, "sampleData", "sample_data", default=[])
        if not isinstance(samples, list):
            samples = []
        name = _first(data, "name", default="")
        return cls(
            name=name if isinstance(name, str) else str(name),
            type=ColumnType.coerce(_first(data, "type", default="text")),
            description=str(_first(data, "description", default="")),
            sample_data=[str(s) for s in samples],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "sampleData": list(self.sample_data),
        }


@dataclass
class ColumnChange:
    """A single diff record between saved and current columns."""

    type: ChangeType
    name: str
    index: int
    new_index: Optional[int] = None
    old_name: Optional[str] = None
    new_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "name": self.name,
            "index": self.index,
        }
        if self.new_index is not None:
            data["newIndex"] = self.new_index
        if self.old_name is not None:
            data["oldName"] = self.old_name
        if self.new_name is not None:
            data["newName"] = self.new_name
        return data


@dataclass
class ColumnSyncResult:
    """Result of reconciling saved column metadata against a live sheet."""

    has_changes: bool
    changes: List[ColumnChange]
    merged_columns: List[ColumnDescriptor]
    saved_columns: List[ColumnDescriptor]
    current_columns: List[SheetColumn]

    @property
    def active_columns(self) -> List[ColumnDescriptor]:
        """Merged columns still present in the sheet, in sheet order."""
        return [c for c in self.merged_columns if not c.is_removed]

    @property
    def removed_columns(self) -> List[ColumnDescriptor]:
        """Saved columns with no counterpart in the sheet."""
        return [c for c in self.merged_columns if c.is_removed]

    def changes_of(self, change_type: ChangeType) -> List[ColumnChange]:
        return [c for c in self.changes if c.type == change_type]

    def summary(self) -> Dict[str, int]:
        """Count changes per type."""
        counts = {t.value: 0 for t in ChangeType}
        for change in self.changes:
            counts[change.type.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasChanges": self.has_changes,
            "changes": [c.to_dict() for c in self.changes],
            "mergedColumns": [c.to_dict() for c in self.merged_columns],
            "savedColumns": [c.to_dict() for c in self.saved_columns],
            "currentColumns": [c.to_dict() for c in self.current_columns],
        }
