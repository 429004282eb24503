"""
Tests for sheetsync.columns.models module.
"""

import pytest

from sheetsync.columns.models import (
    ChangeType,
    ColumnChange,
    ColumnDescriptor,
    ColumnSyncResult,
    ColumnType,
    SheetColumn,
    generate_column_id,
    normalize_name,
)
from sheetsync.exceptions import ValidationError


class TestColumnType:
    """Test ColumnType enum."""

    def test_values(self):
        assert ColumnType.TEXT == "text"
        assert ColumnType.TEL == "tel"
        assert ColumnType.CHECKBOX == "checkbox"

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("number", ColumnType.NUMBER),
            ("  Email ", ColumnType.EMAIL),
            ("phone", ColumnType.TEL),
            ("checkbox group", ColumnType.CHECKBOX),
            ("select", ColumnType.DROPDOWN),
            ("mystery", ColumnType.TEXT),
            (None, ColumnType.TEXT),
            (ColumnType.URL, ColumnType.URL),
        ],
    )
    def test_coerce(self, label, expected):
        assert ColumnType.coerce(label) == expected

    def test_has_options(self):
        assert ColumnType.DROPDOWN.has_options
        assert ColumnType.CHECKBOX.has_options
        assert not ColumnType.TEXT.has_options


class TestHelpers:
    """Test id generation and name normalization."""

    def test_generate_column_id_format(self):
        column_id = generate_column_id()

        assert column_id.startswith("col-")
        assert len(column_id) == len("col-") + 9

    def test_generate_column_id_unique(self):
        assert len({generate_column_id() for _ in range(100)}) == 100

    def test_normalize_name(self):
        assert normalize_name("  E-Mail ") == "e-mail"
        assert normalize_name(None) == ""


class TestColumnDescriptor:
    """Test ColumnDescriptor dataclass."""

    def test_new_generates_id(self):
        column = ColumnDescriptor.new("Name", index=2)

        assert column.id.startswith("col-")
        assert column.original_index == 2
        assert column.type == ColumnType.TEXT
        assert column.active is True

    def test_from_dict_camel_case(self):
        column = ColumnDescriptor.from_dict(
            {
                "id": "a",
                "name": "Status",
                "type": "dropdown",
                "description": "State",
                "options": ["Open"],
                "originalIndex": 3,
                "active": False,
                "isRemoved": True,
            }
        )

        assert column.id == "a"
        assert column.type == ColumnType.DROPDOWN
        assert column.options == ["Open"]
        assert column.original_index == 3
        assert column.active is False
        assert column.is_removed is True

    def test_from_dict_snake_case(self):
        column = ColumnDescriptor.from_dict(
            {"id": "a", "name": "Age", "original_index": 1, "is_removed": False}
        )

        assert column.original_index == 1
        assert column.is_removed is False

    def test_from_dict_fills_defaults(self):
        column = ColumnDescriptor.from_dict({})

        assert column.id.startswith("col-")
        assert column.name == ""
        assert column.type == ColumnType.TEXT
        assert column.options == []
        assert column.original_index is None

    @pytest.mark.parametrize("index", [True, "2", 1.5])
    def test_from_dict_ignores_non_integer_index(self, index):
        column = ColumnDescriptor.from_dict({"name": "A", "originalIndex": index})

        assert column.original_index is None

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(ValidationError):
            ColumnDescriptor.from_dict(["name"])

    def test_from_dict_passes_instances_through(self):
        column = ColumnDescriptor(id="a", name="A")

        assert ColumnDescriptor.from_dict(column) is column

    def test_to_dict_round_trip_drops_removed_flag(self):
        column = ColumnDescriptor(
            id="a",
            name="Tags",
            type=ColumnType.CHECKBOX,
            description="Labels",
            options=["x", "y"],
            original_index=4,
            active=False,
        )

        data = column.to_dict()

        assert data["originalIndex"] == 4
        assert "isRemoved" not in data
        assert ColumnDescriptor.from_dict(data) == column

    def test_to_dict_includes_removed_flag_when_set(self):
        column = ColumnDescriptor(id="a", name="A", is_removed=True)

        assert column.to_dict()["isRemoved"] is True


class TestSheetColumn:
    """Test SheetColumn dataclass."""

    def test_from_header_string(self):
        column = SheetColumn.from_dict("Email")

        assert column.name == "Email"
        assert column.type == ColumnType.TEXT

    def test_from_dict_sample_data(self):
        column = SheetColumn.from_dict({"name": "Age", "type": "number", "sampleData": [1, 2]})

        assert column.type == ColumnType.NUMBER
        assert column.sample_data == ["1", "2"]

    def test_from_dict_rejects_other_types(self):
        with pytest.raises(ValidationError):
            SheetColumn.from_dict(42)

    def test_to_dict(self):
        column = SheetColumn(name="Age", type=ColumnType.NUMBER, sample_data=["3"])

        assert column.to_dict() == {
            "name": "Age",
            "type": "number",
            "description": "",
            "sampleData": ["3"],
        }


class TestColumnSyncResult:
    """Test ColumnSyncResult helpers."""

    def test_to_dict_uses_camel_case(self):
        result = ColumnSyncResult(
            has_changes=True,
            changes=[
                ColumnChange(
                    type=ChangeType.RENAMED,
                    name="E-mail",
                    index=0,
                    old_name="Email",
                    new_name="E-mail",
                )
            ],
            merged_columns=[ColumnDescriptor(id="a", name="E-mail", original_index=0)],
            saved_columns=[ColumnDescriptor(id="a", name="Email", original_index=0)],
            current_columns=[SheetColumn(name="E-mail")],
        )

        data = result.to_dict()

        assert data["hasChanges"] is True
        assert data["changes"] == [
            {
                "type": "renamed",
                "name": "E-mail",
                "index": 0,
                "oldName": "Email",
                "newName": "E-mail",
            }
        ]
        assert data["mergedColumns"][0]["id"] == "a"
        assert data["currentColumns"][0]["name"] == "E-mail"

    def test_changes_of(self):
        result = ColumnSyncResult(
            has_changes=True,
            changes=[
                ColumnChange(type=ChangeType.UNCHANGED, name="A", index=0),
                ColumnChange(type=ChangeType.ADDED, name="B", index=1),
            ],
            merged_columns=[],
            saved_columns=[],
            current_columns=[],
        )

        assert [c.name for c in result.changes_of(ChangeType.ADDED)] == ["B"]
