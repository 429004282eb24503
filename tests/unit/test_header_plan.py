"""
Tests for sheetsync.columns.headers module.
"""

import pytest

from sheetsync.columns.headers import HeaderPlan, column_letter, plan_header_row
from sheetsync.columns.models import ColumnDescriptor
from sheetsync.exceptions import ValidationError


class TestColumnLetter:
    """Test A1 column letters."""

    @pytest.mark.parametrize(
        "number,letters",
        [(1, "A"), (2, "B"), (26, "Z"), (27, "AA"), (52, "AZ"), (53, "BA"), (702, "ZZ"), (703, "AAA")],
    )
    def test_conversion(self, number, letters):
        assert column_letter(number) == letters

    @pytest.mark.parametrize("bad", [0, -1, True, "3", 2.0])
    def test_invalid(self, bad):
        with pytest.raises(ValidationError):
            column_letter(bad)


class TestHeaderPlan:
    """Test HeaderPlan properties."""

    def test_range(self):
        plan = HeaderPlan(headers=["A", "B", "C"])

        assert plan.range == "A1:C1"
        assert plan.final_count == 3

    def test_range_of_empty_plan(self):
        assert HeaderPlan(headers=[]).range == "A1:A1"


class TestPlanHeaderRow:
    """Test non-destructive header planning."""

    def test_renames_in_place_by_index(self):
        columns = [
            ColumnDescriptor(id="a", name="Full Name", original_index=0),
            ColumnDescriptor(id="b", name="Email", original_index=1),
        ]

        plan = plan_header_row(["Name", "Email"], columns)

        assert plan.headers == ["Full Name", "Email"]
        assert plan.updated_in_place == 2
        assert plan.appended == []

    def test_appends_new_columns(self):
        columns = [
            ColumnDescriptor(id="a", name="Name", original_index=0),
            ColumnDescriptor(id="b", name="Phone"),
        ]

        plan = plan_header_row(["Name"], columns)

        assert plan.headers == ["Name", "Phone"]
        assert plan.appended == ["Phone"]
        assert plan.range == "A1:B1"

    def test_out_of_range_index_matches_existing_name(self):
        columns = [ColumnDescriptor(id="a", name="Email", original_index=9)]

        plan = plan_header_row(["Name", "Email"], columns)

        assert plan.headers == ["Name", "Email"]
        assert plan.appended == []
        assert plan.updated_in_place == 1

    def test_never_drops_existing_headers(self):
        columns = [ColumnDescriptor(id="a", name="Name", original_index=0)]

        plan = plan_header_row(["Name", "Notes", "", "Extra"], columns)

        assert plan.headers == ["Name", "Notes", "", "Extra"]

    def test_skips_removed_columns(self):
        columns = [
            ColumnDescriptor(id="a", name="Name", original_index=0),
            ColumnDescriptor(id="b", name="Gone", original_index=5, is_removed=True),
        ]

        plan = plan_header_row(["Name"], columns)

        assert plan.headers == ["Name"]

    def test_does_not_append_duplicates(self):
        columns = [
            ColumnDescriptor(id="a", name="Tags"),
            ColumnDescriptor(id="b", name="Tags"),
        ]

        plan = plan_header_row([], columns)

        assert plan.headers == ["Tags"]
        assert plan.appended == ["Tags"]

    def test_empty_sheet_appends_everything(self):
        columns = [{"id": "a", "name": "A", "originalIndex": 0}, {"id": "b", "name": "B", "originalIndex": 1}]

        plan = plan_header_row(None, columns)

        assert plan.headers == ["A", "B"]
        assert plan.updated_in_place == 0
