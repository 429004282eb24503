"""
Tests for sheetsync.columns.inference module.
"""

import pytest

from sheetsync.columns.inference import (
    DEFAULT_OPTIONS,
    infer_column_type,
    infer_options,
)
from sheetsync.columns.models import ColumnType


class TestInferColumnType:
    """Test type inference from sample values."""

    @pytest.mark.parametrize(
        "samples",
        [
            ["true", "false"],
            ["Yes", "no"],
            ["y", "n"],
            ["1", "0", "1"],
            ["on", "off"],
            ["✓", "✗"],
            ["TRUE"],
        ],
    )
    def test_boolean(self, samples):
        assert infer_column_type(samples) == ColumnType.BOOLEAN

    def test_boolean_takes_precedence_over_number(self):
        assert infer_column_type(["1", "0", "1"]) == ColumnType.BOOLEAN

    def test_mixed_boolean_pairs_are_not_boolean(self):
        assert infer_column_type(["yes", "false"]) != ColumnType.BOOLEAN

    @pytest.mark.parametrize(
        "samples",
        [
            ["https://example.com", "plain"],
            ["http://x.org/path?q=1"],
            ["www.example.com"],
            ["docs.example.co.uk/page"],
        ],
    )
    def test_url(self, samples):
        assert infer_column_type(samples) == ColumnType.URL

    def test_email(self):
        assert infer_column_type(["a@x.com", "b@y.com"]) == ColumnType.EMAIL

    def test_email_single_match_is_enough(self):
        assert infer_column_type(["n/a", "b@y.com"]) == ColumnType.EMAIL

    @pytest.mark.parametrize(
        "samples",
        [
            ["+1 (555) 123-4567", "555-987-6543"],
            ["020 7946 0958"],
        ],
    )
    def test_tel(self, samples):
        assert infer_column_type(samples) == ColumnType.TEL

    @pytest.mark.parametrize(
        "samples",
        [
            ["2024-01-01", "2024-02-01"],
            ["01/02/2024", "12/31/2023"],
            ["1.2.2024"],
        ],
    )
    def test_date(self, samples):
        assert infer_column_type(samples) == ColumnType.DATE

    @pytest.mark.parametrize(
        "samples",
        [
            ["12", "3.5", "-7"],
            ["42"],
            [".5", "+10"],
        ],
    )
    def test_number(self, samples):
        assert infer_column_type(samples) == ColumnType.NUMBER

    def test_dropdown_needs_repeats(self):
        samples = ["Open", "Closed", "Open", "Open", "Closed"]

        assert infer_column_type(samples) == ColumnType.DROPDOWN

    def test_distinct_values_are_not_dropdown(self):
        assert infer_column_type(["Alice", "Bob", "Carol"]) == ColumnType.TEXT

    def test_checkbox_from_delimited_values(self):
        samples = ["red, blue", "green", "blue; red"]

        assert infer_column_type(samples) == ColumnType.CHECKBOX

    @pytest.mark.parametrize("samples", [[], None, ["", "", ""], ["  ", None]])
    def test_empty_samples_are_text(self, samples):
        assert infer_column_type(samples) == ColumnType.TEXT

    def test_empty_values_are_ignored(self):
        assert infer_column_type(["", "a@x.com", "  "]) == ColumnType.EMAIL

    def test_non_string_values(self):
        assert infer_column_type([3, 4.5]) == ColumnType.NUMBER


class TestInferOptions:
    """Test option list derivation."""

    def test_dropdown_unique_values_in_order(self):
        options = infer_options(["Open", "Closed", "Open"], ColumnType.DROPDOWN)

        assert options == ["Open", "Closed"]

    def test_checkbox_splits_delimited_values(self):
        options = infer_options(["red, blue", "green|red"], ColumnType.CHECKBOX)

        assert options == ["red", "blue", "green"]

    def test_non_option_type_has_no_options(self):
        assert infer_options(["a", "b"], ColumnType.TEXT) == []

    def test_no_samples_fall_back_to_default(self):
        options = infer_options([], ColumnType.DROPDOWN)

        assert options == DEFAULT_OPTIONS
        assert options is not DEFAULT_OPTIONS

    def test_accepts_type_label(self):
        assert infer_options(["a"], "select") == ["a"]
