"""
Column type inference from sample cell values.

Rules are checked in a fixed order and the first match wins. Several
patterns overlap (``"1"``/``"0"`` are booleans and numbers, ISO dates are
made of phone-number characters), so the order is part of the contract.
"""

import re
from typing import Any, Iterable, List, Optional

from .models import ColumnType


BOOLEAN_PAIRS = (
    frozenset({"true", "false"}),
    frozenset({"yes", "no"}),
    frozenset({"y", "n"}),
    frozenset({"0", "1"}),
    frozenset({"✓", "✗"}),
    frozenset({"on", "off"}),
)

URL_PATTERN = re.compile(
    r"^(?:https?://\S+"
    r"|www\.\S+"
    r"|[a-z0-9-]+(?:\.[a-z0-9-]+)+\.[a-z]{2,}(?:[/?#:]\S*)?)$",
    re.IGNORECASE,
)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[0-9+\-().\s]{6,20}$")
DATE_PATTERN = re.compile(r"^\d{1,4}[-/.]\d{1,2}[-/.]\d{1,4}$")
NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")

LIST_DELIMITERS = re.compile(r"[,;|]")

DROPDOWN_MAX_UNIQUE = 5
DROPDOWN_REPEAT_RATIO = 0.6
CHECKBOX_MAX_UNIQUE = 10

DEFAULT_OPTIONS = ["Option 1"]


def _clean_samples(samples: Optional[Iterable[Any]]) -> List[str]:
    cleaned = []
    for sample in samples or []:
        if sample is None:
            continue
        text = str(sample).strip()
        if text:
            cleaned.append(text)
    return cleaned


def _is_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value)) and not DATE_PATTERN.match(value)


def infer_column_type(samples: Optional[Iterable[Any]]) -> ColumnType:
    """
    Classify a column from a handful of sample values.

    Args:
        samples: Raw cell values, typically the first few data rows.
            Empty and whitespace-only values are ignored.

    Returns:
        The inferred ColumnType; TEXT when nothing more specific fits.
    """
    values = _clean_samples(samples)
    if not values:
        return ColumnType.TEXT

    unique = set(values)
    unique_count = len(unique)

    if unique_count <= 2:
        lowered = {v.lower() for v in values}
        if any(lowered <= pair for pair in BOOLEAN_PAIRS):
            return ColumnType.BOOLEAN

    if any(URL_PATTERN.match(v) for v in values):
        return ColumnType.URL

    if any(EMAIL_PATTERN.match(v) for v in values):
        return ColumnType.EMAIL

    if all(_is_phone(v) for v in values):
        return ColumnType.TEL

    if any(DATE_PATTERN.match(v) for v in values):
        return ColumnType.DATE

    if all(NUMBER_PATTERN.match(v) for v in values):
        return ColumnType.NUMBER

    if (
        unique_count <= DROPDOWN_MAX_UNIQUE
        and unique_count < DROPDOWN_REPEAT_RATIO * len(values)
    ):
        return ColumnType.DROPDOWN

    if unique_count <= CHECKBOX_MAX_UNIQUE and any(
        LIST_DELIMITERS.search(v) for v in values
    ):
        return ColumnType.CHECKBOX

    return ColumnType.TEXT


def infer_options(
    samples: Optional[Iterable[Any]], column_type: ColumnType
) -> List[str]:
    """
    Derive a choice list for dropdown/checkbox columns from samples.

    Checkbox cells hold several delimited choices, so they are split first.
    Returns an empty list for types without options.
    """
    if not ColumnType.coerce(column_type).has_options:
        return []

    options: List[str] = []
    seen = set()
    for value in _clean_samples(samples):
        parts = (
            LIST_DELIMITERS.split(value)
            if column_type == ColumnType.CHECKBOX
            else [value]
        )
        for part in parts:
            part = part.strip()
            if part and part not in seen:
                seen.add(part)
                options.append(part)

    return options or list(DEFAULT_OPTIONS)
