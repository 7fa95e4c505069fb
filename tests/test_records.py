"""Tests for record value coercion and record helpers."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from pivot_core.records import field_names, records_from_frame, to_number, to_text, unique_values


def test_to_number_accepts_numbers_and_numeric_strings() -> None:
    """Treat real numbers and string numerals as numeric."""

    assert to_number(42) == 42.0
    assert to_number(2.5) == 2.5
    assert to_number("42") == 42.0
    assert to_number(" 3.5 ") == 3.5
    assert to_number(True) == 1.0


def test_to_number_rejects_missing_and_text() -> None:
    """Return None for values that do not coerce instead of raising."""

    assert to_number(None) is None
    assert to_number(float("nan")) is None
    assert to_number("") is None
    assert to_number("   ") is None
    assert to_number("abc") is None
    assert to_number("nan") is None
    assert to_number("1_000") is None
    assert to_number(10**400) is None


def test_to_number_rejects_infinities() -> None:
    """Keep infinite values out of the numeric population."""

    assert to_number(math.inf) is None
    assert to_number(-math.inf) is None
    assert to_number("inf") is None
    assert to_number("Infinity") is None
    assert to_number("1e400") is None


def test_to_text_renders_integral_floats_without_fraction() -> None:
    """Render 10.0 as "10" so numeric cells match picked text values."""

    assert to_text(10.0) == "10"
    assert to_text(10) == "10"
    assert to_text(2.5) == "2.5"
    assert to_text(None) == ""
    assert to_text(True) == "true"
    assert to_text("x") == "x"
    assert to_text(math.inf) == "inf"


def test_unique_values_sorted_and_skips_missing() -> None:
    """List distinct text values for a field, ignoring missing ones."""

    records = [{"a": "y"}, {"a": "x"}, {"a": None}, {}, {"a": "y"}, {"a": 3}]
    assert unique_values(records, "a") == ["3", "x", "y"]


def test_field_names_union_in_first_seen_order() -> None:
    """Collect field names across non-uniform records."""

    records = [{"b": 1, "a": 2}, {"c": 3}, {"a": 4}]
    assert field_names(records) == ["b", "a", "c"]


def test_records_from_frame_converts_nan_and_numpy_scalars() -> None:
    """Turn NaN/NA into None and numpy scalars into Python values."""

    df = pd.DataFrame({"region": ["east", None], "amt": [np.int64(3), np.nan]})
    records = records_from_frame(df)

    assert records[0] == {"region": "east", "amt": 3.0}
    assert records[1] == {"region": None, "amt": None}
    assert type(records[0]["amt"]) is float


def test_records_from_empty_frame() -> None:
    """Return no records for an empty frame."""

    assert records_from_frame(pd.DataFrame()) == []
