from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd


FieldValue = Union[str, int, float, bool, None]
Record = Mapping[str, FieldValue]


def is_absent(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, float) and math.isnan(value)


def to_number(value: Any) -> Optional[float]:
    """Numeric view of a field value, or None when it has none.

    Only finite numbers count, so blank strings and "inf" are not numeric.
    Booleans map to 1.0/0.0.
    """
    if is_absent(value):
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        value = text
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(out):
        return None
    return out


def to_text(value: Any) -> str:
    """String view of a field value used for membership and equality tests."""
    if is_absent(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def field_names(records: Iterable[Record]) -> List[str]:
    seen: Dict[str, None] = {}
    for record in records:
        for name in record.keys():
            seen.setdefault(name, None)
    return list(seen)


def unique_values(records: Iterable[Record], field: str) -> List[str]:
    """Sorted distinct text values of `field`, skipping missing ones."""
    values = {to_text(r.get(field)) for r in records if not is_absent(r.get(field))}
    return sorted(values)


def _plain_scalar(value: Any) -> FieldValue:
    if value is None or value is pd.NA or value is pd.NaT:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (pd.Timestamp,)):
        return value.isoformat()
    return str(value)


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, FieldValue]]:
    """Convert a loaded DataFrame into engine records (NaN/NA -> None)."""
    if df is None or df.empty:
        return []
    columns = [str(c) for c in df.columns]
    out: List[Dict[str, FieldValue]] = []
    for row in df.itertuples(index=False, name=None):
        out.append({col: _plain_scalar(v) for col, v in zip(columns, row)})
    return out
