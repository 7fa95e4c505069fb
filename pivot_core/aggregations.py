"""Aggregation of one metric over a record subset.

Numeric statistics coerce each value with `to_number` and drop whatever does
not coerce. An empty population aggregates to 0 for every statistic, so empty
cells read as zero rather than missing.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

import pandas as pd

from pivot_core.records import Record, is_absent, to_number, to_text


logger = logging.getLogger(__name__)


def numeric_population(records: Iterable[Record], field: str) -> pd.Series:
    values: List[float] = []
    for record in records:
        num = to_number(record.get(field))
        if num is not None:
            values.append(num)
    return pd.Series(values, dtype="float64")


def aggregate(records: Sequence[Record], field: str, statistic: str) -> float:
    if statistic == "count":
        return len(records)

    if statistic == "distinctCount":
        return len({to_text(r.get(field)) for r in records if not is_absent(r.get(field))})

    series = numeric_population(records, field)
    if series.empty:
        return 0

    if statistic == "sum":
        return float(series.sum())
    if statistic == "avg":
        return float(series.mean())
    if statistic == "min":
        return float(series.min())
    if statistic == "max":
        return float(series.max())
    if statistic == "median":
        return float(series.median())

    logger.warning("Unknown statistic %r for field %r", statistic, field)
    return 0
