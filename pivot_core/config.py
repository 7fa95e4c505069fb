from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pivot_core.errors import InputError
from pivot_core.records import to_text


STATISTICS: Tuple[str, ...] = ("sum", "count", "avg", "min", "max", "median", "distinctCount")
OPERATORS: Tuple[str, ...] = ("in", "eq", "neq", "gt", "gte", "lt", "lte", "between")

TOTAL_LABEL = "Total"
TOTAL_ROW_KEY = "total_row"
TOTAL_COL_KEY = "total_col"
KEY_SEPARATOR = "||"

Bound = Union[str, float, int, None]


@dataclass(frozen=True)
class FilterCondition:
    field: str
    operator: str = "in"
    values: Tuple[str, ...] = ()
    val1: Bound = None
    val2: Bound = None


@dataclass(frozen=True)
class CustomBucket:
    id: str
    label: str
    filters: Tuple[FilterCondition, ...] = ()


@dataclass(frozen=True)
class PivotValue:
    id: str
    field: str
    statistic: str = "sum"


DEFAULT_METRIC = PivotValue(id="count_all", field="Record", statistic="count")


@dataclass(frozen=True)
class PivotConfig:
    rows: Tuple[CustomBucket, ...] = ()
    columns: Tuple[CustomBucket, ...] = ()
    values: Tuple[PivotValue, ...] = ()
    filters: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def effective_metrics(self) -> Tuple[PivotValue, ...]:
        return self.values if self.values else (DEFAULT_METRIC,)


def dedupe_ids(ids: Iterable[str]) -> List[str]:
    """Suffix repeated ids with `#2`, `#3`, ... so every id is unique."""
    used: set = set()
    out: List[str] = []
    for key in ids:
        candidate = key
        n = 1
        while candidate in used:
            n += 1
            candidate = f"{key}#{n}"
        used.add(candidate)
        out.append(candidate)
    return out


def _as_list(values: Any) -> List[Any]:
    if not values or not isinstance(values, (list, tuple)):
        return []
    return list(values)


def _as_str_tuple(values: Any) -> Tuple[str, ...]:
    return tuple(to_text(v) for v in _as_list(values) if v is not None)


def _bound(value: Any) -> Bound:
    if value is None or isinstance(value, (str, int, float)):
        return value
    return str(value)


def _condition_from_raw(raw: Mapping[str, Any]) -> Optional[FilterCondition]:
    name = str(raw.get("field") or "").strip()
    if not name:
        return None
    return FilterCondition(
        field=name,
        operator=str(raw.get("operator") or "in"),
        values=_as_str_tuple(raw.get("values")),
        val1=_bound(raw.get("val1")),
        val2=_bound(raw.get("val2")),
    )


def _buckets_from_raw(items: Iterable[Any]) -> Tuple[CustomBucket, ...]:
    out: List[CustomBucket] = []
    for idx, raw in enumerate(items):
        if not isinstance(raw, Mapping):
            continue
        bucket_id = str(raw.get("id") or f"bucket_{idx}")
        label = str(raw.get("label") or bucket_id)
        conditions = [
            c
            for c in (_condition_from_raw(item) for item in _as_list(raw.get("filters")) if isinstance(item, Mapping))
            if c is not None
        ]
        out.append(CustomBucket(id=bucket_id, label=label, filters=tuple(conditions)))
    return tuple(out)


def _metrics_from_raw(items: Iterable[Any]) -> Tuple[PivotValue, ...]:
    out: List[PivotValue] = []
    for raw in items:
        if not isinstance(raw, Mapping):
            continue
        name = str(raw.get("field") or "").strip()
        statistic = str(raw.get("statistic") or raw.get("aggregator") or "sum")
        metric_id = str(raw.get("id") or f"{name}:{statistic}")
        out.append(PivotValue(id=metric_id, field=name, statistic=statistic))
    return tuple(out)


def normalize_config(raw: Mapping[str, Any]) -> PivotConfig:
    """Build a PivotConfig from a JSON-like mapping, tolerating gaps."""
    raw = raw or {}
    rows = raw.get("rows", raw.get("customRows"))
    columns = raw.get("columns", raw.get("customCols"))

    allow: Dict[str, Tuple[str, ...]] = {}
    raw_filters = raw.get("filters") or {}
    if isinstance(raw_filters, Mapping):
        for name, values in raw_filters.items():
            allow[str(name)] = _as_str_tuple(values)

    return PivotConfig(
        rows=_buckets_from_raw(_as_list(rows)),
        columns=_buckets_from_raw(_as_list(columns)),
        values=_metrics_from_raw(_as_list(raw.get("values"))),
        filters=allow,
    )


def _check_buckets(axis: str, buckets: Iterable[CustomBucket], known: Optional[set]) -> None:
    seen = set()
    for bucket in buckets:
        if bucket.id in seen:
            raise InputError(f"Duplicate {axis} bucket id '{bucket.id}'")
        seen.add(bucket.id)
        for cond in bucket.filters:
            if not cond.field:
                raise InputError(f"Bucket '{bucket.id}' has a condition without a field")
            if cond.operator not in OPERATORS:
                raise InputError(f"Bucket '{bucket.id}' uses unknown operator '{cond.operator}'")
            if cond.operator == "between" and (cond.val1 is None or cond.val2 is None):
                raise InputError(f"Bucket '{bucket.id}' has a 'between' condition without both bounds")
            if known is not None and cond.field not in known:
                raise InputError(f"Bucket '{bucket.id}' references unknown field '{cond.field}'")


def validate_config(config: PivotConfig, known_fields: Optional[Iterable[str]] = None) -> PivotConfig:
    """Eagerly reject malformed configuration.

    The engine itself degrades gracefully on bad input and never calls this.
    Field references are only checked when `known_fields` is given.
    """
    known = set(known_fields) if known_fields is not None else None

    _check_buckets("row", config.rows, known)
    _check_buckets("column", config.columns, known)

    seen = set()
    for metric in config.values:
        if metric.id in seen:
            raise InputError(f"Duplicate metric id '{metric.id}'")
        seen.add(metric.id)
        if metric.statistic not in STATISTICS:
            raise InputError(f"Metric '{metric.id}' uses unknown statistic '{metric.statistic}'")
        if not metric.field and metric.statistic != "count":
            raise InputError(f"Metric '{metric.id}' has no field")
        if known is not None and metric.statistic != "count" and metric.field not in known:
            raise InputError(f"Metric '{metric.id}' references unknown field '{metric.field}'")

    if known is not None:
        for name in config.filters:
            if name not in known:
                raise InputError(f"Filter references unknown field '{name}'")
    return config
