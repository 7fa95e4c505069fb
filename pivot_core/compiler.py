from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from pivot_core.aggregations import aggregate
from pivot_core.axis import AxisNode, axis_leaves, build_axis
from pivot_core.config import KEY_SEPARATOR, TOTAL_COL_KEY, TOTAL_ROW_KEY, PivotConfig, PivotValue, dedupe_ids
from pivot_core.errors import PivotCancelled
from pivot_core.filters import apply_allow_lists
from pivot_core.records import Record


logger = logging.getLogger(__name__)


class CancelEvent(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class PivotNode:
    key: str
    label: str
    children: Optional[Tuple["PivotNode", ...]] = None
    values: Optional[Dict[str, float]] = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None

    def leaf_count(self) -> int:
        if self.children is None:
            return 1
        return sum(child.leaf_count() for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"key": self.key, "label": self.label, "is_leaf": self.is_leaf}
        if self.children is not None:
            out["children"] = [child.to_dict() for child in self.children]
        if self.values is not None:
            out["values"] = dict(self.values)
        return out


@dataclass(frozen=True)
class ColumnHeader:
    key: str
    label: str
    metric: PivotValue

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "label": self.label, "metric": asdict(self.metric)}


@dataclass(frozen=True)
class PivotResult:
    row_nodes: Tuple[PivotNode, ...]
    col_nodes: Tuple[PivotNode, ...]
    flat_col_headers: Tuple[ColumnHeader, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_nodes": [n.to_dict() for n in self.row_nodes],
            "col_nodes": [n.to_dict() for n in self.col_nodes],
            "flat_col_headers": [h.to_dict() for h in self.flat_col_headers],
        }


def cell_key(column_key: str, metric_id: str) -> str:
    return f"{column_key}{KEY_SEPARATOR}{metric_id}"


def build_headers(col_leaves: Sequence[AxisNode], metrics: Sequence[PivotValue]) -> Tuple[ColumnHeader, ...]:
    return tuple(
        ColumnHeader(key=cell_key(col.key, metric.id), label=col.label, metric=metric)
        for col in col_leaves
        for metric in metrics
    )


def unique_metrics(metrics: Sequence[PivotValue]) -> Tuple[PivotValue, ...]:
    ids = dedupe_ids(m.id for m in metrics)
    out: List[PivotValue] = []
    for metric_id, metric in zip(ids, metrics):
        if metric_id != metric.id:
            logger.warning("Duplicate metric id %r renamed to %r", metric.id, metric_id)
            metric = replace(metric, id=metric_id)
        out.append(metric)
    return tuple(out)


def _column_tree(nodes: Sequence[AxisNode]) -> Tuple[PivotNode, ...]:
    return tuple(
        PivotNode(
            key=n.key,
            label=n.label,
            children=None if n.is_leaf else _column_tree(n.children),
        )
        for n in nodes
    )


class _RowBuilder:
    def __init__(
        self,
        records: Sequence[Record],
        col_leaves: Sequence[AxisNode],
        metrics: Sequence[PivotValue],
        cancel_event: Optional[CancelEvent],
    ) -> None:
        self.records = records
        self.col_leaves = col_leaves
        self.metrics = metrics
        self.cancel_event = cancel_event

    def leaf_values(self, row: AxisNode) -> Dict[str, float]:
        values: Dict[str, float] = {}
        for col in self.col_leaves:
            cell = [self.records[i] for i in sorted(row.members & col.members)]
            for metric in self.metrics:
                values[cell_key(col.key, metric.id)] = aggregate(cell, metric.field, metric.statistic)
        return values

    def build(self, node: AxisNode) -> PivotNode:
        if not node.is_leaf:
            return PivotNode(
                key=node.key,
                label=node.label,
                children=tuple(self.build(child) for child in node.children),
            )
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise PivotCancelled(f"Pivot cancelled before row '{node.key}'")
        return PivotNode(key=node.key, label=node.label, values=self.leaf_values(node))


def compile_pivot(
    records: Sequence[Record],
    config: PivotConfig,
    *,
    cancel_event: Optional[CancelEvent] = None,
) -> PivotResult:
    """Cross-tabulate `records` according to `config`.

    Each row leaf gets one value per (column leaf, metric) pair, computed over
    the records that belong to both the row bucket and the column bucket.
    Pass a `threading.Event` as `cancel_event` to stop between row leaves.
    """
    candidates = apply_allow_lists(records, config.filters)

    row_axis = build_axis(records, config.rows, candidates=candidates, total_key=TOTAL_ROW_KEY)
    col_axis = build_axis(records, config.columns, candidates=candidates, total_key=TOTAL_COL_KEY)
    col_leaves = axis_leaves(col_axis)

    metrics = unique_metrics(config.effective_metrics())
    headers = build_headers(col_leaves, metrics)
    logger.debug(
        "Pivot over %d/%d records: %d row nodes, %d column leaves, %d metrics",
        len(candidates),
        len(records),
        len(row_axis),
        len(col_leaves),
        len(metrics),
    )

    builder = _RowBuilder(records, col_leaves, metrics, cancel_event)
    row_nodes: List[PivotNode] = [builder.build(node) for node in row_axis]

    return PivotResult(
        row_nodes=tuple(row_nodes),
        col_nodes=_column_tree(col_axis),
        flat_col_headers=headers,
    )
