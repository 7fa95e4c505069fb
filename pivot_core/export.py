from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import pandas as pd

from pivot_core.compiler import PivotNode, PivotResult


Cell = Any
Grid = List[List[Cell]]


@dataclass(frozen=True)
class ExportOptions:
    row_label_title: str = "Row Label"
    path_separator: str = " > "
    missing: Optional[Cell] = None


def header_label(label: str, statistic: str, field: str) -> str:
    return f"{label} ({statistic} {field})"


def flatten_result(result: PivotResult, options: ExportOptions = ExportOptions()) -> Grid:
    """Flatten a pivot result into a header row plus one row per row leaf.

    Internal row nodes only contribute to the leaf's hierarchy path label.
    Cells follow `flat_col_headers` order.
    """
    headers = result.flat_col_headers
    grid: Grid = [
        [options.row_label_title]
        + [header_label(h.label, h.metric.statistic, h.metric.field) for h in headers]
    ]

    def walk(nodes: Sequence[PivotNode], path: List[str]) -> None:
        for node in nodes:
            labels = path + [node.label]
            if node.is_leaf:
                values = node.values or {}
                row: List[Cell] = [options.path_separator.join(labels)]
                row.extend(values.get(h.key, options.missing) for h in headers)
                grid.append(row)
            else:
                walk(node.children or (), labels)

    walk(result.row_nodes, [])
    return grid


def grid_to_frame(grid: Grid) -> pd.DataFrame:
    if not grid:
        return pd.DataFrame()
    return pd.DataFrame(grid[1:], columns=grid[0])


def to_csv_bytes(grid: Grid) -> bytes:
    return grid_to_frame(grid).to_csv(index=False).encode("utf-8")


def to_xlsx_bytes(grid: Grid, *, sheet_name: str = "Pivot") -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        grid_to_frame(grid).to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()
