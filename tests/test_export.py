"""Tests for flattening pivot results into export grids."""

from __future__ import annotations

import io

import pandas as pd

from pivot_core.aggregations import aggregate
from pivot_core.compiler import ColumnHeader, PivotNode, PivotResult, compile_pivot
from pivot_core.config import PivotConfig, PivotValue
from pivot_core.export import ExportOptions, flatten_result, grid_to_frame, to_csv_bytes, to_xlsx_bytes


def test_single_cell_pivot_flattens_to_two_rows(sales_records, sum_amt, region_bucket, quarter_bucket) -> None:
    """Reproduce a header plus one data row holding the direct aggregate."""

    config = PivotConfig(rows=(region_bucket("east"),), columns=(quarter_bucket("Q1"),), values=(sum_amt,))
    grid = flatten_result(compile_pivot(sales_records, config))

    assert grid == [
        ["Row Label", "Q1 (sum amt)"],
        ["East", aggregate([sales_records[0]], "amt", "sum")],
    ]


def test_nested_rows_join_path_and_missing_values_use_marker() -> None:
    """Join ancestor labels with ' > ' and fill absent values with the marker."""

    metric = PivotValue(id="m", field="amt", statistic="avg")
    headers = (
        ColumnHeader(key="c1||m", label="C1", metric=metric),
        ColumnHeader(key="c2||m", label="C2", metric=metric),
    )
    result = PivotResult(
        row_nodes=(
            PivotNode(
                key="parent",
                label="Parent",
                children=(
                    PivotNode(key="a", label="A", values={"c1||m": 1.0, "c2||m": 2.0}),
                    PivotNode(key="b", label="B", values={"c2||m": 4.0}),
                ),
            ),
        ),
        col_nodes=(PivotNode(key="c1", label="C1"), PivotNode(key="c2", label="C2")),
        flat_col_headers=headers,
    )

    assert flatten_result(result) == [
        ["Row Label", "C1 (avg amt)", "C2 (avg amt)"],
        ["Parent > A", 1.0, 2.0],
        ["Parent > B", None, 4.0],
    ]
    assert flatten_result(result, ExportOptions(missing="-"))[2] == ["Parent > B", "-", 4.0]
    assert result.row_nodes[0].leaf_count() == 2


def test_grid_to_frame_uses_header_row(sales_records, sum_amt) -> None:
    """Turn the first grid row into DataFrame columns."""

    grid = flatten_result(compile_pivot(sales_records, PivotConfig(values=(sum_amt,))))
    frame = grid_to_frame(grid)

    assert list(frame.columns) == ["Row Label", "Total (sum amt)"]
    assert frame.iloc[0].tolist() == ["Total", 52.0]


def test_csv_bytes_have_header_and_rows() -> None:
    """Serialize a grid to UTF-8 CSV without an index column."""

    grid = [["Row Label", "Total (count Record)"], ["Total", 3]]
    assert to_csv_bytes(grid).decode("utf-8").splitlines() == ["Row Label,Total (count Record)", "Total,3"]


def test_xlsx_bytes_round_trip_through_pandas() -> None:
    """Write a workbook that pandas reads back with the same cells."""

    grid = [["Row Label", "Total (sum amt)"], ["East", 15.0]]
    frame = pd.read_excel(io.BytesIO(to_xlsx_bytes(grid)), sheet_name="Pivot")

    assert list(frame.columns) == ["Row Label", "Total (sum amt)"]
    assert frame.iloc[0].tolist() == ["East", 15.0]
