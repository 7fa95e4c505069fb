"""Pytest fixtures shared across the pivot engine tests."""

from __future__ import annotations

import pytest

from pivot_core.config import CustomBucket, FilterCondition, PivotValue


@pytest.fixture
def sales_records() -> list[dict]:
    """Return a small heterogeneous sales dataset."""

    return [
        {"region": "east", "quarter": "Q1", "amt": 10, "customer": "acme", "vip": True},
        {"region": "east", "quarter": "Q2", "amt": 5, "customer": "globex", "vip": False},
        {"region": "west", "quarter": "Q1", "amt": 7, "customer": "acme", "vip": False},
        {"region": "west", "quarter": "Q2", "amt": "n/a", "customer": "initech", "vip": None},
        {"region": "north", "quarter": "Q1", "amt": "30", "customer": "acme"},
    ]


def _bucket_on(field: str, value: str, bucket_id: str, label: str) -> CustomBucket:
    return CustomBucket(
        id=bucket_id,
        label=label,
        filters=(FilterCondition(field=field, operator="in", values=(value,)),),
    )


@pytest.fixture
def region_bucket():
    """Return a factory for `region in [value]` buckets."""

    return lambda region: _bucket_on("region", region, region, region.title())


@pytest.fixture
def quarter_bucket():
    """Return a factory for `quarter in [value]` buckets."""

    return lambda quarter: _bucket_on("quarter", quarter, quarter.lower(), quarter)


@pytest.fixture
def sum_amt() -> PivotValue:
    """Return a sum(amt) metric."""

    return PivotValue(id="amt_sum", field="amt", statistic="sum")
