from __future__ import annotations

import logging
import operator
from typing import Callable, Dict, List, Mapping, Sequence

from pivot_core.config import CustomBucket, FilterCondition
from pivot_core.records import Record, to_number, to_text


logger = logging.getLogger(__name__)

_ORDERING: Dict[str, Callable[[float, float], bool]] = {
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}


def _equals(value: object, target: object) -> bool:
    left = to_number(value)
    right = to_number(target)
    if left is not None and right is not None:
        return left == right
    return to_text(value) == to_text(target)


def condition_matches(record: Record, cond: FilterCondition) -> bool:
    value = record.get(cond.field)
    op = cond.operator

    if op == "in":
        # no values checked yet means the field is unconstrained
        if not cond.values:
            return True
        text = to_text(value)
        return any(to_text(v) == text for v in cond.values)

    if op == "eq":
        return _equals(value, cond.val1)
    if op == "neq":
        return not _equals(value, cond.val1)

    if op in _ORDERING:
        left = to_number(value)
        right = to_number(cond.val1)
        if left is None or right is None:
            return False
        return _ORDERING[op](left, right)

    if op == "between":
        num = to_number(value)
        low = to_number(cond.val1)
        high = to_number(cond.val2)
        if num is None or low is None or high is None:
            return False
        return low <= num <= high

    logger.warning("Unknown filter operator %r on field %r", op, cond.field)
    return False


def matches(record: Record, bucket: CustomBucket) -> bool:
    """True when the record satisfies every condition of the bucket."""
    return all(condition_matches(record, cond) for cond in bucket.filters)


def apply_allow_lists(records: Sequence[Record], allow: Mapping[str, Sequence[str]]) -> List[int]:
    """Indices of records whose values pass every non-empty allow-list."""
    active = {name: {to_text(v) for v in values} for name, values in allow.items() if values}
    if not active:
        return list(range(len(records)))

    kept: List[int] = []
    for idx, record in enumerate(records):
        if all(to_text(record.get(name)) in allowed for name, allowed in active.items()):
            kept.append(idx)
    return kept
