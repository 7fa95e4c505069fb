from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Tuple

from pivot_core.config import KEY_SEPARATOR, TOTAL_LABEL, CustomBucket, dedupe_ids
from pivot_core.filters import matches
from pivot_core.records import Record


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AxisNode:
    """One bucket on an axis. `members` are indices into the record list."""

    key: str
    label: str
    members: FrozenSet[int]
    children: Tuple["AxisNode", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


def build_axis(
    records: Sequence[Record],
    buckets: Sequence[CustomBucket],
    *,
    candidates: Optional[Sequence[int]] = None,
    total_key: str = "total",
) -> List[AxisNode]:
    """Build one axis from the configured buckets.

    Every bucket filters the full candidate set on its own, so a record may
    land in several buckets or in none. With no buckets the axis is a single
    "Total" node holding every candidate. Repeated bucket ids get a `#n`
    suffix so node keys stay unique.
    """
    if candidates is None:
        candidates = range(len(records))

    if not buckets:
        return [AxisNode(key=total_key, label=TOTAL_LABEL, members=frozenset(candidates))]

    keys = dedupe_ids(bucket.id for bucket in buckets)
    nodes: List[AxisNode] = []
    for key, bucket in zip(keys, buckets):
        if key != bucket.id:
            logger.warning("Duplicate bucket id %r renamed to %r", bucket.id, key)
        nodes.append(
            AxisNode(
                key=key,
                label=bucket.label,
                members=frozenset(i for i in candidates if matches(records[i], bucket)),
            )
        )
    return nodes


def axis_leaves(nodes: Sequence[AxisNode], parent_key: str = "") -> List[AxisNode]:
    """Leaves in depth-first, left-to-right order, keyed by their full path."""
    out: List[AxisNode] = []
    for node in nodes:
        key = f"{parent_key}{KEY_SEPARATOR}{node.key}" if parent_key else node.key
        if node.is_leaf:
            out.append(AxisNode(key=key, label=node.label, members=node.members))
        else:
            out.extend(axis_leaves(node.children, key))
    return out
