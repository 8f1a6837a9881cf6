# routing/table.py
"""Bucket -> work unit routing table."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Tuple

from ..errors import BucketRangeViolation, ProtocolViolation
from ..multimap import OrderedMultimap

logger = logging.getLogger(__name__)

__all__ = ["RoutingTable", "RoutingTableBuilder"]


class RoutingTable:
    """
    Which work units serve each primary bucket.

    A bucket may own several work units; a work unit belongs to exactly one
    bucket. Entries are append-only until ``freeze`` is called.
    """

    def __init__(self, num_buckets: int):
        if num_buckets < 1:
            raise BucketRangeViolation(f"num_buckets must be >= 1, got {num_buckets}")
        self.num_buckets = num_buckets
        self._units: OrderedMultimap[int, int] = OrderedMultimap()
        self._bucket_of: Dict[int, int] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def task_count(self) -> int:
        return len(self._bucket_of)

    def add(self, bucket: int, unit: int) -> None:
        if self._frozen:
            raise ProtocolViolation("Routing table is frozen; cannot add work units")
        if not 0 <= bucket < self.num_buckets:
            raise BucketRangeViolation(f"Bucket {bucket} outside 0..{self.num_buckets - 1}")
        if unit in self._bucket_of:
            raise ProtocolViolation(
                f"Work unit {unit} already assigned to bucket {self._bucket_of[unit]}"
            )
        self._units.put(bucket, unit)
        self._bucket_of[unit] = bucket

    def freeze(self) -> None:
        self._frozen = True

    def units_for(self, bucket: int) -> Tuple[int, ...]:
        return self._units.get(bucket)

    def bucket_of(self, unit: int) -> int:
        return self._bucket_of[unit]

    def buckets(self) -> List[int]:
        return sorted(self._units.keys())

    def items(self) -> Iterator[Tuple[int, Tuple[int, ...]]]:
        """(bucket, units) pairs in ascending bucket order."""
        for bucket in self.buckets():
            yield bucket, self._units.get(bucket)

    def as_dict(self) -> Dict[int, Tuple[int, ...]]:
        return dict(self.items())

    def __len__(self) -> int:
        return len(self._units)

    def __repr__(self) -> str:
        return f"RoutingTable(num_buckets={self.num_buckets}, table={self.as_dict()!r})"


class RoutingTableBuilder:
    """Assigns monotonically increasing work unit indices for the primary input."""

    def __init__(self, num_buckets: int):
        self.table = RoutingTable(num_buckets)
        self._next_unit = 0

    @property
    def task_count(self) -> int:
        return self._next_unit

    def assign(self, bucket: int, groups: Iterable[object]) -> List[int]:
        """Give each group in ``groups`` a new work unit under ``bucket``."""
        units = []
        for _ in groups:
            self.table.add(bucket, self._next_unit)
            units.append(self._next_unit)
            self._next_unit += 1
        return units

    def build(self) -> RoutingTable:
        self.table.freeze()
        logger.debug("Routing table built: %r", self.table)
        return self.table
