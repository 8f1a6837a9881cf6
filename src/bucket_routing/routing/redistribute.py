# routing/redistribute.py
"""Remap a side input's buckets onto the primary bucket space."""

from __future__ import annotations

import logging
from math import gcd
from typing import Dict, List, TypeVar

from ..errors import BucketRangeViolation
from ..multimap import OrderedMultimap

logger = logging.getLogger(__name__)

__all__ = ["redistribute_buckets", "reachable_primary_buckets"]

V = TypeVar("V")


def reachable_primary_buckets(side_bucket: int, num_buckets: int, side_bucket_count: int) -> List[int]:
    """
    Primary buckets a record of side bucket ``side_bucket`` can land in.

    A record hashed into side bucket s can sit in primary bucket
    (s + m * k) mod n for any m >= 0; those are exactly the primary buckets
    congruent to s modulo gcd(n, k).

    Example:
        >>> reachable_primary_buckets(1, num_buckets=6, side_bucket_count=4)
        [1, 3, 5]
    """
    g = gcd(num_buckets, side_bucket_count)
    return [b for b in range(num_buckets) if b % g == side_bucket % g]


def redistribute_buckets(
    bucket_splits: OrderedMultimap[int, V],
    num_buckets: int,
    side_bucket_count: int,
) -> OrderedMultimap[int, V]:
    """
    Send every side bucket's splits to each primary bucket that can hold its keys.

    Side buckets are partitioned into remainder classes modulo
    g = gcd(num_buckets, side_bucket_count). Primary bucket b receives every
    split of class b mod g, in ascending side-bucket order. A split may
    therefore appear under several primary buckets. When the two counts are
    equal the input is returned unchanged.

    Args:
        bucket_splits: Side bucket id -> splits, ids in 0..side_bucket_count-1
        num_buckets: Primary bucket count (n)
        side_bucket_count: Side input bucket count (k)

    Returns:
        Primary bucket id -> splits; buckets with nothing to receive are absent

    Raises:
        BucketRangeViolation: A count is < 1 or a side bucket id is out of range
    """
    if num_buckets < 1 or side_bucket_count < 1:
        raise BucketRangeViolation(
            f"Bucket counts must be >= 1, got num_buckets={num_buckets} "
            f"side_bucket_count={side_bucket_count}"
        )
    if num_buckets == side_bucket_count:
        return bucket_splits

    g = gcd(num_buckets, side_bucket_count)
    by_remainder: Dict[int, List[V]] = {}
    for side_bucket in sorted(bucket_splits.keys()):
        if not 0 <= side_bucket < side_bucket_count:
            raise BucketRangeViolation(
                f"Side bucket {side_bucket} outside 0..{side_bucket_count - 1}"
            )
        by_remainder.setdefault(side_bucket % g, []).extend(bucket_splits.get(side_bucket))

    redistributed: OrderedMultimap[int, V] = OrderedMultimap()
    for primary_bucket in range(num_buckets):
        redistributed.put_all(primary_bucket, by_remainder.get(primary_bucket % g, ()))

    logger.debug(
        "Redistributed %d side buckets (k=%d) onto %d primary buckets (n=%d, gcd=%d)",
        len(bucket_splits), side_bucket_count, len(redistributed), num_buckets, g,
    )
    return redistributed
