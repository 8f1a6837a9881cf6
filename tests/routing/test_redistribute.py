# tests/routing/test_redistribute.py
import pytest

from bucket_routing.errors import BucketRangeViolation
from bucket_routing.multimap import OrderedMultimap
from bucket_routing.routing.redistribute import reachable_primary_buckets, redistribute_buckets


def _side_map(k):
    m = OrderedMultimap()
    for b in range(k):
        m.put(b, f"s{b}")
    return m


@pytest.mark.parametrize("n, k, side_bucket, expected", [
    (6, 4, 1, [1, 3, 5]),
    (6, 4, 2, [0, 2, 4]),
    (6, 3, 2, [2, 5]),
    (4, 6, 5, [1, 3]),
    (5, 3, 2, [0, 1, 2, 3, 4]),
    (6, 6, 4, [4]),
])
def test_reachable_primary_buckets(n, k, side_bucket, expected):
    assert reachable_primary_buckets(side_bucket, n, k) == expected


def test_redistribution_matches_reachable_buckets():
    n, k = 6, 4
    got = redistribute_buckets(_side_map(k), n, k)
    for s in range(k):
        holders = [b for b, vals in got.items() if f"s{s}" in vals]
        assert holders == reachable_primary_buckets(s, n, k)


def test_primary_bucket_receives_its_remainder_class_in_side_order():
    got = redistribute_buckets(_side_map(6), num_buckets=4, side_bucket_count=6)
    assert got.keys() == [0, 1, 2, 3]
    assert got.get(1) == ("s1", "s3", "s5")
    assert got.get(2) == ("s0", "s2", "s4")


def test_equal_counts_are_identity():
    side = _side_map(6)
    assert redistribute_buckets(side, 6, 6) is side


def test_empty_remainder_class_leaves_bucket_absent():
    side = OrderedMultimap()
    side.put(0, "s0")
    got = redistribute_buckets(side, num_buckets=6, side_bucket_count=4)
    assert got.keys() == [0, 2, 4]


def test_side_bucket_out_of_range_is_fatal():
    side = OrderedMultimap()
    side.put(7, "s7")
    with pytest.raises(BucketRangeViolation):
        redistribute_buckets(side, num_buckets=6, side_bucket_count=4)


@pytest.mark.parametrize("n, k", [(0, 4), (6, 0)])
def test_non_positive_counts_are_fatal(n, k):
    with pytest.raises(BucketRangeViolation):
        redistribute_buckets(OrderedMultimap(), n, k)
