# splits/classify.py
"""Assign the splits of one logical input to buckets."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from ..errors import BucketRangeViolation, MissingBucketMapping, UnsupportedSplitType
from ..multimap import OrderedMultimap
from ..routing.redistribute import redistribute_buckets
from .types import FileSplit

logger = logging.getLogger(__name__)

__all__ = ["SplitClassifier", "sort_and_dedupe", "assign_buckets_by_arrival"]


def sort_and_dedupe(splits: Iterable[FileSplit]) -> List[FileSplit]:
    """Order splits by identity key and drop splits with a repeated key."""
    by_key: Dict[bytes, FileSplit] = {}
    for split in splits:
        by_key.setdefault(split.identity_key, split)
    return [by_key[k] for k in sorted(by_key)]


def assign_buckets_by_arrival(
    splits: Iterable[FileSplit],
    input_bucket_count: int,
) -> OrderedMultimap[int, FileSplit]:
    """
    Legacy bucket assignment for data without bucket metadata.

    Splits are taken in arrival order, which is assumed to already follow
    the sorted file names the buckets were written under, and assigned
    round-robin: the i-th distinct split goes to bucket i % input_bucket_count.
    Correctness depends on the producer's ordering, which is not checked here.
    """
    seen = set()
    assigned: OrderedMultimap[int, FileSplit] = OrderedMultimap()
    position = 0
    for split in splits:
        key = split.identity_key
        if key in seen:
            continue
        seen.add(key)
        assigned.put(position % input_bucket_count, split)
        position += 1
    return assigned.sorted_by_key()


class SplitClassifier:
    """Groups a logical input's splits by bucket in the primary bucket space."""

    def __init__(
        self,
        num_buckets: int,
        primary_input_name: str = "",
        num_inputs: int = 1,
        input_to_bucket_map: Optional[Mapping[str, int]] = None,
    ):
        """
        Args:
            num_buckets: Bucket count of the primary (big table) input
            primary_input_name: Name of the primary input, "" when the vertex has one input
            num_inputs: Number of inputs that must report before parallelism is set
            input_to_bucket_map: Bucket counts of side inputs, by input name
        """
        if num_buckets < 1:
            raise BucketRangeViolation(f"num_buckets must be >= 1, got {num_buckets}")
        self.num_buckets = num_buckets
        self.primary_input_name = primary_input_name
        self.num_inputs = num_inputs
        self.input_to_bucket_map = dict(input_to_bucket_map or {})

    @property
    def is_multi_input(self) -> bool:
        return self.num_inputs != 1

    def is_primary(self, input_name: str) -> bool:
        return not self.primary_input_name or input_name == self.primary_input_name

    def input_bucket_count(self, input_name: str) -> int:
        """Bucket count the named input was written with."""
        if self.is_primary(input_name):
            return self.num_buckets
        if not self.is_multi_input or input_name not in self.input_to_bucket_map:
            raise MissingBucketMapping(
                f"No bucket count configured for side input {input_name!r}"
            )
        count = self.input_to_bucket_map[input_name]
        if count < 1:
            raise BucketRangeViolation(
                f"Bucket count for input {input_name!r} must be >= 1, got {count}"
            )
        return count

    def classify(self, input_name: str, splits: Iterable[object]) -> OrderedMultimap[int, FileSplit]:
        """
        Map primary bucket id -> splits for one input.

        Explicit bucket ids are reduced modulo the input's bucket count and
        each bucket's splits are sorted and deduplicated by identity key. If
        any split lacks a bucket id the legacy arrival-order assignment is
        used for the whole input instead. Side inputs whose bucket count
        differs from the primary are then redistributed.

        Raises:
            UnsupportedSplitType: A split is not a FileSplit
            MissingBucketMapping: Side input without a configured bucket count
            BucketRangeViolation: A resulting bucket id is outside 0..num_buckets-1
        """
        splits = list(splits)
        for split in splits:
            if not isinstance(split, FileSplit):
                raise UnsupportedSplitType(
                    f"Cannot handle splits other than FileSplit for input {input_name!r}: "
                    f"{type(split).__name__}"
                )

        input_bucket_count = self.input_bucket_count(input_name)

        if any(s.bucket_id is None for s in splits):
            logger.warning(
                "Input %s has splits without bucket ids; "
                "falling back to arrival-order bucket assignment", input_name,
            )
            bucket_splits = assign_buckets_by_arrival(splits, input_bucket_count)
        else:
            bucket_splits = self._group_by_bucket_id(splits, input_bucket_count)

        if self.is_multi_input and input_bucket_count != self.num_buckets:
            bucket_splits = redistribute_buckets(bucket_splits, self.num_buckets, input_bucket_count)

        bad = [b for b in bucket_splits.keys() if not 0 <= b < self.num_buckets]
        if bad:
            raise BucketRangeViolation(
                f"Input {input_name!r} produced bucket ids {bad} outside 0..{self.num_buckets - 1}"
            )

        logger.debug("Bucket splits for input %s: %r", input_name, bucket_splits)
        return bucket_splits

    @staticmethod
    def _group_by_bucket_id(
        splits: List[FileSplit],
        input_bucket_count: int,
    ) -> OrderedMultimap[int, FileSplit]:
        by_bucket: Dict[int, List[FileSplit]] = {}
        for split in splits:
            by_bucket.setdefault(split.bucket_id, []).append(split)

        grouped: OrderedMultimap[int, FileSplit] = OrderedMultimap()
        # A reduced id can collect several raw ids; ascending raw order keeps it stable.
        for raw_bucket in sorted(by_bucket):
            grouped.put_all(raw_bucket % input_bucket_count, sort_and_dedupe(by_bucket[raw_bucket]))
        return grouped.sorted_by_key()
