from .classify import SplitClassifier, assign_buckets_by_arrival, sort_and_dedupe
from .codec import decode_split, encode_split
from .grouping import SplitGroupingAdapter, WaveSplitGrouper
from .types import FileSplit, GroupedSplit, SplitUnit

__all__ = [
    "FileSplit",
    "GroupedSplit",
    "SplitUnit",
    "SplitClassifier",
    "sort_and_dedupe",
    "assign_buckets_by_arrival",
    "encode_split",
    "decode_split",
    "SplitGroupingAdapter",
    "WaveSplitGrouper",
]
