"""Bucket-aware split routing for join vertices."""

from .config import CoordinatorConfig, VertexType
from .coordinator import BUCKET_ROUTING_EDGE, EventDispatcher, VertexCoordinator
from .errors import (
    BucketRangeViolation,
    MissingBucketMapping,
    ProtocolViolation,
    RoutingError,
    UnsupportedSplitType,
)
from .routing import RoutingTable, RoutingTableBuilder, redistribute_buckets
from .splits import FileSplit, GroupedSplit, SplitClassifier, WaveSplitGrouper

__all__ = [
    # Coordinator
    "VertexCoordinator",
    "EventDispatcher",
    "BUCKET_ROUTING_EDGE",

    # Configuration
    "CoordinatorConfig",
    "VertexType",

    # Splits and routing
    "FileSplit",
    "GroupedSplit",
    "SplitClassifier",
    "WaveSplitGrouper",
    "RoutingTable",
    "RoutingTableBuilder",
    "redistribute_buckets",

    # Errors
    "RoutingError",
    "ProtocolViolation",
    "UnsupportedSplitType",
    "BucketRangeViolation",
    "MissingBucketMapping",
]
