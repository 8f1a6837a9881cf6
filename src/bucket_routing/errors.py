"""Fatal error kinds raised while routing splits to work units."""

from __future__ import annotations

__all__ = [
    "RoutingError",
    "ProtocolViolation",
    "UnsupportedSplitType",
    "BucketRangeViolation",
    "MissingBucketMapping",
]


class RoutingError(RuntimeError):
    """Base class for errors that abort the whole stage."""


class ProtocolViolation(RoutingError):
    """An event sequence or payload does not follow the runtime protocol."""


class UnsupportedSplitType(RoutingError):
    """A split is not of a kind the classifier understands."""


class BucketRangeViolation(RoutingError):
    """A bucket id fell outside the expected range."""


class MissingBucketMapping(RoutingError):
    """A side input has no configured bucket count."""
