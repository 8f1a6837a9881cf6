# routing/encoding.py
"""Payloads derived from the routing table."""

from __future__ import annotations

import struct
from typing import Dict, Tuple

from ..errors import ProtocolViolation
from ..wire import ByteReader
from .table import RoutingTable

__all__ = [
    "encode_routing_descriptor",
    "decode_routing_descriptor",
    "encode_bucket_identity",
    "decode_bucket_identity",
    "BUCKET_IDENTITY_SIZE",
]

_I32 = struct.Struct(">i")
_IDENTITY = struct.Struct(">ii")

BUCKET_IDENTITY_SIZE = _IDENTITY.size


def encode_routing_descriptor(table: RoutingTable) -> bytes:
    """
    Serialize the table for the shuffle layer.

    Layout: num_buckets i32 | entry count i32 | per entry:
    bucket i32 | unit count i32 | unit i32 ...
    Entries are in ascending bucket order; units keep assignment order.
    """
    entries = list(table.items())
    parts = [_I32.pack(table.num_buckets), _I32.pack(len(entries))]
    for bucket, units in entries:
        parts.append(_I32.pack(bucket))
        parts.append(_I32.pack(len(units)))
        parts.extend(_I32.pack(u) for u in units)
    return b"".join(parts)


def decode_routing_descriptor(payload: bytes) -> Tuple[int, Dict[int, Tuple[int, ...]]]:
    """Return (num_buckets, bucket -> units) from encode_routing_descriptor output."""
    reader = ByteReader(payload, "routing descriptor")
    (num_buckets,) = reader.unpack(_I32)
    (num_entries,) = reader.unpack(_I32)
    if num_buckets < 1 or num_entries < 0:
        raise ProtocolViolation(
            f"Bad routing descriptor header: num_buckets={num_buckets} entries={num_entries}"
        )
    table: Dict[int, Tuple[int, ...]] = {}
    for _ in range(num_entries):
        (bucket,) = reader.unpack(_I32)
        (count,) = reader.unpack(_I32)
        if count < 0:
            raise ProtocolViolation(f"Negative unit count for bucket {bucket}")
        table[bucket] = tuple(reader.unpack(_I32)[0] for _ in range(count))
    reader.expect_end()
    return num_buckets, table


def encode_bucket_identity(num_buckets: int, bucket: int) -> bytes:
    """Eight bytes telling a work unit which bucket of how many it serves."""
    return _IDENTITY.pack(num_buckets, bucket)


def decode_bucket_identity(payload: bytes) -> Tuple[int, int]:
    if len(payload) != BUCKET_IDENTITY_SIZE:
        raise ProtocolViolation(
            f"Bucket identity payload must be {BUCKET_IDENTITY_SIZE} bytes, got {len(payload)}"
        )
    return _IDENTITY.unpack(payload)
