# splits/codec.py
"""Binary encoding of splits carried inside data-assignment events.

Layout (big-endian):
    version   u8
    unit      tagged unit, see below

    file unit:    tag 0x01 | path str | start u64 | length u64 | bucket i32 (-1 = none)
                  | host count u16 | host str ...
    grouped unit: tag 0x02 | host count u16 | host str ... | member count u32 | unit ...
"""

from __future__ import annotations

import struct

from ..errors import ProtocolViolation, UnsupportedSplitType
from ..wire import ByteReader, pack_str
from .types import FileSplit, GroupedSplit, SplitUnit

__all__ = ["encode_split", "decode_split", "SPLIT_CODEC_VERSION"]

SPLIT_CODEC_VERSION = 1

TAG_FILE = 0x01
TAG_GROUPED = 0x02

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_FILE_BODY = struct.Struct(">QQi")


def encode_split(unit: SplitUnit) -> bytes:
    """Serialize a file or grouped split."""
    return _U8.pack(SPLIT_CODEC_VERSION) + _encode_unit(unit)


def decode_split(payload: bytes) -> SplitUnit:
    """
    Deserialize a payload produced by encode_split.

    Raises:
        ProtocolViolation: Truncated payload or unknown codec version
        UnsupportedSplitType: Payload holds a split kind this codec does not know
    """
    reader = ByteReader(payload, "split payload")
    (version,) = reader.unpack(_U8)
    if version != SPLIT_CODEC_VERSION:
        raise ProtocolViolation(f"Unknown split codec version {version}")
    unit = _decode_unit(reader)
    reader.expect_end()
    return unit


def _pack_hosts(hosts) -> bytes:
    return _U16.pack(len(hosts)) + b"".join(pack_str(h) for h in hosts)


def _read_hosts(reader: ByteReader) -> tuple:
    (count,) = reader.unpack(_U16)
    return tuple(reader.read_str() for _ in range(count))


def _encode_unit(unit: SplitUnit) -> bytes:
    if isinstance(unit, FileSplit):
        bucket = -1 if unit.bucket_id is None else unit.bucket_id
        return (
            _U8.pack(TAG_FILE)
            + pack_str(unit.path)
            + _FILE_BODY.pack(unit.start, unit.length, bucket)
            + _pack_hosts(unit.hosts)
        )
    if isinstance(unit, GroupedSplit):
        parts = [_U8.pack(TAG_GROUPED), _pack_hosts(unit.hosts), _U32.pack(len(unit.members))]
        parts.extend(_encode_unit(m) for m in unit.members)
        return b"".join(parts)
    raise UnsupportedSplitType(f"Cannot encode split of type {type(unit).__name__}")


def _decode_unit(reader: ByteReader) -> SplitUnit:
    (tag,) = reader.unpack(_U8)
    if tag == TAG_FILE:
        path = reader.read_str()
        start, length, bucket = reader.unpack(_FILE_BODY)
        hosts = _read_hosts(reader)
        return FileSplit(
            path=path,
            start=start,
            length=length,
            hosts=hosts,
            bucket_id=None if bucket < 0 else bucket,
        )
    if tag == TAG_GROUPED:
        hosts = _read_hosts(reader)
        (count,) = reader.unpack(_U32)
        members = tuple(_decode_unit(reader) for _ in range(count))
        if not members:
            raise ProtocolViolation("Grouped split payload has no members")
        return GroupedSplit(members=members, hosts=hosts)
    raise UnsupportedSplitType(f"Unknown split tag 0x{tag:02x}")
