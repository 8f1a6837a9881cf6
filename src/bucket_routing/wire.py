# bucket_routing/wire.py
"""Low-level helpers shared by the binary payload codecs.

All integers are big-endian so that payloads read the same on every host.
Strings are written as a 2-byte length followed by UTF-8 bytes.
"""

from __future__ import annotations

import struct
from typing import Tuple

from .errors import ProtocolViolation

__all__ = ["pack_str", "ByteReader"]

_STR_LEN = struct.Struct(">H")


def pack_str(value: str) -> bytes:
    """Encode a string as length-prefixed UTF-8."""
    raw = value.encode("utf-8")
    if len(raw) > 0xFFFF:
        raise ValueError(f"String too long for payload: {len(raw)} bytes")
    return _STR_LEN.pack(len(raw)) + raw


class ByteReader:
    """Sequential reader over a payload; short reads are protocol errors."""

    def __init__(self, data: bytes, what: str = "payload"):
        self._data = memoryview(bytes(data))
        self._pos = 0
        self._what = what

    def take(self, n: int) -> bytes:
        end = self._pos + n
        if n < 0 or end > len(self._data):
            raise ProtocolViolation(
                f"Truncated {self._what}: wanted {n} bytes at offset {self._pos}, "
                f"have {len(self._data) - self._pos}"
            )
        chunk = self._data[self._pos:end].tobytes()
        self._pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> Tuple:
        return fmt.unpack(self.take(fmt.size))

    def read_str(self) -> str:
        (length,) = self.unpack(_STR_LEN)
        return self.take(length).decode("utf-8")

    def expect_end(self) -> None:
        if self._pos != len(self._data):
            raise ProtocolViolation(
                f"Trailing bytes in {self._what}: {len(self._data) - self._pos} unread"
            )
