# splits/types.py
"""Split types handed from the scan to the join stage."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

__all__ = ["FileSplit", "GroupedSplit", "SplitUnit"]

_OFFSETS = struct.Struct(">QQ")


@dataclass(frozen=True)
class FileSplit:
    """A contiguous byte range of one data file."""

    path: str
    """Path of the file this split reads"""

    start: int
    """Byte offset of the first byte (inclusive)"""

    length: int
    """Number of bytes covered"""

    hosts: Tuple[str, ...] = ()
    """Hosts holding a replica of the range, most preferred first"""

    bucket_id: Optional[int] = None
    """Bucket the file belongs to, None when the file carries no bucket metadata"""

    def __post_init__(self) -> None:
        if self.start < 0 or self.length < 0:
            raise ValueError(
                f"start and length must be >= 0, got start={self.start} length={self.length}"
            )
        if self.bucket_id is not None and self.bucket_id < 0:
            raise ValueError(f"bucket_id must be >= 0 or None, got {self.bucket_id}")
        object.__setattr__(self, "hosts", tuple(self.hosts))

    @property
    def identity_key(self) -> bytes:
        """Bytes compared (unsigned, lexicographically) to order and dedupe splits."""
        return self.path.encode("utf-8") + _OFFSETS.pack(self.start, self.length)

    @property
    def total_length(self) -> int:
        return self.length


@dataclass(frozen=True)
class GroupedSplit:
    """
    Several splits merged into one work assignment.

    Members are either file splits or, after a second grouping pass, other
    grouped splits. A nested group is re-expanded into one event per member
    when it is dispatched.
    """

    members: Tuple["SplitUnit", ...]
    hosts: Tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError("GroupedSplit needs at least one member")
        object.__setattr__(self, "members", tuple(self.members))
        if not self.hosts:
            seen = []
            for member in self.members:
                for host in member.hosts:
                    if host not in seen:
                        seen.append(host)
            object.__setattr__(self, "hosts", tuple(seen))
        else:
            object.__setattr__(self, "hosts", tuple(self.hosts))

    @property
    def is_nested(self) -> bool:
        return any(isinstance(m, GroupedSplit) for m in self.members)

    @property
    def total_length(self) -> int:
        return sum(m.total_length for m in self.members)

    def expand(self) -> Tuple["SplitUnit", ...]:
        """Units dispatched as separate events for this group."""
        return self.members if self.is_nested else (self,)

    def file_splits(self) -> Tuple[FileSplit, ...]:
        """All leaf file splits, depth first."""
        out = []
        for member in self.members:
            if isinstance(member, GroupedSplit):
                out.extend(member.file_splits())
            else:
                out.append(member)
        return tuple(out)


SplitUnit = Union[FileSplit, GroupedSplit]
