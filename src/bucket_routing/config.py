# bucket_routing/config.py
"""Coordinator configuration and its initialization payload."""
from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from .errors import ProtocolViolation
from .splits.grouping import DEFAULT_GROUPING_WAVES, DEFAULT_MIN_GROUP_BYTES, DEFAULT_SMB_WAVES
from .wire import ByteReader, pack_str

__all__ = ["CoordinatorConfig", "VertexType", "CONFIG_PAYLOAD_VERSION"]

CONFIG_PAYLOAD_VERSION = 1

_MAGIC = b"BRC"
_HEADER = struct.Struct(">BiiB?ddq")
_I32 = struct.Struct(">i")


class VertexType(Enum):
    """How the join vertex's incoming edges are wired."""

    # Bucket map join: a single bucketed input, routing table sent to custom edges
    INITIALIZED_EDGES = 1
    # Sort-merge join with custom edges to configure
    MULTI_INPUT_INITIALIZED_EDGES = 2
    # Sort-merge join whose edges need no routing table
    MULTI_INPUT_UNINITIALIZED_EDGES = 3

    @property
    def has_initialized_edges(self) -> bool:
        return self in (VertexType.INITIALIZED_EDGES, VertexType.MULTI_INPUT_INITIALIZED_EDGES)


@dataclass(frozen=True)
class CoordinatorConfig:
    """Everything one coordinator instance needs, fixed for its lifetime."""

    num_buckets: int
    primary_input_name: str = ""  # "" when the vertex has a single bucketed input
    vertex_type: VertexType = VertexType.INITIALIZED_EDGES
    consistent_splits: bool = False  # stable, first-host location hints
    num_inputs: int = 1  # inputs that must report before parallelism is set
    input_to_bucket_map: Optional[Mapping[str, int]] = None  # side input -> its bucket count

    # Grouping
    grouping_waves: float = DEFAULT_GROUPING_WAVES
    smb_waves: float = DEFAULT_SMB_WAVES  # second pass for sort-merge primary inputs
    min_group_bytes: int = DEFAULT_MIN_GROUP_BYTES  # 0 disables merging by size

    def __post_init__(self) -> None:
        if self.num_buckets < 1:
            raise ValueError(f"num_buckets must be >= 1, got {self.num_buckets}")
        if self.num_inputs < 1:
            raise ValueError(f"num_inputs must be >= 1, got {self.num_inputs}")
        if self.num_inputs > 1 and not self.primary_input_name:
            raise ValueError(
                f"primary_input_name is required when num_inputs > 1 (got {self.num_inputs})"
            )
        if self.grouping_waves <= 0 or self.smb_waves <= 0:
            raise ValueError(
                f"waves must be > 0, got grouping_waves={self.grouping_waves} "
                f"smb_waves={self.smb_waves}"
            )
        if self.min_group_bytes < 0:
            raise ValueError(f"min_group_bytes must be >= 0, got {self.min_group_bytes}")
        if self.input_to_bucket_map is not None:
            object.__setattr__(self, "input_to_bucket_map", dict(self.input_to_bucket_map))

    def to_payload(self) -> bytes:
        """Serialize for the runtime's vertex user payload."""
        mapping: Dict[str, int] = dict(self.input_to_bucket_map or {})
        parts = [
            _MAGIC,
            _HEADER.pack(
                CONFIG_PAYLOAD_VERSION,
                self.num_buckets,
                self.num_inputs,
                self.vertex_type.value,
                self.consistent_splits,
                self.grouping_waves,
                self.smb_waves,
                self.min_group_bytes,
            ),
            pack_str(self.primary_input_name),
            _I32.pack(-1 if self.input_to_bucket_map is None else len(mapping)),
        ]
        for name in sorted(mapping):
            parts.append(pack_str(name))
            parts.append(_I32.pack(mapping[name]))
        return b"".join(parts)

    @classmethod
    def from_payload(cls, payload: bytes) -> "CoordinatorConfig":
        reader = ByteReader(payload, "coordinator payload")
        if reader.take(len(_MAGIC)) != _MAGIC:
            raise ProtocolViolation("Coordinator payload has the wrong magic bytes")
        (version, num_buckets, num_inputs, vtype, consistent,
         waves, smb_waves, min_group_bytes) = reader.unpack(_HEADER)
        if version != CONFIG_PAYLOAD_VERSION:
            raise ProtocolViolation(f"Unknown coordinator payload version {version}")
        try:
            vertex_type = VertexType(vtype)
        except ValueError as e:
            raise ProtocolViolation(f"Unknown vertex type {vtype}") from e
        primary = reader.read_str()
        (count,) = reader.unpack(_I32)
        mapping: Optional[Dict[str, int]] = None
        if count >= 0:
            mapping = {}
            for _ in range(count):
                name = reader.read_str()
                (buckets,) = reader.unpack(_I32)
                mapping[name] = buckets
        reader.expect_end()
        try:
            return cls(
                num_buckets=num_buckets,
                primary_input_name=primary,
                vertex_type=vertex_type,
                consistent_splits=consistent,
                num_inputs=num_inputs,
                input_to_bucket_map=mapping,
                grouping_waves=waves,
                smb_waves=smb_waves,
                min_group_bytes=min_group_bytes,
            )
        except ValueError as e:
            raise ProtocolViolation(f"Invalid coordinator payload: {e}") from e
