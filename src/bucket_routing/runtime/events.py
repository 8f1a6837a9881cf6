# runtime/events.py
"""Values exchanged with the DAG runtime."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

__all__ = [
    "ConfigureTasksEvent",
    "DataInformationEvent",
    "UpdatePayloadEvent",
    "ProcessorEvent",
    "InputSpec",
    "TaskLocationHint",
    "VertexLocationHint",
    "ScheduledTask",
    "DataMovementType",
    "EdgeProperty",
    "EdgeManagerDescriptor",
    "InputDescriptor",
]


# ----------------------------------------------------------------------------
# Inbound events
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfigureTasksEvent:
    """Initial task-count hint for an input; at most one, before any data event."""

    num_tasks: int


@dataclass(frozen=True)
class DataInformationEvent:
    """
    One split assigned to an input.

    Inbound events carry either ``payload`` (serialized split bytes) or
    ``deserialized`` (a split object the runtime already decoded).
    Outbound events always carry ``payload`` and a ``target_index``.
    """

    source_index: int
    payload: Optional[bytes] = None
    deserialized: Any = None
    target_index: Optional[int] = None

    @classmethod
    def with_payload(cls, source_index: int, payload: bytes, target_index: Optional[int] = None):
        return cls(source_index=source_index, payload=payload, target_index=target_index)

    @classmethod
    def with_object(cls, source_index: int, obj: Any):
        return cls(source_index=source_index, deserialized=obj)


@dataclass(frozen=True)
class UpdatePayloadEvent:
    """Input payload update; never valid for bucketed inputs."""

    payload: bytes = b""


# ----------------------------------------------------------------------------
# Outbound values
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class ProcessorEvent:
    """Opaque bytes delivered straight to a work unit's processor."""

    payload: bytes


@dataclass(frozen=True)
class InputSpec:
    """Number of data events each work unit should expect from one input."""

    per_task_counts: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_task_counts", tuple(self.per_task_counts))

    @property
    def num_tasks(self) -> int:
        return len(self.per_task_counts)

    @property
    def total_events(self) -> int:
        return sum(self.per_task_counts)

    def for_task(self, task_index: int) -> int:
        return self.per_task_counts[task_index]


@dataclass(frozen=True)
class TaskLocationHint:
    hosts: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VertexLocationHint:
    task_hints: Tuple[TaskLocationHint, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "task_hints", tuple(self.task_hints))


@dataclass(frozen=True)
class ScheduledTask:
    index: int


# ----------------------------------------------------------------------------
# Edges and inputs
# ----------------------------------------------------------------------------

class DataMovementType(Enum):
    ONE_TO_ONE = "one_to_one"
    BROADCAST = "broadcast"
    SCATTER_GATHER = "scatter_gather"
    CUSTOM = "custom"


@dataclass(frozen=True)
class EdgeProperty:
    data_movement: DataMovementType
    edge_manager_name: Optional[str] = None
    """Edge manager class used when data_movement is CUSTOM"""


@dataclass(frozen=True)
class EdgeManagerDescriptor:
    class_name: str
    payload: bytes


@dataclass
class InputDescriptor:
    """Per-input settings the coordinator may read and update."""

    grouping_enabled: bool = False
    grouping_waves: Optional[float] = None
    """Overrides the configured grouping waves for this input"""
