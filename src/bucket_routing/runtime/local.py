# runtime/local.py
"""In-memory runtime that records everything the coordinator publishes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..errors import ProtocolViolation
from .events import (
    DataInformationEvent,
    EdgeManagerDescriptor,
    EdgeProperty,
    InputSpec,
    ProcessorEvent,
    ScheduledTask,
    VertexLocationHint,
)

logger = logging.getLogger(__name__)

__all__ = ["LocalVertexContext", "ParallelismUpdate"]


@dataclass(frozen=True)
class ParallelismUpdate:
    task_count: int
    location_hint: VertexLocationHint
    edge_managers: Dict[str, EdgeManagerDescriptor]
    input_specs: Dict[str, InputSpec]


@dataclass
class LocalVertexContext:
    """
    VertexContext for dry runs and tests.

    Resources are expressed in MB; available slots are
    total_memory_mb // task_memory_mb as on a real cluster.
    """

    user_payload: bytes
    vertex_name: str = "join"
    total_memory_mb: int = 4096
    task_memory_mb: int = 1024
    edges: Mapping[str, EdgeProperty] = field(default_factory=dict)

    root_input_events: Dict[str, List[DataInformationEvent]] = field(default_factory=dict)
    parallelism_updates: List[ParallelismUpdate] = field(default_factory=list)
    processor_events: Dict[int, List[ProcessorEvent]] = field(default_factory=dict)
    scheduled: List[ScheduledTask] = field(default_factory=list)

    def total_available_memory(self) -> int:
        return self.total_memory_mb

    def task_memory(self) -> int:
        return self.task_memory_mb

    def vertex_num_tasks(self, vertex_name: str) -> int:
        if vertex_name != self.vertex_name:
            raise KeyError(f"Unknown vertex {vertex_name!r}")
        update = self.parallelism
        return update.task_count if update is not None else 0

    def input_edge_properties(self) -> Mapping[str, EdgeProperty]:
        return dict(self.edges)

    def schedule_tasks(self, tasks: Sequence[ScheduledTask]) -> None:
        self.scheduled.extend(tasks)

    def add_root_input_events(self, input_name: str, events: List[DataInformationEvent]) -> None:
        for event in events:
            if event.target_index is None:
                raise ProtocolViolation(f"Event for input {input_name!r} has no target index")
        self.root_input_events.setdefault(input_name, []).extend(events)
        logger.debug("Received %d events for input %s", len(events), input_name)

    def set_vertex_parallelism(
        self,
        task_count: int,
        location_hint: VertexLocationHint,
        edge_managers: Dict[str, EdgeManagerDescriptor],
        input_specs: Dict[str, InputSpec],
    ) -> None:
        if self.parallelism_updates:
            raise ProtocolViolation(f"Parallelism of vertex {self.vertex_name} already set")
        self.parallelism_updates.append(
            ParallelismUpdate(task_count, location_hint, dict(edge_managers), dict(input_specs))
        )

    def send_event_to_processor(self, events: List[ProcessorEvent], task_index: int) -> None:
        update = self.parallelism
        if update is None or not 0 <= task_index < update.task_count:
            raise ProtocolViolation(
                f"Processor event for task {task_index} before parallelism covers it"
            )
        self.processor_events.setdefault(task_index, []).extend(events)

    # ------------------------------------------------------------------
    # Inspection helpers
    # ------------------------------------------------------------------

    @property
    def parallelism(self) -> Optional[ParallelismUpdate]:
        return self.parallelism_updates[-1] if self.parallelism_updates else None

    def events_for_task(self, input_name: str, task_index: int) -> List[DataInformationEvent]:
        return [
            e for e in self.root_input_events.get(input_name, [])
            if e.target_index == task_index
        ]
