# runtime/context.py
"""What the coordinator needs from the DAG runtime."""

from __future__ import annotations

from typing import Dict, List, Mapping, Protocol, Sequence

from .events import (
    DataInformationEvent,
    EdgeManagerDescriptor,
    EdgeProperty,
    InputSpec,
    ProcessorEvent,
    ScheduledTask,
    VertexLocationHint,
)

__all__ = ["VertexContext"]


class VertexContext(Protocol):
    """Runtime services for one join vertex; called from a single thread."""

    vertex_name: str
    user_payload: bytes

    def total_available_memory(self) -> int:
        ...

    def task_memory(self) -> int:
        ...

    def vertex_num_tasks(self, vertex_name: str) -> int:
        ...

    def input_edge_properties(self) -> Mapping[str, EdgeProperty]:
        ...

    def schedule_tasks(self, tasks: Sequence[ScheduledTask]) -> None:
        ...

    def add_root_input_events(self, input_name: str, events: List[DataInformationEvent]) -> None:
        ...

    def set_vertex_parallelism(
        self,
        task_count: int,
        location_hint: VertexLocationHint,
        edge_managers: Dict[str, EdgeManagerDescriptor],
        input_specs: Dict[str, InputSpec],
    ) -> None:
        ...

    def send_event_to_processor(self, events: List[ProcessorEvent], task_index: int) -> None:
        ...
