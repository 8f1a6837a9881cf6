from .context import VertexContext
from .events import (
    ConfigureTasksEvent,
    DataInformationEvent,
    DataMovementType,
    EdgeManagerDescriptor,
    EdgeProperty,
    InputDescriptor,
    InputSpec,
    ProcessorEvent,
    ScheduledTask,
    TaskLocationHint,
    UpdatePayloadEvent,
    VertexLocationHint,
)
from .local import LocalVertexContext, ParallelismUpdate

__all__ = [
    "VertexContext",
    "LocalVertexContext",
    "ParallelismUpdate",
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
