from .dispatch import EventDispatcher
from .state import CoordinatorState
from .vertex import BUCKET_ROUTING_EDGE, VertexCoordinator

__all__ = [
    "EventDispatcher",
    "CoordinatorState",
    "VertexCoordinator",
    "BUCKET_ROUTING_EDGE",
]
