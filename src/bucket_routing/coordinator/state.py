# coordinator/state.py
"""Mutable state owned by one VertexCoordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from ..errors import ProtocolViolation
from ..multimap import OrderedMultimap

__all__ = ["CoordinatorState"]


@dataclass
class CoordinatorState:
    """Report bookkeeping; finalized is set once, when every input has reported."""

    num_inputs_affecting_parallelism: int
    num_inputs_seen: int = 0
    finalized: bool = False
    reported_inputs: List[str] = field(default_factory=list)
    pending_side_inputs: Dict[str, OrderedMultimap] = field(default_factory=dict)
    """Side input name -> grouped splits by bucket, in arrival order"""

    @property
    def all_inputs_seen(self) -> bool:
        return self.num_inputs_seen == self.num_inputs_affecting_parallelism

    def check_new_input(self, input_name: str) -> None:
        if self.finalized:
            raise ProtocolViolation(
                f"Input {input_name!r} reported after parallelism was finalized"
            )
        if input_name in self.reported_inputs:
            raise ProtocolViolation(f"Input {input_name!r} reported more than once")
        if self.num_inputs_seen >= self.num_inputs_affecting_parallelism:
            raise ProtocolViolation(
                f"Input {input_name!r} exceeds the {self.num_inputs_affecting_parallelism} "
                f"expected inputs"
            )

    def record_seen(self, input_name: str) -> None:
        self.reported_inputs.append(input_name)
        self.num_inputs_seen += 1
