# coordinator/dispatch.py
"""Turn grouped splits into data-assignment events for work units."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from ..multimap import OrderedMultimap
from ..routing.encoding import encode_bucket_identity
from ..routing.table import RoutingTable
from ..runtime.context import VertexContext
from ..runtime.events import DataInformationEvent, InputSpec, ProcessorEvent
from ..splits.codec import encode_split
from ..splits.types import GroupedSplit, SplitUnit

logger = logging.getLogger(__name__)

__all__ = ["EventDispatcher"]


class _EventBatch:
    """Events for one input, numbered sequentially per target work unit."""

    def __init__(self, task_count: int, encode: Callable[[SplitUnit], bytes]):
        self.counts = [0] * task_count
        self.events: List[DataInformationEvent] = []
        self._encode = encode

    def add(self, unit: SplitUnit, target: int, payload: Optional[bytes] = None) -> None:
        if payload is None:
            payload = self._encode(unit)
        self.events.append(
            DataInformationEvent.with_payload(self.counts[target], payload, target_index=target)
        )
        self.counts[target] += 1

    def input_spec(self) -> InputSpec:
        return InputSpec(tuple(self.counts))


class EventDispatcher:
    """Publishes data-assignment and bucket identity events through the runtime."""

    def __init__(
        self,
        context: VertexContext,
        encode: Callable[[SplitUnit], bytes] = encode_split,
    ):
        self.context = context
        self._encode = encode

    def dispatch_primary(
        self,
        input_name: str,
        assignments: Sequence[Tuple[int, GroupedSplit]],
        task_count: int,
    ) -> InputSpec:
        """
        Send each work unit its split.

        A nested group (second grouping pass) is expanded so that the work
        unit receives one event per member.

        Args:
            input_name: Primary input name
            assignments: (work unit, grouped split) pairs in work unit order
            task_count: Total work units in the routing table

        Returns:
            InputSpec with the number of events sent to each work unit
        """
        batch = _EventBatch(task_count, self._encode)
        for unit, group in assignments:
            for part in group.expand():
                batch.add(part, unit)

        logger.info("For input %s task events size is %d", input_name, len(batch.events))
        self.context.add_root_input_events(input_name, batch.events)
        return batch.input_spec()

    def dispatch_side(
        self,
        input_name: str,
        bucket_splits: OrderedMultimap[int, SplitUnit],
        table: RoutingTable,
    ) -> InputSpec:
        """
        Send every split of a side bucket to each work unit serving that bucket.

        Buckets the primary input has no work unit for are dropped.
        """
        batch = _EventBatch(table.task_count, self._encode)
        dropped = 0
        for bucket, splits in bucket_splits.items():
            targets = table.units_for(bucket)
            if not targets:
                dropped += len(splits)
                logger.debug("No work units for bucket %d of input %s; dropping %d splits",
                             bucket, input_name, len(splits))
                continue
            payloads = [self._encode(s) for s in splits]
            for target in targets:
                for split, payload in zip(splits, payloads):
                    batch.add(split, target, payload)

        logger.info(
            "For input %s task events size is %d (%d splits without a work unit)",
            input_name, len(batch.events), dropped,
        )
        self.context.add_root_input_events(input_name, batch.events)
        return batch.input_spec()

    def send_bucket_identities(self, table: RoutingTable) -> None:
        """Tell each work unit which bucket it serves; only valid after parallelism is set."""
        for bucket, units in table.items():
            payload = encode_bucket_identity(table.num_buckets, bucket)
            for unit in units:
                self.context.send_event_to_processor([ProcessorEvent(payload)], unit)
