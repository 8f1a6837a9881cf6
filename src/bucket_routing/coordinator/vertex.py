# coordinator/vertex.py
"""Bucket-aware coordinator for a join vertex.

Responsibilities:
1. Group incoming splits by bucket.
2. Publish data-assignment events for the grouped splits.
3. Build the bucket -> work unit routing table and hand its serialized form
   to every custom-routed edge.
4. For sort-merge joins, route side-input splits to the work units chosen
   for the primary input, redistributing buckets when the counts differ.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from ..config import CoordinatorConfig
from ..errors import ProtocolViolation, UnsupportedSplitType
from ..multimap import OrderedMultimap
from ..report import log_routing_summary
from ..routing.encoding import encode_routing_descriptor
from ..routing.table import RoutingTable, RoutingTableBuilder
from ..runtime.context import VertexContext
from ..runtime.events import (
    ConfigureTasksEvent,
    DataInformationEvent,
    DataMovementType,
    EdgeManagerDescriptor,
    InputDescriptor,
    InputSpec,
    ScheduledTask,
    UpdatePayloadEvent,
    VertexLocationHint,
)
from ..splits.classify import SplitClassifier
from ..splits.codec import decode_split
from ..splits.grouping import LocationProvider, SplitGroupingAdapter, WaveSplitGrouper
from ..splits.types import FileSplit, GroupedSplit
from .dispatch import EventDispatcher
from .state import CoordinatorState

logger = logging.getLogger(__name__)

__all__ = ["VertexCoordinator", "BUCKET_ROUTING_EDGE"]

# Edge manager name the shuffle layer registers for bucket-routed edges
BUCKET_ROUTING_EDGE = "bucket_routing.BucketRoutingEdge"


class VertexCoordinator:
    """
    Waits for every bucketed input of a join vertex, then fixes its parallelism.

    The runtime delivers one report per input through
    ``on_root_vertex_initialized``, never concurrently. The primary input
    defines the work units; side inputs reported earlier are queued until
    the routing table exists.
    """

    def __init__(
        self,
        context: VertexContext,
        grouper: Optional[SplitGroupingAdapter] = None,
        location_provider: Optional[LocationProvider] = None,
    ):
        self.context = context
        # Built from the configuration in initialize() unless injected
        self.grouper: Optional[SplitGroupingAdapter] = grouper
        self.location_provider = location_provider
        self.dispatcher = EventDispatcher(context)

        self.config: Optional[CoordinatorConfig] = None
        self.classifier: Optional[SplitClassifier] = None
        self.state: Optional[CoordinatorState] = None
        self.routing_table: Optional[RoutingTable] = None
        self.input_specs: Dict[str, InputSpec] = {}
        self.configured_task_hints: Dict[str, int] = {}

        self._builder: Optional[RoutingTableBuilder] = None
        self._edge_managers: Dict[str, EdgeManagerDescriptor] = {}
        self._final_splits: List[GroupedSplit] = []

    # ------------------------------------------------------------------
    # Runtime lifecycle
    # ------------------------------------------------------------------

    def initialize(self, config: Optional[CoordinatorConfig] = None) -> None:
        """Read the configuration, from the context's user payload unless given."""
        if config is None:
            config = CoordinatorConfig.from_payload(self.context.user_payload)
        self.config = config
        if self.grouper is None:
            self.grouper = WaveSplitGrouper(min_group_bytes=config.min_group_bytes)
        self.classifier = SplitClassifier(
            num_buckets=config.num_buckets,
            primary_input_name=config.primary_input_name,
            num_inputs=config.num_inputs,
            input_to_bucket_map=config.input_to_bucket_map,
        )
        self.state = CoordinatorState(num_inputs_affecting_parallelism=config.num_inputs)
        self._builder = RoutingTableBuilder(config.num_buckets)
        logger.info(
            "Initialized coordinator for %s: %d buckets, primary input %r, %d inputs",
            self.context.vertex_name, config.num_buckets,
            config.primary_input_name, config.num_inputs,
        )

    def on_vertex_started(self, completions: Optional[Mapping[str, List[int]]] = None) -> None:
        num_tasks = self.context.vertex_num_tasks(self.context.vertex_name)
        self.context.schedule_tasks([ScheduledTask(i) for i in range(num_tasks)])

    def on_source_task_completed(self, src_vertex_name: str, attempt_id: int) -> None:
        pass

    def on_vertex_manager_event(self, event: object) -> None:
        pass

    def on_root_vertex_initialized(
        self,
        input_name: str,
        descriptor: InputDescriptor,
        events: Sequence[object],
    ) -> None:
        """
        Handle the report of one bucketed input.

        Raises:
            ProtocolViolation: Bad event order, unexpected event, repeated report
            UnsupportedSplitType: A data event does not hold a file split
            BucketRangeViolation: A bucket id is outside the primary range
            MissingBucketMapping: Side input without a configured bucket count
        """
        if self.state is None:
            raise ProtocolViolation("Coordinator received a report before initialize()")
        self.state.check_new_input(input_name)
        logger.info("On root vertex initialized %s", input_name)

        # Splits arrive ungrouped; the grouping below is bucket aware.
        descriptor.grouping_enabled = True

        splits = self._read_events(input_name, events)
        bucket_splits = self.classifier.classify(input_name, splits)

        available_slots = self._available_slots()
        waves = descriptor.grouping_waves or self.config.grouping_waves
        logger.debug(
            "Grouping splits. %d available slots, %s waves. Bucket initial splits map: %r",
            available_slots, waves, bucket_splits,
        )

        if self.classifier.is_primary(input_name):
            self._process_primary(input_name, bucket_splits, waves, available_slots)
        else:
            self._process_side(input_name, bucket_splits, waves, available_slots)

        self.state.record_seen(input_name)
        self.try_finalize()

    # ------------------------------------------------------------------
    # Report handling
    # ------------------------------------------------------------------

    def _read_events(self, input_name: str, events: Sequence[object]) -> List[FileSplit]:
        splits: List[FileSplit] = []
        configure_seen = False
        for event in events:
            if isinstance(event, ConfigureTasksEvent):
                if splits or configure_seen:
                    raise ProtocolViolation(
                        f"Configure event for input {input_name!r} must come once, before data events"
                    )
                configure_seen = True
                self.configured_task_hints[input_name] = event.num_tasks
                logger.info("Configure task for input name: %s num tasks: %d",
                            input_name, event.num_tasks)
            elif isinstance(event, UpdatePayloadEvent):
                raise ProtocolViolation(f"Unexpected payload update event for input {input_name!r}")
            elif isinstance(event, DataInformationEvent):
                splits.append(self._split_from_event(input_name, event))
            else:
                raise ProtocolViolation(
                    f"Unexpected event type {type(event).__name__} for input {input_name!r}"
                )
        return splits

    @staticmethod
    def _split_from_event(input_name: str, event: DataInformationEvent) -> FileSplit:
        if event.deserialized is not None:
            split = event.deserialized
        elif event.payload is not None:
            split = decode_split(event.payload)
        else:
            raise ProtocolViolation(f"Data event without a split for input {input_name!r}")

        if not isinstance(split, FileSplit):
            raise UnsupportedSplitType(
                f"Cannot handle splits other than FileSplit for the moment. "
                f"Current input split type: {type(split).__name__}"
            )
        return split

    def _available_slots(self) -> int:
        task_memory = self.context.task_memory()
        if task_memory <= 0:
            raise ProtocolViolation(f"Task memory must be > 0, got {task_memory}")
        return max(1, self.context.total_available_memory() // task_memory)

    def _process_primary(
        self,
        input_name: str,
        bucket_splits: OrderedMultimap[int, FileSplit],
        waves: float,
        available_slots: int,
    ) -> None:
        # Sort-merge joins regroup each bucket a second time with their own wave count.
        sort_merge = bool(self.config.primary_input_name)

        grouped: OrderedMultimap[int, GroupedSplit] = OrderedMultimap()
        for bucket, splits in bucket_splits.items():
            groups = self.grouper.generate_grouped_splits(
                list(splits), waves, available_slots, input_name,
                not sort_merge, self.location_provider,
            )
            if sort_merge:
                single: OrderedMultimap[int, GroupedSplit] = OrderedMultimap()
                single.put_all(bucket, groups.values())
                groups = self.grouper.group(single, available_slots, self.config.smb_waves)
            grouped.put_all(bucket, groups.values())

        assignments = []
        for bucket, groups in grouped.items():
            units = self._builder.assign(bucket, groups)
            assignments.extend(zip(units, groups))
            self._final_splits.extend(groups)
        self.routing_table = self._builder.build()

        logger.info("Task count is %d for input name: %s", self.routing_table.task_count, input_name)
        self.input_specs[input_name] = self.dispatcher.dispatch_primary(
            input_name, assignments, self.routing_table.task_count
        )
        self._edge_managers = self._build_edge_managers(self.routing_table)

        for side_name, side_splits in self.state.pending_side_inputs.items():
            logger.info("Routing deferred side input %s", side_name)
            self.input_specs[side_name] = self.dispatcher.dispatch_side(
                side_name, side_splits, self.routing_table
            )
        self.state.pending_side_inputs.clear()

    def _process_side(
        self,
        input_name: str,
        bucket_splits: OrderedMultimap[int, FileSplit],
        waves: float,
        available_slots: int,
    ) -> None:
        # One reader per file: the merge needs the smallest key of every bucket file.
        grouped: OrderedMultimap[int, GroupedSplit] = OrderedMultimap()
        for bucket, splits in bucket_splits.items():
            groups = self.grouper.generate_grouped_splits(
                list(splits), waves, available_slots, input_name,
                False, self.location_provider,
            )
            grouped.put_all(bucket, groups.values())

        if self.routing_table is None:
            logger.info(
                "No routing table yet; deferring input %s until primary input %s reports",
                input_name, self.config.primary_input_name,
            )
            self.state.pending_side_inputs[input_name] = grouped
            return

        self.input_specs[input_name] = self.dispatcher.dispatch_side(
            input_name, grouped, self.routing_table
        )

    def _build_edge_managers(self, table: RoutingTable) -> Dict[str, EdgeManagerDescriptor]:
        if not self.config.vertex_type.has_initialized_edges:
            return {}
        descriptor = EdgeManagerDescriptor(BUCKET_ROUTING_EDGE, encode_routing_descriptor(table))
        managers = {}
        for source, prop in self.context.input_edge_properties().items():
            if (prop.data_movement is DataMovementType.CUSTOM
                    and prop.edge_manager_name == BUCKET_ROUTING_EDGE):
                managers[source] = descriptor
        return managers

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def try_finalize(self) -> bool:
        """
        Fix parallelism once every input has reported.

        Returns False without side effects while inputs are outstanding or
        after finalization already happened.
        """
        if self.state is None or self.state.finalized or not self.state.all_inputs_seen:
            return False
        if self.routing_table is None:
            raise ProtocolViolation(
                f"All {self.state.num_inputs_seen} inputs reported but primary input "
                f"{self.config.primary_input_name!r} did not"
            )

        logger.info("Setting vertex parallelism since we have seen all inputs.")
        location_hint = VertexLocationHint(
            self.grouper.create_task_location_hints(self._final_splits, self.config.consistent_splits)
        )
        self.context.set_vertex_parallelism(
            self.routing_table.task_count,
            location_hint,
            dict(self._edge_managers),
            dict(self.input_specs),
        )
        self.state.finalized = True

        # Work unit indices are only stable once parallelism is set.
        self.dispatcher.send_bucket_identities(self.routing_table)

        log_routing_summary(
            vertex_name=self.context.vertex_name,
            table=self.routing_table,
            input_specs=self.input_specs,
        )
        self._final_splits.clear()
        return True
