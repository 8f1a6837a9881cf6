# tests/coordinator/test_dispatch.py
import pytest

from bucket_routing.coordinator.dispatch import EventDispatcher
from bucket_routing.errors import ProtocolViolation
from bucket_routing.multimap import OrderedMultimap
from bucket_routing.routing.encoding import decode_bucket_identity
from bucket_routing.routing.table import RoutingTableBuilder
from bucket_routing.runtime.events import VertexLocationHint
from bucket_routing.runtime.local import LocalVertexContext
from bucket_routing.splits.codec import decode_split
from bucket_routing.splits.types import FileSplit, GroupedSplit


def _split(path, bucket_id=0):
    return FileSplit(path=path, start=0, length=100, hosts=("h1",), bucket_id=bucket_id)


def _group(*paths):
    return GroupedSplit(members=tuple(_split(p) for p in paths))


def _table(layout):
    builder = RoutingTableBuilder(num_buckets=4)
    for bucket, n in layout:
        builder.assign(bucket, range(n))
    return builder.build()


def test_primary_dispatch_sends_one_event_per_unit():
    ctx = LocalVertexContext(user_payload=b"")
    g0, g1 = _group("/t/a", "/t/b"), _group("/t/c")

    spec = EventDispatcher(ctx).dispatch_primary("big", [(0, g0), (1, g1)], task_count=2)

    events = ctx.root_input_events["big"]
    assert [(e.source_index, e.target_index) for e in events] == [(0, 0), (0, 1)]
    assert decode_split(events[0].payload) == g0
    assert spec.per_task_counts == (1, 1)


def test_primary_dispatch_expands_nested_groups():
    ctx = LocalVertexContext(user_payload=b"")
    inner = [_group("/t/a"), _group("/t/b"), _group("/t/c")]
    outer = GroupedSplit(members=tuple(inner))

    spec = EventDispatcher(ctx).dispatch_primary("big", [(0, outer)], task_count=1)

    events = ctx.root_input_events["big"]
    assert [e.source_index for e in events] == [0, 1, 2]
    assert all(e.target_index == 0 for e in events)
    assert [decode_split(e.payload) for e in events] == inner
    assert spec.per_task_counts == (3,)


def test_side_dispatch_copies_bucket_splits_to_every_unit():
    ctx = LocalVertexContext(user_payload=b"")
    table = _table([(0, 2), (1, 1)])
    side = OrderedMultimap()
    side.put_all(0, [_group("/s/a"), _group("/s/b")])
    side.put_all(1, [_group("/s/c")])

    spec = EventDispatcher(ctx).dispatch_side("small", side, table)

    assert spec.per_task_counts == (2, 2, 1)
    unit1 = ctx.events_for_task("small", 1)
    assert [e.source_index for e in unit1] == [0, 1]
    assert [decode_split(e.payload).file_splits()[0].path for e in unit1] == ["/s/a", "/s/b"]


def test_side_dispatch_drops_buckets_without_units():
    ctx = LocalVertexContext(user_payload=b"")
    table = _table([(0, 1)])
    side = OrderedMultimap()
    side.put_all(3, [_group("/s/x")])

    spec = EventDispatcher(ctx).dispatch_side("small", side, table)

    assert ctx.root_input_events["small"] == []
    assert spec.per_task_counts == (0,)


def test_bucket_identities_follow_parallelism():
    ctx = LocalVertexContext(user_payload=b"")
    table = _table([(0, 1), (2, 2)])
    dispatcher = EventDispatcher(ctx)

    with pytest.raises(ProtocolViolation):
        dispatcher.send_bucket_identities(table)

    ctx.set_vertex_parallelism(table.task_count, VertexLocationHint(), {}, {})
    dispatcher.send_bucket_identities(table)

    got = {unit: decode_bucket_identity(evs[0].payload) for unit, evs in ctx.processor_events.items()}
    assert got == {0: (4, 0), 1: (4, 2), 2: (4, 2)}
