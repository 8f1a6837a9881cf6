# tests/runtime/test_events.py
from dataclasses import fields

import pytest

from bucket_routing.runtime.events import (
    ConfigureTasksEvent,
    InputDescriptor,
    InputSpec,
    ScheduledTask,
    TaskLocationHint,
    VertexLocationHint,
)


@pytest.mark.parametrize("cls, names", [
    (ConfigureTasksEvent, ["num_tasks"]),
    (TaskLocationHint, ["hosts"]),
    (ScheduledTask, ["index"]),
    (InputDescriptor, ["grouping_enabled", "grouping_waves"]),
])
def test_runtime_values_carry_only_what_the_coordinator_uses(cls, names):
    assert [f.name for f in fields(cls)] == names


def test_input_spec_counts():
    spec = InputSpec([2, 0, 3])
    assert spec.per_task_counts == (2, 0, 3)
    assert spec.num_tasks == 3
    assert spec.total_events == 5
    assert spec.for_task(2) == 3


def test_vertex_location_hint_freezes_task_hints():
    hint = VertexLocationHint([TaskLocationHint(("h1",))])
    assert hint.task_hints == (TaskLocationHint(("h1",)),)
