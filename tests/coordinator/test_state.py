# tests/coordinator/test_state.py
import pytest

from bucket_routing.coordinator.state import CoordinatorState
from bucket_routing.errors import ProtocolViolation


def test_counts_reports_until_all_inputs_seen():
    state = CoordinatorState(num_inputs_affecting_parallelism=2)
    state.check_new_input("big")
    state.record_seen("big")
    assert not state.all_inputs_seen

    state.check_new_input("small")
    state.record_seen("small")
    assert state.all_inputs_seen
    assert state.reported_inputs == ["big", "small"]


def test_repeated_input_is_rejected():
    state = CoordinatorState(num_inputs_affecting_parallelism=2)
    state.record_seen("big")
    with pytest.raises(ProtocolViolation):
        state.check_new_input("big")


def test_extra_input_is_rejected():
    state = CoordinatorState(num_inputs_affecting_parallelism=1)
    state.record_seen("big")
    with pytest.raises(ProtocolViolation):
        state.check_new_input("other")


def test_reports_after_finalization_are_rejected():
    state = CoordinatorState(num_inputs_affecting_parallelism=1, finalized=True)
    with pytest.raises(ProtocolViolation):
        state.check_new_input("big")
