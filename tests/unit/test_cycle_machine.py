"""Tests for the CycleMachine transition table."""

from __future__ import annotations

import pytest

from app_config.core.cycle_machine import CycleMachine, InvalidTransitionError
from app_config.models.cycle import CycleState


class TestCycleMachine:
    def test_starts_fetching(self):
        machine = CycleMachine("a/b/c")
        assert machine.state == CycleState.FETCHING
        assert machine.history == []
        assert not machine.is_terminal

    def test_full_apply_path(self):
        machine = CycleMachine("a/b/c")
        for state in (
            CycleState.COMPARING,
            CycleState.RENDERING,
            CycleState.WRITING,
            CycleState.RUNNING,
            CycleState.PERSISTING,
            CycleState.DONE,
        ):
            machine.transition(state)
        assert machine.is_terminal
        assert len(machine.history) == 6
        assert machine.history[0].from_state == CycleState.FETCHING

    def test_no_op_path(self):
        machine = CycleMachine("a/b/c")
        machine.transition(CycleState.COMPARING)
        machine.transition(CycleState.NO_OP)
        machine.transition(CycleState.DONE)
        assert [t.to_state for t in machine.history] == [
            CycleState.COMPARING,
            CycleState.NO_OP,
            CycleState.DONE,
        ]

    def test_cannot_skip_comparing(self):
        machine = CycleMachine("a/b/c")
        with pytest.raises(InvalidTransitionError):
            machine.transition(CycleState.RENDERING)

    def test_cannot_persist_without_running(self):
        machine = CycleMachine("a/b/c")
        machine.transition(CycleState.COMPARING)
        machine.transition(CycleState.RENDERING)
        machine.transition(CycleState.WRITING)
        with pytest.raises(InvalidTransitionError):
            machine.transition(CycleState.PERSISTING)

    def test_rejected_transition_leaves_state(self):
        machine = CycleMachine("a/b/c")
        with pytest.raises(InvalidTransitionError):
            machine.transition(CycleState.DONE)
        assert machine.state == CycleState.FETCHING
        assert machine.history == []

    def test_fail_returns_state_it_failed_in(self):
        machine = CycleMachine("a/b/c")
        machine.transition(CycleState.COMPARING)
        machine.transition(CycleState.RENDERING)
        assert machine.fail() == CycleState.RENDERING
        assert machine.state == CycleState.FAILED

    def test_terminal_states_cannot_be_left(self):
        machine = CycleMachine("a/b/c")
        machine.fail()
        with pytest.raises(InvalidTransitionError):
            machine.transition(CycleState.COMPARING)
        with pytest.raises(InvalidTransitionError):
            machine.fail()

    def test_history_is_a_copy(self):
        machine = CycleMachine("a/b/c")
        machine.transition(CycleState.COMPARING)
        machine.history.clear()
        assert len(machine.history) == 1
