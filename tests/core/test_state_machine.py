"""
Tests for core/engine/state_machine.py
"""
import pytest

from core.engine import StateMachine, StateMachineConfig, StateTransition


@pytest.fixture
def door():
    return StateMachine(StateMachineConfig(
        name="Door",
        states=["open", "closed", "locked", "removed"],
        transitions=[
            StateTransition("open", "closed", "close"),
            StateTransition("closed", "open", "open"),
            StateTransition("closed", "locked", "lock"),
            StateTransition("locked", "closed", "unlock"),
            StateTransition("open", "removed", "remove"),
            StateTransition("closed", "removed", "remove"),
        ],
        initial_state="open",
    ))


class TestStateMachine:

    def test_next_state(self, door):
        assert door.next_state("open", "close") == "closed"
        assert door.next_state("open", "lock") is None
        assert door.next_state("unknown", "close") is None

    def test_can_fire(self, door):
        assert door.can_fire("closed", "lock")
        assert not door.can_fire("locked", "open")

    def test_triggers_from(self, door):
        assert door.triggers_from("closed") == ["open", "lock", "remove"]
        assert door.triggers_from("removed") == []

    def test_terminal(self, door):
        assert door.is_terminal("removed")
        assert not door.is_terminal("locked")

    def test_sources_of(self, door):
        assert door.sources_of("remove") == ["open", "closed"]

    def test_properties(self, door):
        assert door.name == "Door"
        assert door.initial_state == "open"
        assert door.states == ["open", "closed", "locked", "removed"]


class TestStateMachineConfigValidation:

    def test_unknown_initial_state(self):
        with pytest.raises(ValueError):
            StateMachine(StateMachineConfig("X", ["a"], [], initial_state="b"))

    def test_undeclared_state_in_transition(self):
        with pytest.raises(ValueError):
            StateMachine(StateMachineConfig("X", ["a"], [StateTransition("a", "b", "go")], "a"))

    def test_duplicate_trigger(self):
        with pytest.raises(ValueError):
            StateMachine(StateMachineConfig(
                "X", ["a", "b", "c"],
                [StateTransition("a", "b", "go"), StateTransition("a", "c", "go")],
                "a",
            ))
