"""
core/engine/state_machine.py

Declarative state machine for persisted entities.

The current state lives on the database row, not in the machine, so a
StateMachine is a stateless lookup table: given a current state and a
trigger it answers which state (if any) the entity moves to.
"""
from typing import Dict, List, Optional
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    """
    A single allowed edge.

    Attributes:
        from_state: source state
        to_state: target state
        trigger: name of the operation that fires the edge
    """

    from_state: str
    to_state: str
    trigger: str


@dataclass
class StateMachineConfig:
    """
    State machine definition.

    Attributes:
        name: entity name, used in log and error messages
        states: every state the entity can be in
        transitions: allowed edges
        initial_state: state of a freshly created entity
    """

    name: str
    states: List[str]
    transitions: List[StateTransition]
    initial_state: str


class StateMachine:
    """
    Stateless transition table.

    Example:
        >>> machine = StateMachine(StateMachineConfig(
        ...     name="Door",
        ...     states=["open", "closed"],
        ...     transitions=[StateTransition("open", "closed", "close")],
        ...     initial_state="open",
        ... ))
        >>> machine.next_state("open", "close")
        'closed'
        >>> machine.next_state("closed", "close") is None
        True
    """

    def __init__(self, config: StateMachineConfig):
        if config.initial_state not in config.states:
            raise ValueError(
                f"{config.name}: initial state '{config.initial_state}' is not a declared state"
            )
        self._config = config
        self._transition_map: Dict[str, Dict[str, StateTransition]] = {}

        for t in config.transitions:
            if t.from_state not in config.states or t.to_state not in config.states:
                raise ValueError(
                    f"{config.name}: transition {t.from_state} -> {t.to_state} uses an undeclared state"
                )
            by_trigger = self._transition_map.setdefault(t.from_state, {})
            if t.trigger in by_trigger:
                raise ValueError(
                    f"{config.name}: trigger '{t.trigger}' declared twice from '{t.from_state}'"
                )
            by_trigger[t.trigger] = t

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def initial_state(self) -> str:
        return self._config.initial_state

    @property
    def states(self) -> List[str]:
        return list(self._config.states)

    def next_state(self, current_state: str, trigger: str) -> Optional[str]:
        """Return the target state for trigger, or None when the edge does not exist."""
        transition = self._transition_map.get(current_state, {}).get(trigger)
        return transition.to_state if transition else None

    def can_fire(self, current_state: str, trigger: str) -> bool:
        return self.next_state(current_state, trigger) is not None

    def triggers_from(self, current_state: str) -> List[str]:
        """Triggers available from current_state, in declaration order."""
        return list(self._transition_map.get(current_state, {}).keys())

    def is_terminal(self, state: str) -> bool:
        return not self._transition_map.get(state)

    def sources_of(self, trigger: str) -> List[str]:
        """States from which trigger may fire."""
        return [
            state for state, by_trigger in self._transition_map.items()
            if trigger in by_trigger
        ]


__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachine",
]
