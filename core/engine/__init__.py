"""
core/engine - engine components

- state_machine: declarative transition tables for persisted entities

Usage:
    >>> from core.engine import StateMachine, StateMachineConfig, StateTransition
"""
from core.engine.state_machine import (
    StateTransition,
    StateMachineConfig,
    StateMachine,
)

__all__ = [
    "StateTransition",
    "StateMachineConfig",
    "StateMachine",
]
