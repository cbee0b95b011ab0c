from __future__ import annotations
"""Finite state machine utility for enforcing allowed status transitions.

Used by the service-task lifecycle (status-only updates from the kanban board).
Usage:
    from app.utils.fsm import TransitionValidator
    TASK_FSM = TransitionValidator({
        'FUTURE': {'IN_SHOP', 'CANCELLED'},
        'IN_SHOP': {'IN_PROGRESS'},
        'IN_PROGRESS': set(),
    })
    TASK_FSM.assert_can_transition(current_status, target_status)

Raises TransitionError (HTTP 400) if invalid.
"""
from typing import Dict, Set
from werkzeug.exceptions import BadRequest


class TransitionError(BadRequest):
    def __init__(self, current: str, target: str, field_name: str = 'status'):
        self.current = current
        self.target = target
        super().__init__(description=f"Invalid {field_name} transition {current} -> {target}")


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def allowed_targets(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise TransitionError(current, target, self.field_name)
        return True

__all__ = ['TransitionValidator', 'TransitionError']
