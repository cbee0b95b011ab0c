import pytest
from werkzeug.exceptions import BadRequest
from app.services.tasks import TASK_FSM
from app.utils.fsm import TransitionValidator, TransitionError


def test_transition_validator_allows_valid():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    assert fsm.assert_can_transition('A', 'B') is True
    assert fsm.allowed_targets('A') == {'B'}


def test_transition_error_is_bad_request():
    fsm = TransitionValidator({'A': {'B'}, 'B': set()})
    with pytest.raises(BadRequest) as exc:
        fsm.assert_can_transition('A', 'C')
    assert isinstance(exc.value, TransitionError)
    assert exc.value.code == 400
    assert exc.value.description == 'Invalid status transition A -> C'


def test_task_lifecycle_graph():
    assert TASK_FSM.can_transition('FUTURE', 'IN_SHOP')
    assert TASK_FSM.can_transition('COMPLETED', 'CLOSED')
    assert TASK_FSM.can_transition('CANCELLED', 'FUTURE')
    assert not TASK_FSM.can_transition('FUTURE', 'COMPLETED')
    assert TASK_FSM.allowed_targets('CLOSED') == set()
