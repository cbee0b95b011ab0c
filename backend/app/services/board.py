from __future__ import annotations
"""Kanban board state as pure functions over lists of task dicts.

Client-side helper for board consumers; no route imports it.

Nothing here mutates its input; every function returns a new list. ``move_task``
is the optimistic drag-and-drop flow: apply locally, persist through the
supplied ``commit`` callable, and roll back to the previous status if it raises.
"""
from typing import Callable, Dict, List, Optional, Tuple
from app.constants.service import BOARD_COLUMNS

Task = Dict[str, object]


def group_by_status(tasks: List[Task], columns=BOARD_COLUMNS) -> Dict[str, List[Task]]:
    """Bucket tasks into board columns in input order; tasks in other statuses are left out."""
    board: Dict[str, List[Task]] = {c: [] for c in columns}
    for t in tasks:
        if t.get('status') in board:
            board[t['status']].append(t)
    return board


def apply_optimistic_status(tasks: List[Task], task_id: str, status: str) -> Tuple[List[Task], Optional[str]]:
    """Return (new tasks, previous status); previous is None when task_id is unknown."""
    previous = None
    updated = []
    for t in tasks:
        if t.get('id') == task_id:
            previous = t.get('status')
            t = {**t, 'status': status}
        updated.append(t)
    return updated, previous


def revert_status(tasks: List[Task], task_id: str, previous: Optional[str]) -> List[Task]:
    if previous is None:
        return list(tasks)
    return apply_optimistic_status(tasks, task_id, previous)[0]


def remove_task(tasks: List[Task], task_id: str) -> List[Task]:
    return [t for t in tasks if t.get('id') != task_id]


def replace_task(tasks: List[Task], task: Task) -> List[Task]:
    return [task if t.get('id') == task.get('id') else t for t in tasks]


def move_task(tasks: List[Task], task_id: str, status: str,
              commit: Callable[[str, str, Optional[str]], object]) -> Tuple[List[Task], Optional[Exception]]:
    """Optimistically move a card and persist it.

    ``commit(task_id, status, previous_status)`` performs the server update.
    Returns (board, error): when commit raises, the card is back in its
    previous column and the exception is handed back for the caller to report.
    """
    moved, previous = apply_optimistic_status(tasks, task_id, status)
    if previous is None or previous == status:
        return moved, None
    try:
        commit(task_id, status, previous)
    except Exception as e:
        return revert_status(moved, task_id, previous), e
    return moved, None
