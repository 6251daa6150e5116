# src/daylist/tasks/lifecycle.py

"""
Task list lifecycle.

States: OPEN -> SUBMITTED -> CLOSED, with REOPEN back to OPEN.

Transitions are looked up in a table keyed by (state, action); a missing entry is a
rejection, so repeating a transition (submit twice, close twice, reopen an open list)
fails instead of silently succeeding.

Mutation gates:
- structural/content edits (create, edit, delete, reorder) need OPEN
- completion marking needs OPEN or SUBMITTED (submission freezes editing, closure freezes all)
"""

from __future__ import annotations

import dataclasses
from enum import StrEnum

from .errors import InvalidStateError
from .task_models import ListState, TaskList


class ListAction(StrEnum):
    SUBMIT = "submit"
    CLOSE = "close"
    REOPEN = "reopen"
    # Applied in bulk by TaskStore.close_open_lists, never row by row.
    AUTO_CLOSE = "auto_close"


TRANSITIONS: dict[tuple[ListState, ListAction], ListState] = {
    (ListState.OPEN, ListAction.SUBMIT): ListState.SUBMITTED,
    (ListState.OPEN, ListAction.CLOSE): ListState.CLOSED,
    (ListState.SUBMITTED, ListAction.CLOSE): ListState.CLOSED,
    (ListState.OPEN, ListAction.AUTO_CLOSE): ListState.CLOSED,
    (ListState.SUBMITTED, ListAction.AUTO_CLOSE): ListState.CLOSED,
    (ListState.SUBMITTED, ListAction.REOPEN): ListState.OPEN,
    (ListState.CLOSED, ListAction.REOPEN): ListState.OPEN,
}

_REJECTIONS: dict[tuple[ListState, ListAction], str] = {
    (ListState.SUBMITTED, ListAction.SUBMIT): "Task list already submitted",
    (ListState.CLOSED, ListAction.SUBMIT): "Task list is closed",
    (ListState.CLOSED, ListAction.CLOSE): "Task list already closed",
    (ListState.CLOSED, ListAction.AUTO_CLOSE): "Task list already closed",
    (ListState.OPEN, ListAction.REOPEN): "Task list is already open",
}

EDITABLE_STATES = frozenset({ListState.OPEN})
COMPLETABLE_STATES = frozenset({ListState.OPEN, ListState.SUBMITTED})


def next_state(state: ListState, action: ListAction) -> ListState:
    """Return the target state or raise InvalidStateError if the transition is not allowed."""
    target = TRANSITIONS.get((state, action))
    if target is None:
        msg = _REJECTIONS.get((state, action), f"Cannot {action.value} a {state.value} task list")
        raise InvalidStateError(msg)
    return target


def apply_transition(task_list: TaskList, action: ListAction, *, now_ts: float) -> TaskList:
    """
    Return a copy of task_list moved through `action`.

    - -> SUBMITTED: sets is_submitted + submitted_at
    - -> CLOSED:    sets is_closed + closed_at, leaves the submitted flag untouched
    - -> OPEN:      clears both flags and both timestamps
    """
    target = next_state(task_list.state, action)

    if target == ListState.SUBMITTED:
        return dataclasses.replace(task_list, is_submitted=True, submitted_at=float(now_ts))
    if target == ListState.CLOSED:
        return dataclasses.replace(task_list, is_closed=True, closed_at=float(now_ts))
    return dataclasses.replace(
        task_list,
        is_submitted=False,
        submitted_at=None,
        is_closed=False,
        closed_at=None,
    )


def ensure_editable(task_list: TaskList, what: str) -> None:
    if task_list.state not in EDITABLE_STATES:
        raise InvalidStateError(f"Cannot {what} in a {task_list.state.value} task list")


def ensure_completable(task_list: TaskList) -> None:
    if task_list.state not in COMPLETABLE_STATES:
        raise InvalidStateError("Cannot modify tasks in a closed task list")
