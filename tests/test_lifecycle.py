# tests/test_lifecycle.py

from __future__ import annotations

import dataclasses
from datetime import date

import pytest

from daylist.tasks import task_api
from daylist.tasks.errors import InvalidStateError, NotFoundError
from daylist.tasks.lifecycle import (
    ListAction,
    apply_transition,
    ensure_completable,
    ensure_editable,
)
from daylist.tasks.task_models import ListState, TaskList


def _open_list() -> TaskList:
    return TaskList(id=1, owner_id="u1", list_date=date(2026, 10, 19), created_at=1.0)


def test_state_is_derived_from_flags() -> None:
    base = _open_list()
    assert base.state == ListState.OPEN
    assert dataclasses.replace(base, is_submitted=True).state == ListState.SUBMITTED
    # closed wins regardless of submitted
    assert dataclasses.replace(base, is_closed=True).state == ListState.CLOSED
    assert dataclasses.replace(base, is_closed=True, is_submitted=True).state == ListState.CLOSED


def test_submit_once_then_rejected() -> None:
    submitted = apply_transition(_open_list(), ListAction.SUBMIT, now_ts=10.0)
    assert submitted.state == ListState.SUBMITTED
    assert submitted.submitted_at == 10.0

    with pytest.raises(InvalidStateError):
        apply_transition(submitted, ListAction.SUBMIT, now_ts=11.0)


def test_close_keeps_submitted_flag_and_reopen_clears_everything() -> None:
    submitted = apply_transition(_open_list(), ListAction.SUBMIT, now_ts=10.0)
    closed = apply_transition(submitted, ListAction.CLOSE, now_ts=20.0)
    assert closed.state == ListState.CLOSED
    assert closed.is_submitted is True
    assert closed.closed_at == 20.0

    reopened = apply_transition(closed, ListAction.REOPEN, now_ts=30.0)
    assert reopened.state == ListState.OPEN
    assert reopened.is_submitted is False and reopened.is_closed is False
    assert reopened.submitted_at is None and reopened.closed_at is None


def test_rejected_transitions() -> None:
    opened = _open_list()
    closed = apply_transition(opened, ListAction.CLOSE, now_ts=5.0)

    with pytest.raises(InvalidStateError):
        apply_transition(opened, ListAction.REOPEN, now_ts=6.0)
    with pytest.raises(InvalidStateError):
        apply_transition(closed, ListAction.CLOSE, now_ts=6.0)
    with pytest.raises(InvalidStateError):
        apply_transition(closed, ListAction.SUBMIT, now_ts=6.0)
    with pytest.raises(InvalidStateError):
        apply_transition(closed, ListAction.AUTO_CLOSE, now_ts=6.0)


def test_mutation_gates() -> None:
    opened = _open_list()
    submitted = apply_transition(opened, ListAction.SUBMIT, now_ts=1.0)
    closed = apply_transition(opened, ListAction.CLOSE, now_ts=1.0)

    ensure_editable(opened, "add tasks")
    ensure_completable(opened)
    ensure_completable(submitted)

    with pytest.raises(InvalidStateError):
        ensure_editable(submitted, "add tasks")
    with pytest.raises(InvalidStateError):
        ensure_editable(closed, "add tasks")
    with pytest.raises(InvalidStateError):
        ensure_completable(closed)


def test_list_transitions_through_store(state) -> None:
    with pytest.raises(NotFoundError):
        task_api.submit_list(state, "u1")

    task_api.get_today(state, "u1")

    submitted = task_api.submit_list(state, "u1")
    assert submitted.state == ListState.SUBMITTED
    with pytest.raises(InvalidStateError):
        task_api.submit_list(state, "u1")

    closed = task_api.close_list(state, "u1")
    assert closed.state == ListState.CLOSED

    status = task_api.get_list_status(state, "u1")
    assert status.exists is True
    assert status.state == ListState.CLOSED
    assert status.submitted_at is not None and status.closed_at is not None

    task_api.reopen_list(state, "u1")
    status = task_api.get_list_status(state, "u1")
    assert status.state == ListState.OPEN
    assert status.submitted_at is None and status.closed_at is None

    with pytest.raises(InvalidStateError):
        task_api.reopen_list(state, "u1")


def test_status_without_list_does_not_create_it(state) -> None:
    status = task_api.get_list_status(state, "u1")
    assert status.exists is False
    assert status.state == ListState.OPEN
    assert task_api.get_tasks_for_date(state, "u1", state.clock.today()).task_list is None
