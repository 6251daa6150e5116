# tests/test_sweeper.py

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from daylist.tasks import task_api
from daylist.tasks.lifecycle import TRANSITIONS, ListAction
from daylist.tasks.sweeper import run_sweeper, sweep_expired_lists
from daylist.tasks.task_models import ListState

from .fakes import FailingCloseRepo, RecordingCloseRepo


def _make_list(state, clock, days_ago: int, *, owner: str = "u1", action=None) -> None:
    today = clock.today()
    clock.go_to(today - timedelta(days=days_ago))
    task_api.create_task(state, owner, title=f"day-{days_ago}")
    if action is not None:
        action(state, owner)
    clock.go_to(today)


def _state_on(state, owner: str, day):
    return task_api.get_tasks_for_date(state, owner, day).task_list


def test_sweep_closes_yesterday_only(state, clock) -> None:
    today = clock.today()
    yesterday = today - timedelta(days=1)

    _make_list(state, clock, 1, owner="u1")
    _make_list(state, clock, 1, owner="u2", action=task_api.submit_list)
    _make_list(state, clock, 1, owner="u3", action=task_api.close_list)
    _make_list(state, clock, 2, owner="u1")
    _make_list(state, clock, 0, owner="u1")
    manual_closed_at = _state_on(state, "u3", yesterday).closed_at

    clock.advance(minutes=5)
    report = sweep_expired_lists(state.task_store, clock)

    assert report.ok is True
    assert report.closed == 2
    assert report.start == yesterday and report.end == yesterday

    sweep_ts = clock.now().timestamp()
    u1 = _state_on(state, "u1", yesterday)
    u2 = _state_on(state, "u2", yesterday)
    assert u1.state == ListState.CLOSED and u1.closed_at == sweep_ts
    assert u2.state == ListState.CLOSED and u2.closed_at == sweep_ts
    assert u2.is_submitted is True

    # already closed: untouched
    assert _state_on(state, "u3", yesterday).closed_at == manual_closed_at
    # outside the window: untouched
    assert _state_on(state, "u1", today - timedelta(days=2)).state == ListState.OPEN
    assert _state_on(state, "u1", today).state == ListState.OPEN


def test_sweep_is_idempotent_and_catches_up_with_lookback(state, clock) -> None:
    today = clock.today()
    _make_list(state, clock, 1)
    _make_list(state, clock, 3)

    assert sweep_expired_lists(state.task_store, clock).closed == 1
    assert sweep_expired_lists(state.task_store, clock).closed == 0

    report = sweep_expired_lists(state.task_store, clock, lookback_days=3)
    assert report.closed == 1
    assert report.start == today - timedelta(days=3)
    assert _state_on(state, "u1", today - timedelta(days=3)).state == ListState.CLOSED


def test_sweep_failure_is_reported_not_raised(clock) -> None:
    repo = FailingCloseRepo()

    report = sweep_expired_lists(repo, clock)

    assert report.ok is False
    assert report.closed == 0
    assert repo.attempts == 1


def test_sweep_uses_one_timestamp_for_the_batch(clock) -> None:
    repo = RecordingCloseRepo(closed_per_call=4)

    report = sweep_expired_lists(repo, clock)

    assert report.closed == 4
    assert len(repo.calls) == 1
    assert repo.calls[0].closed_at == clock.now().timestamp()
    assert repo.calls[0].end == clock.today() - timedelta(days=1)


@pytest.mark.asyncio
async def test_sweeper_loop_runs_until_stopped(clock) -> None:
    repo = RecordingCloseRepo()
    stop_event = asyncio.Event()

    runner = asyncio.create_task(
        run_sweeper(repo, clock, interval_seconds=0.01, stop_event=stop_event)
    )

    await asyncio.sleep(0.05)
    stop_event.set()
    await asyncio.wait_for(runner, timeout=1.0)

    assert len(repo.calls) >= 2, "Sweeper should run more than once"


@pytest.mark.asyncio
async def test_sweeper_loop_survives_failures(clock) -> None:
    repo = FailingCloseRepo()

    runner = asyncio.create_task(run_sweeper(repo, clock, interval_seconds=0.01))

    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert repo.attempts >= 2


def test_sweep_never_touches_today_or_future_lists(state, clock) -> None:
    today = clock.today()
    tomorrow = today + timedelta(days=1)

    clock.go_to(tomorrow)
    task_api.create_task(state, "u1", title="planned ahead")
    clock.go_to(today)
    _make_list(state, clock, 0, owner="u1")
    _make_list(state, clock, 3, owner="u1")

    report = sweep_expired_lists(state.task_store, clock, lookback_days=5)

    assert report.ok is True
    assert report.closed == 1
    assert report.end == today - timedelta(days=1)
    assert _state_on(state, "u1", today).state == ListState.OPEN
    assert _state_on(state, "u1", tomorrow).state == ListState.OPEN


def test_bulk_close_matches_auto_close_transitions(state, clock) -> None:
    yesterday = clock.today() - timedelta(days=1)
    before = {
        "open": ListState.OPEN,
        "submitted": ListState.SUBMITTED,
        "closed": ListState.CLOSED,
    }
    _make_list(state, clock, 1, owner="open")
    _make_list(state, clock, 1, owner="submitted", action=task_api.submit_list)
    _make_list(state, clock, 1, owner="closed", action=task_api.close_list)

    sweep_expired_lists(state.task_store, clock)

    for owner, start_state in before.items():
        expected = TRANSITIONS.get((start_state, ListAction.AUTO_CLOSE), start_state)
        assert _state_on(state, owner, yesterday).state == expected
