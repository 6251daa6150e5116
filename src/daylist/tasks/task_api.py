# src/daylist/tasks/task_api.py

"""
High-level task list operations for one owner.

Every mutating call runs inside a single TaskStore.unit_of_work(), so the lifecycle check,
the structural change and the percentage recompute are committed together or not at all.
"today" always comes from state.clock.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from ..core.state import AppState
from .errors import (
    CapacityExceededError,
    CrossListMismatchError,
    EmptySourceListError,
    NoClosedListFoundError,
    NoFieldsError,
    NotFoundError,
    ValidationFailedError,
)
from .lifecycle import ListAction, apply_transition, ensure_completable, ensure_editable
from .task_models import (
    MAX_TASKS_PER_LIST,
    CopyResult,
    ListState,
    ListStatus,
    Task,
    TaskList,
    TaskListView,
)
from .task_store import TaskListSession

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    text = (title or "").strip()
    if not text:
        raise ValidationFailedError("Title is required")
    return text


def _clean_description(description: str | None) -> str:
    return (description or "").strip()


def _require_owned_task(session: TaskListSession, owner_id: str, task_id: int) -> tuple[Task, TaskList]:
    found = session.find_owned_task(task_id, owner_id)
    if found is None:
        raise NotFoundError(f"Task {task_id} not found")
    return found


def _require_list(session: TaskListSession, owner_id: str, list_date: date) -> TaskList:
    task_list = session.get_list(owner_id, list_date)
    if task_list is None:
        raise NotFoundError(f"No task list found for {list_date.isoformat()}")
    return task_list


# ---- reads ----


def get_today(state: AppState, owner_id: str) -> TaskListView:
    """Today's list with its tasks; the list is created (OPEN, empty) on first access."""
    today = state.clock.today()
    with state.task_store.unit_of_work() as session:
        task_list, created = session.get_or_create_list(owner_id, today)
        tasks = session.list_tasks(task_list.id)
    if created:
        logger.info("Created task list id=%s owner=%s date=%s", task_list.id, owner_id, today)
    return TaskListView(task_list=task_list, tasks=tasks)


def get_tasks_for_date(state: AppState, owner_id: str, list_date: date) -> TaskListView:
    """Read-only lookup in any state; an empty view (task_list=None) when no list exists."""
    with state.task_store.unit_of_work() as session:
        task_list = session.get_list(owner_id, list_date)
        if task_list is None:
            return TaskListView(task_list=None, tasks=[])
        return TaskListView(task_list=task_list, tasks=session.list_tasks(task_list.id))


def get_list_status(state: AppState, owner_id: str, list_date: date | None = None) -> ListStatus:
    list_date = list_date or state.clock.today()
    with state.task_store.unit_of_work() as session:
        task_list = session.get_list(owner_id, list_date)
    if task_list is None:
        return ListStatus(exists=False, state=ListState.OPEN)
    return ListStatus(
        exists=True,
        state=task_list.state,
        submitted_at=task_list.submitted_at,
        closed_at=task_list.closed_at,
    )


# ---- task collection ----


def create_task(state: AppState, owner_id: str, *, title: str, description: str | None = None) -> Task:
    """
    Append a task to today's list and rebalance percentages.

    The new task goes after the current highest position, so positions freed by deletes
    are not reused.
    """
    title = _clean_title(title)
    description = _clean_description(description)
    today = state.clock.today()

    with state.task_store.unit_of_work() as session:
        task_list, _ = session.get_or_create_list(owner_id, today)
        ensure_editable(task_list, "add tasks")

        count = session.count_tasks(task_list.id)
        if count >= MAX_TASKS_PER_LIST:
            raise CapacityExceededError(
                f"Maximum {MAX_TASKS_PER_LIST} tasks allowed per day",
                current_count=count,
                adding_count=1,
                limit=MAX_TASKS_PER_LIST,
            )

        position = session.max_position(task_list.id) + 1
        inserted = session.insert_task(
            task_list.id, title=title, description=description, position=position
        )
        tasks = session.recompute_percentages(task_list.id)

    created = next(t for t in tasks if t.id == inserted.id)
    logger.info(
        "Task created id=%s list_id=%s position=%s percentage=%s",
        created.id,
        created.task_list_id,
        created.position,
        created.percentage,
    )
    return created


def update_task(
    state: AppState,
    owner_id: str,
    task_id: int,
    *,
    title: str | None = None,
    description: str | None = None,
) -> Task:
    if title is None and description is None:
        raise NoFieldsError("No fields to update")

    new_title = _clean_title(title) if title is not None else None
    new_description = _clean_description(description) if description is not None else None

    with state.task_store.unit_of_work() as session:
        task, task_list = _require_owned_task(session, owner_id, task_id)
        ensure_editable(task_list, "update tasks")
        session.update_task_fields(task.id, title=new_title, description=new_description)
        updated = session.get_task(task.id)

    if updated is None:
        raise NotFoundError(f"Task {task_id} not found")
    logger.debug("Task updated id=%s", updated.id)
    return updated


def delete_task(state: AppState, owner_id: str, task_id: int) -> list[Task]:
    """Delete a task; returns the remaining tasks with their redistributed percentages."""
    with state.task_store.unit_of_work() as session:
        task, task_list = _require_owned_task(session, owner_id, task_id)
        ensure_editable(task_list, "delete tasks")
        session.delete_task(task.id)
        remaining = session.recompute_percentages(task_list.id)

    logger.info("Task deleted id=%s list_id=%s remaining=%s", task.id, task_list.id, len(remaining))
    return remaining


def reorder_tasks(state: AppState, owner_id: str, task_ids: Sequence[int]) -> list[Task]:
    """
    Reassign positions 1..K in the given order and rebalance percentages.

    task_ids must be exactly the list's current task ids (each once).
    """
    try:
        ids = [int(i) for i in task_ids]
    except (TypeError, ValueError) as exc:
        raise ValidationFailedError("Task ids must be integers") from exc
    if not ids:
        raise ValidationFailedError("At least one task id is required")
    if len(set(ids)) != len(ids):
        raise ValidationFailedError("Task ids must not repeat")

    with state.task_store.unit_of_work() as session:
        owned = session.find_owned_tasks(ids, owner_id)
        if len(owned) != len(ids):
            raise CrossListMismatchError("Some tasks not found or not owned by user")

        list_ids = {t.task_list_id for t in owned}
        if len(list_ids) > 1:
            raise CrossListMismatchError("All tasks must belong to the same task list")

        task_list = session.get_list_by_id(list_ids.pop())
        if task_list is None:
            raise NotFoundError("Task list not found")
        ensure_editable(task_list, "reorder tasks")

        current_ids = {t.id for t in session.list_tasks(task_list.id)}
        if current_ids != set(ids):
            raise ValidationFailedError(
                f"Reorder must list every task of the list exactly once ({len(current_ids)} expected)"
            )

        session.set_positions(ids)
        tasks = session.recompute_percentages(task_list.id)

    logger.info("Tasks reordered list_id=%s order=%s", task_list.id, ids)
    return tasks


def toggle_completion(state: AppState, owner_id: str, task_id: int) -> Task:
    """Flip is_completed; allowed while OPEN or SUBMITTED, rejected once CLOSED."""
    with state.task_store.unit_of_work() as session:
        task, task_list = _require_owned_task(session, owner_id, task_id)
        ensure_completable(task_list)

        completed = not task.is_completed
        completed_at = state.clock.now().timestamp() if completed else None
        session.set_completion(task.id, is_completed=completed, completed_at=completed_at)
        updated = session.get_task(task.id)

    if updated is None:
        raise NotFoundError(f"Task {task_id} not found")
    logger.debug("Task completion id=%s completed=%s", updated.id, updated.is_completed)
    return updated


def copy_from_latest(state: AppState, owner_id: str) -> CopyResult:
    """
    Clone the tasks of the most recent closed list into today's list.

    Copies keep source order, get fresh ids, start incomplete, and are appended after
    today's highest position; then the whole list is rebalanced.
    """
    today = state.clock.today()

    with state.task_store.unit_of_work() as session:
        target, _ = session.get_or_create_list(owner_id, today)
        ensure_editable(target, "copy tasks")

        source = session.latest_closed_list(owner_id)
        if source is None:
            raise NoClosedListFoundError("No closed task lists found to copy from")

        source_tasks = session.list_tasks(source.id)
        if not source_tasks:
            raise EmptySourceListError(
                f"No tasks found in latest closed task list ({source.list_date.isoformat()})"
            )

        current = session.count_tasks(target.id)
        if current + len(source_tasks) > MAX_TASKS_PER_LIST:
            raise CapacityExceededError(
                f"Cannot copy {len(source_tasks)} tasks. Would exceed maximum of "
                f"{MAX_TASKS_PER_LIST} tasks per day. Current count: {current}",
                current_count=current,
                adding_count=len(source_tasks),
                limit=MAX_TASKS_PER_LIST,
            )

        position = session.max_position(target.id)
        new_ids: list[int] = []
        for src in source_tasks:
            position += 1
            inserted = session.insert_task(
                target.id, title=src.title, description=src.description, position=position
            )
            new_ids.append(inserted.id)

        tasks = session.recompute_percentages(target.id)

    by_id = {t.id: t for t in tasks}
    copied = [by_id[i] for i in new_ids]
    logger.info(
        "Copied %s tasks from %s into list_id=%s", len(copied), source.list_date, target.id
    )
    return CopyResult(from_date=source.list_date, copied=copied)


# ---- lifecycle ----


def _transition(state: AppState, owner_id: str, action: ListAction, list_date: date | None) -> TaskList:
    list_date = list_date or state.clock.today()
    now_ts = state.clock.now().timestamp()
    with state.task_store.unit_of_work() as session:
        task_list = _require_list(session, owner_id, list_date)
        moved = apply_transition(task_list, action, now_ts=now_ts)
        session.save_list_flags(moved)
    logger.info(
        "Task list %s id=%s %s -> %s", action.value, moved.id, task_list.state.value, moved.state.value
    )
    return moved


def submit_list(state: AppState, owner_id: str, list_date: date | None = None) -> TaskList:
    return _transition(state, owner_id, ListAction.SUBMIT, list_date)


def close_list(state: AppState, owner_id: str, list_date: date | None = None) -> TaskList:
    return _transition(state, owner_id, ListAction.CLOSE, list_date)


def reopen_list(state: AppState, owner_id: str, list_date: date | None = None) -> TaskList:
    return _transition(state, owner_id, ListAction.REOPEN, list_date)
