# src/daylist/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

MAX_TASKS_PER_LIST = 10


class ListState(StrEnum):
    """
    Lifecycle state of a task list.

    Persisted as two flags (is_submitted, is_closed). Closed wins over submitted:
    (submitted=False, closed=True) and (submitted=True, closed=True) are both CLOSED.
    """

    OPEN = "open"
    SUBMITTED = "submitted"
    CLOSED = "closed"

    @classmethod
    def from_flags(cls, *, is_submitted: bool, is_closed: bool) -> ListState:
        if is_closed:
            return cls.CLOSED
        if is_submitted:
            return cls.SUBMITTED
        return cls.OPEN


@dataclass(slots=True, frozen=True)
class TaskList:
    id: int
    owner_id: str
    list_date: date
    created_at: float

    is_submitted: bool = False
    submitted_at: float | None = None
    is_closed: bool = False
    closed_at: float | None = None

    @property
    def state(self) -> ListState:
        return ListState.from_flags(is_submitted=self.is_submitted, is_closed=self.is_closed)


@dataclass(slots=True, frozen=True)
class Task:
    id: int
    task_list_id: int
    title: str
    description: str
    percentage: float
    position: int
    created_at: float
    updated_at: float

    is_completed: bool = False
    completed_at: float | None = None


@dataclass(slots=True, frozen=True)
class TaskListView:
    """A list together with its tasks in position order (task_list is None if no list exists)."""

    task_list: TaskList | None
    tasks: list[Task] = field(default_factory=list)

    @property
    def state(self) -> ListState:
        return self.task_list.state if self.task_list is not None else ListState.OPEN

    @property
    def total_percentage(self) -> float:
        return round(sum(t.percentage for t in self.tasks), 2)

    @property
    def score(self) -> float:
        """Sum of the percentages of completed tasks (the day's achieved share of 100)."""
        return round(sum(t.percentage for t in self.tasks if t.is_completed), 2)


@dataclass(slots=True, frozen=True)
class ListStatus:
    exists: bool
    state: ListState
    submitted_at: float | None = None
    closed_at: float | None = None


@dataclass(slots=True, frozen=True)
class CopyResult:
    from_date: date
    copied: list[Task]
