# src/daylist/tasks/errors.py

"""
Error taxonomy for task list operations.

TaskListError and its subclasses are domain rejections: the caller did something the
current data or lifecycle state does not allow. StorageError is an infrastructure failure
(SQLite unavailable, locked past the timeout, transaction aborted) and is kept separate so
callers can decide whether to retry.
"""

from __future__ import annotations

from enum import StrEnum
from typing import ClassVar


class ErrorKind(StrEnum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    VALIDATION_FAILED = "validation_failed"
    CROSS_LIST_MISMATCH = "cross_list_mismatch"
    NO_FIELDS = "no_fields"
    NO_CLOSED_LIST_FOUND = "no_closed_list_found"
    EMPTY_SOURCE_LIST = "empty_source_list"


class TaskListError(Exception):
    """Base class for rejected task list operations."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class NotFoundError(TaskListError):
    kind = ErrorKind.NOT_FOUND


class InvalidStateError(TaskListError):
    kind = ErrorKind.INVALID_STATE


class CapacityExceededError(TaskListError):
    kind = ErrorKind.CAPACITY_EXCEEDED

    def __init__(self, message: str, *, current_count: int, adding_count: int, limit: int) -> None:
        super().__init__(message)
        self.current_count = current_count
        self.adding_count = adding_count
        self.limit = limit


class ValidationFailedError(TaskListError):
    kind = ErrorKind.VALIDATION_FAILED


class CrossListMismatchError(TaskListError):
    kind = ErrorKind.CROSS_LIST_MISMATCH


class NoFieldsError(TaskListError):
    kind = ErrorKind.NO_FIELDS


class NoClosedListFoundError(TaskListError):
    kind = ErrorKind.NO_CLOSED_LIST_FOUND


class EmptySourceListError(TaskListError):
    kind = ErrorKind.EMPTY_SOURCE_LIST


class StorageError(Exception):
    """The storage layer failed; nothing about the request itself was wrong."""
