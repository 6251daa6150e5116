# src/daylist/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and time swappable and makes testing easier.
"""

from datetime import date, datetime
from typing import Protocol


class Clock(Protocol):
    """Wall clock pinned to one reference timezone; every "today" comparison goes through it."""

    def now(self) -> datetime: ...
    def today(self) -> date: ...


class AutoCloseRepo(Protocol):
    """
    Storage port for the auto-closure sweeper.

    Must be a single conditional update (is_closed = 0 AND date in range) so it commutes
    with manual closes of the same rows. Returns the number of lists it closed.

    The update is the bulk SQL form of lifecycle.TRANSITIONS' AUTO_CLOSE entries:
    OPEN and SUBMITTED lists become CLOSED, CLOSED lists are skipped.
    """

    def close_open_lists(self, *, start: date, end: date, closed_at: float) -> int: ...
