# src/daylist/core/clock.py

from __future__ import annotations

from datetime import date, datetime

import pytz


class SystemClock:
    """Process wall clock truncated to calendar dates in a fixed timezone."""

    def __init__(self, timezone_name: str = "UTC") -> None:
        self.tz = pytz.timezone((timezone_name or "UTC").strip())

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()
