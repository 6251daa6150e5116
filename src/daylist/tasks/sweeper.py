# src/daylist/tasks/sweeper.py

from __future__ import annotations

"""
Auto-closure sweeper.

Closes every still-open list whose date has passed. One sweep is a single conditional
bulk update, so running it late, twice, or next to a manual close is harmless; a failed
sweep is logged and the next tick picks up the same backlog.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass
from datetime import date, timedelta

from ..core.ports import AutoCloseRepo, Clock

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SweepReport:
    start: date
    end: date
    closed: int
    ok: bool = True


def sweep_expired_lists(store: AutoCloseRepo, clock: Clock, *, lookback_days: int = 1) -> SweepReport:
    """
    Close open lists dated from (today - lookback_days) through yesterday.

    All rows closed by this sweep share one closed_at: the sweep's execution time.
    Never raises; failures come back as ok=False.
    """
    now = clock.now()
    today = now.date()
    end = today - timedelta(days=1)
    start = today - timedelta(days=max(1, int(lookback_days)))

    try:
        closed = store.close_open_lists(start=start, end=end, closed_at=now.timestamp())
    except Exception:
        logger.exception("Auto-closure sweep failed range=%s..%s", start, end)
        return SweepReport(start=start, end=end, closed=0, ok=False)

    logger.info("Closed %s task lists from %s..%s", closed, start, end)
    return SweepReport(start=start, end=end, closed=closed)


async def run_sweeper(
        store: AutoCloseRepo,
        clock: Clock,
        *,
        interval_seconds: float = 3600.0,
        lookback_days: int = 1,
        stop_event: asyncio.Event | None = None,
) -> None:
    """
    Polling loop: sweep, then sleep interval_seconds, until stop_event is set or the
    coroutine is cancelled.
    """
    sleep_s = max(0.01, float(interval_seconds))

    while stop_event is None or not stop_event.is_set():
        sweep_expired_lists(store, clock, lookback_days=lookback_days)

        if stop_event is None:
            await asyncio.sleep(sleep_s)
            continue
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=sleep_s)

    logger.info("Sweeper stopped.")


@dataclass
class SweeperBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal sweeper stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_sweeper_in_background(
        store: AutoCloseRepo,
        clock: Clock,
        *,
        interval_seconds: float,
        lookback_days: int = 1,
) -> SweeperBackgroundRunner | None:
    """
    Run the sweeper loop in a background thread with its own event loop,
    so the blocking console loop can run in the main thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(
                run_sweeper(
                    store,
                    clock,
                    interval_seconds=interval_seconds,
                    lookback_days=lookback_days,
                    stop_event=stop_event,
                )
            )
        finally:
            loop.close()

    t = threading.Thread(target=runner, name="daylist-sweeper", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Sweeper thread did not initialize properly.")
        return None

    logger.info("Sweeper background thread started (interval=%ss).", interval_seconds)
    return SweeperBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
