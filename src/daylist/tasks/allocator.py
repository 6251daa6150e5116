# src/daylist/tasks/allocator.py

"""
Percentage allocator.

Splits a 100-point daily budget over N ranked tasks. Rank 1 gets the largest share and
every later rank gets strictly less, linearly down to the baseline 100/N before the
uniform correction pulls the total back to 100.
"""

from __future__ import annotations

import math

from .task_models import MAX_TASKS_PER_LIST

# Largest rounding drift accepted without re-normalizing (one unit of the 2nd decimal).
_DRIFT_TOLERANCE = 0.01


def _round2(value: float) -> float:
    # Half-up, not banker's rounding.
    return math.floor(value * 100 + 0.5) / 100


def allocate_percentages(task_count: int) -> list[float]:
    """
    Return one percentage per rank (rank 1 first) summing to 100.

    - 0 tasks -> []
    - 1 task  -> [100.0]
    - N tasks -> base + decrement * (N - 1 - i), where base = 100 / N and the total
      spread between first and last rank is 80% of base; rounded to 2 decimals,
      shifted uniformly so the sum is 100, rounded again.
    """
    n = int(task_count)
    if n < 0 or n > MAX_TASKS_PER_LIST:
        raise ValueError(f"task_count must be within 0..{MAX_TASKS_PER_LIST}, got {task_count}")
    if n == 0:
        return []
    if n == 1:
        return [100.0]

    base = 100 / n
    decrement = (base * 0.8) / (n - 1)

    raw = [_round2(base + decrement * (n - 1 - i)) for i in range(n)]
    adjustment = (100 - sum(raw)) / n
    out = [_round2(p + adjustment) for p in raw]

    residual = _round2(100 - sum(out))
    if abs(residual) > _DRIFT_TOLERANCE:
        # Rank 1 has the widest margin over rank 2, so it absorbs the excess.
        out[0] = _round2(out[0] + residual)
    return out
