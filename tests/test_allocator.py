# tests/test_allocator.py

from __future__ import annotations

import pytest

from daylist.tasks.allocator import allocate_percentages


def test_allocator_small_counts() -> None:
    assert allocate_percentages(0) == []
    assert allocate_percentages(1) == [100.0]

    two = allocate_percentages(2)
    assert two == [70.0, 30.0]
    assert two[0] > two[1]


def test_allocator_three_tasks_descending() -> None:
    a, b, c = allocate_percentages(3)
    assert a > b > c
    for got, expected in zip((a, b, c), (46.67, 33.33, 20.00)):
        assert abs(got - expected) <= 0.011


@pytest.mark.parametrize("n", range(0, 11))
def test_allocator_sums_to_100_and_decreases(n: int) -> None:
    values = allocate_percentages(n)
    assert len(values) == n

    if n == 0:
        return

    assert abs(sum(values) - 100) <= 0.01 + 1e-9
    assert all(0 <= v <= 100 for v in values)
    for earlier, later in zip(values, values[1:]):
        assert earlier > later


def test_allocator_is_pure() -> None:
    assert allocate_percentages(7) == allocate_percentages(7)


@pytest.mark.parametrize("n", [-1, 11])
def test_allocator_rejects_out_of_range(n: int) -> None:
    with pytest.raises(ValueError):
        allocate_percentages(n)
