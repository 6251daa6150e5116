# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path

import pytest

from daylist.tasks.errors import StorageError
from daylist.tasks.task_store import TaskStore

DAY = date(2026, 10, 19)


def test_list_is_unique_per_owner_and_date(store: TaskStore) -> None:
    with store.unit_of_work() as session:
        first, created = session.get_or_create_list("u1", DAY)
        assert created is True
        again, created_again = session.get_or_create_list("u1", DAY)
        assert created_again is False
        other, _ = session.get_or_create_list("u2", DAY)

    assert again.id == first.id
    assert other.id != first.id
    assert store.count_lists() == 2


def test_unit_of_work_rolls_back_on_error(store: TaskStore) -> None:
    with pytest.raises(RuntimeError):
        with store.unit_of_work() as session:
            task_list, _ = session.get_or_create_list("u1", DAY)
            session.insert_task(task_list.id, title="A", description="", position=1)
            raise RuntimeError("boom")

    with store.unit_of_work() as session:
        assert session.get_list("u1", DAY) is None
    assert store.count_lists() == 0


def test_sqlite_errors_surface_as_storage_error(store: TaskStore) -> None:
    with pytest.raises(StorageError) as exc:
        with store.unit_of_work() as session:
            # foreign key: list 999 does not exist
            session.insert_task(999, title="orphan", description="", position=1)
    assert isinstance(exc.value.__cause__, sqlite3.Error)


def test_recompute_follows_position_order(store: TaskStore) -> None:
    with store.unit_of_work() as session:
        task_list, _ = session.get_or_create_list("u1", DAY)
        a = session.insert_task(task_list.id, title="A", description="", position=1)
        b = session.insert_task(task_list.id, title="B", description="", position=2)
        session.set_positions([b.id, a.id])
        tasks = session.recompute_percentages(task_list.id)

    assert [t.title for t in tasks] == ["B", "A"]
    assert [t.percentage for t in tasks] == [70.0, 30.0]


def test_deleting_list_rows_cascades_to_tasks(store: TaskStore, tmp_path: Path) -> None:
    with store.unit_of_work() as session:
        task_list, _ = session.get_or_create_list("u1", DAY)
        session.insert_task(task_list.id, title="A", description="", position=1)

    conn = sqlite3.connect(str(tmp_path / "tasks.sqlite3"))
    try:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("DELETE FROM task_lists")
        conn.commit()
        (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
    finally:
        conn.close()
    assert n == 0


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(str(db))
    try:
        conn.execute(
            """
            CREATE TABLE task_lists (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                owner_id TEXT NOT NULL,
                list_date TEXT NOT NULL,
                created_at REAL NOT NULL,
                is_submitted INTEGER NOT NULL DEFAULT 0,
                is_closed INTEGER NOT NULL DEFAULT 0,
                UNIQUE(owner_id, list_date)
            )
            """
        )
        conn.execute(
            "INSERT INTO task_lists(owner_id, list_date, created_at, is_closed) VALUES ('u1', ?, 1.0, 1)",
            (DAY.isoformat(),),
        )
        conn.commit()
    finally:
        conn.close()

    store = TaskStore(db)

    with store.unit_of_work() as session:
        task_list = session.get_list("u1", DAY)
        assert task_list is not None
        assert task_list.is_closed is True
        assert task_list.closed_at is None
        assert session.latest_closed_list("u1") == task_list
