# src/daylist/tasks/task_store.py

from __future__ import annotations

import contextlib
import dataclasses
import logging
import sqlite3
import time
from collections.abc import Iterable, Iterator
from datetime import date
from pathlib import Path

from .allocator import allocate_percentages
from .errors import StorageError
from .task_models import Task, TaskList

logger = logging.getLogger(__name__)


def _row_to_list(row: sqlite3.Row) -> TaskList:
    return TaskList(
        id=int(row["id"]),
        owner_id=str(row["owner_id"]),
        list_date=date.fromisoformat(str(row["list_date"])),
        created_at=float(row["created_at"] or 0.0),
        is_submitted=bool(row["is_submitted"]),
        submitted_at=float(row["submitted_at"]) if row["submitted_at"] is not None else None,
        is_closed=bool(row["is_closed"]),
        closed_at=float(row["closed_at"]) if row["closed_at"] is not None else None,
    )


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=int(row["id"]),
        task_list_id=int(row["task_list_id"]),
        title=str(row["title"] or ""),
        description=str(row["description"] or ""),
        percentage=float(row["percentage"] or 0.0),
        position=int(row["position"]),
        created_at=float(row["created_at"] or 0.0),
        updated_at=float(row["updated_at"] or 0.0),
        is_completed=bool(row["is_completed"]),
        completed_at=float(row["completed_at"]) if row["completed_at"] is not None else None,
    )


class TaskListSession:
    """
    Queries and writes bound to one open transaction.

    Obtained from TaskStore.unit_of_work(); never kept beyond the `with` block.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # ---- task lists ----

    def get_list(self, owner_id: str, list_date: date) -> TaskList | None:
        row = self._conn.execute(
            "SELECT * FROM task_lists WHERE owner_id = ? AND list_date = ?",
            (owner_id, list_date.isoformat()),
        ).fetchone()
        return _row_to_list(row) if row else None

    def get_list_by_id(self, task_list_id: int) -> TaskList | None:
        row = self._conn.execute(
            "SELECT * FROM task_lists WHERE id = ?", (int(task_list_id),)
        ).fetchone()
        return _row_to_list(row) if row else None

    def get_or_create_list(self, owner_id: str, list_date: date) -> tuple[TaskList, bool]:
        """Return (list, created). A new list starts OPEN with no tasks."""
        existing = self.get_list(owner_id, list_date)
        if existing is not None:
            return existing, False

        now = time.time()
        cur = self._conn.execute(
            "INSERT INTO task_lists(owner_id, list_date, created_at) VALUES (?, ?, ?)",
            (owner_id, list_date.isoformat(), now),
        )
        rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite did not return lastrowid for task_lists insert")
        logger.debug("Task list created id=%s owner=%s date=%s", rowid, owner_id, list_date)
        return TaskList(id=int(rowid), owner_id=owner_id, list_date=list_date, created_at=now), True

    def latest_closed_list(self, owner_id: str) -> TaskList | None:
        row = self._conn.execute(
            """
            SELECT *
            FROM task_lists
            WHERE owner_id = ? AND is_closed = 1
            ORDER BY list_date DESC
                LIMIT 1
            """,
            (owner_id,),
        ).fetchone()
        return _row_to_list(row) if row else None

    def save_list_flags(self, task_list: TaskList) -> None:
        self._conn.execute(
            """
            UPDATE task_lists
            SET is_submitted = ?,
                submitted_at = ?,
                is_closed = ?,
                closed_at = ?
            WHERE id = ?
            """,
            (
                int(task_list.is_submitted),
                task_list.submitted_at,
                int(task_list.is_closed),
                task_list.closed_at,
                int(task_list.id),
            ),
        )

    # ---- tasks ----

    def list_tasks(self, task_list_id: int) -> list[Task]:
        rows = self._conn.execute(
            "SELECT * FROM tasks WHERE task_list_id = ? ORDER BY position ASC, id ASC",
            (int(task_list_id),),
        ).fetchall()
        return [_row_to_task(r) for r in rows]

    def count_tasks(self, task_list_id: int) -> int:
        (n,) = self._conn.execute(
            "SELECT COUNT(*) FROM tasks WHERE task_list_id = ?", (int(task_list_id),)
        ).fetchone()
        return int(n)

    def max_position(self, task_list_id: int) -> int:
        (n,) = self._conn.execute(
            "SELECT COALESCE(MAX(position), 0) FROM tasks WHERE task_list_id = ?",
            (int(task_list_id),),
        ).fetchone()
        return int(n)

    def get_task(self, task_id: int) -> Task | None:
        row = self._conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
        return _row_to_task(row) if row else None

    def find_owned_task(self, task_id: int, owner_id: str) -> tuple[Task, TaskList] | None:
        """Return the task and its list if the task exists and its list belongs to owner_id."""
        row = self._conn.execute(
            """
            SELECT t.*
            FROM tasks t
                     JOIN task_lists tl ON t.task_list_id = tl.id
            WHERE t.id = ? AND tl.owner_id = ?
            """,
            (int(task_id), owner_id),
        ).fetchone()
        if row is None:
            return None
        task = _row_to_task(row)
        task_list = self.get_list_by_id(task.task_list_id)
        if task_list is None:
            return None
        return task, task_list

    def find_owned_tasks(self, task_ids: Iterable[int], owner_id: str) -> list[Task]:
        ids = [int(i) for i in task_ids]
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        rows = self._conn.execute(
            f"""
            SELECT t.*
            FROM tasks t
                     JOIN task_lists tl ON t.task_list_id = tl.id
            WHERE t.id IN ({placeholders}) AND tl.owner_id = ?
            """,
            (*ids, owner_id),
        ).fetchall()
        return [_row_to_task(r) for r in rows]

    def insert_task(
        self,
        task_list_id: int,
        *,
        title: str,
        description: str,
        position: int,
    ) -> Task:
        """Insert with percentage 0; the caller recomputes the whole list afterwards."""
        now = time.time()
        cur = self._conn.execute(
            """
            INSERT INTO tasks(
                task_list_id, title, description, percentage, position,
                is_completed, completed_at, created_at, updated_at
            )
            VALUES (?, ?, ?, 0, ?, 0, NULL, ?, ?)
            """,
            (int(task_list_id), title, description, int(position), now, now),
        )
        rowid = cur.lastrowid
        if rowid is None:
            raise RuntimeError("SQLite did not return lastrowid for tasks insert")
        return Task(
            id=int(rowid),
            task_list_id=int(task_list_id),
            title=title,
            description=description,
            percentage=0.0,
            position=int(position),
            created_at=now,
            updated_at=now,
        )

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> None:
        fields: list[str] = []
        params: list[object] = []

        if title is not None:
            fields.append("title = ?")
            params.append(title)

        if description is not None:
            fields.append("description = ?")
            params.append(description)

        if not fields:
            return

        fields.append("updated_at = ?")
        params.append(time.time())
        params.append(int(task_id))

        self._conn.execute(f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?", params)

    def set_completion(self, task_id: int, *, is_completed: bool, completed_at: float | None) -> None:
        self._conn.execute(
            "UPDATE tasks SET is_completed = ?, completed_at = ?, updated_at = ? WHERE id = ?",
            (int(is_completed), completed_at, time.time(), int(task_id)),
        )

    def delete_task(self, task_id: int) -> None:
        self._conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))

    def set_positions(self, ordered_task_ids: list[int]) -> None:
        """Assign positions 1..K in the given order."""
        self._conn.executemany(
            "UPDATE tasks SET position = ? WHERE id = ?",
            [(i, int(task_id)) for i, task_id in enumerate(ordered_task_ids, start=1)],
        )

    def recompute_percentages(self, task_list_id: int) -> list[Task]:
        """
        Re-run the allocator over every task of the list in position order and persist it.

        Always whole-list: any insert/delete/reorder changes every rank's share.
        """
        tasks = self.list_tasks(task_list_id)
        percentages = allocate_percentages(len(tasks))
        self._conn.executemany(
            "UPDATE tasks SET percentage = ? WHERE id = ?",
            [(p, t.id) for t, p in zip(tasks, percentages)],
        )
        logger.debug("Percentages recomputed list_id=%s values=%s", task_list_id, percentages)
        return [dataclasses.replace(t, percentage=p) for t, p in zip(tasks, percentages)]


class TaskStore:
    """
    SQLite store for task lists and their tasks.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each call opens its own SQLite connection
    - unit_of_work() takes the database write lock up front (BEGIN IMMEDIATE), so two
      writers never interleave a read-count / recompute / persist sequence
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_lists()
        except StorageError:
            total = -1
        logger.info("TaskStore ready db=%s lists=%s", self._db_path, total)

    def close(self) -> None:
        """Shutdown hook (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly by unit_of_work().
        conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")

    def _ensure_schema(self) -> None:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open task database {self._db_path}") from exc
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_lists (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id TEXT NOT NULL,
                    list_date TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    is_submitted INTEGER NOT NULL DEFAULT 0,
                    submitted_at REAL,
                    is_closed INTEGER NOT NULL DEFAULT 0,
                    closed_at REAL,
                    UNIQUE(owner_id, list_date)
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_list_id INTEGER NOT NULL REFERENCES task_lists(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    percentage REAL NOT NULL DEFAULT 0,
                    position INTEGER NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    completed_at REAL,
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )

            def add_col(table: str, name: str, decl: str) -> None:
                cur.execute(f"PRAGMA table_info({table})")
                cols = {row["name"] for row in cur.fetchall()}
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE {table} ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s.%s", table, name)

            add_col("task_lists", "submitted_at", "REAL")
            add_col("task_lists", "closed_at", "REAL")
            add_col("tasks", "description", "TEXT NOT NULL DEFAULT ''")
            add_col("tasks", "percentage", "REAL NOT NULL DEFAULT 0")
            add_col("tasks", "is_completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("tasks", "completed_at", "REAL")
            add_col("tasks", "updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_list_pos ON tasks(task_list_id, position)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_task_lists_closed ON task_lists(is_closed, list_date)"
            )
        except sqlite3.Error as exc:
            raise StorageError("Task database schema setup failed") from exc
        finally:
            conn.close()

    # ---- public API ----

    @contextlib.contextmanager
    def unit_of_work(self) -> Iterator[TaskListSession]:
        """
        One transaction around a read-modify-write sequence.

        Commits when the block exits normally; rolls back on any exception. Domain errors
        propagate unchanged, sqlite3 errors are re-raised as StorageError.
        """
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open task database {self._db_path}") from exc

        try:
            conn.execute("BEGIN IMMEDIATE")
            yield TaskListSession(conn)
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            with contextlib.suppress(sqlite3.Error):
                conn.execute("ROLLBACK")
            raise StorageError("Task database transaction failed") from exc
        except BaseException:
            with contextlib.suppress(sqlite3.Error):
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def count_lists(self) -> int:
        try:
            conn = self._get_conn()
            try:
                (n,) = conn.execute("SELECT COUNT(*) FROM task_lists").fetchone()
                return int(n)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError("count_lists failed") from exc

    def close_open_lists(self, *, start: date, end: date, closed_at: float) -> int:
        """
        Close every list dated within [start, end] that is not closed yet.

        One conditional UPDATE: rows closed concurrently (manually or by another sweep) are
        skipped by the is_closed guard and keep their original closed_at.
        Returns the number of lists closed by this call.
        """
        try:
            conn = self._get_conn()
            try:
                cur = conn.execute(
                    """
                    UPDATE task_lists
                    SET is_closed = 1, closed_at = ?
                    WHERE is_closed = 0
                      AND list_date >= ?
                      AND list_date <= ?
                    """,
                    (float(closed_at), start.isoformat(), end.isoformat()),
                )
                return int(cur.rowcount)
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StorageError("close_open_lists failed") from exc
