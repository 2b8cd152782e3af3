# src/task_agent/tasks/task_history.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from .task_models import Task, TaskStatus, TaskType

logger = logging.getLogger(__name__)


class InMemoryHistoryStore:
    """
    Append-only task history kept in process memory.

    Reads return copies, so callers cannot mutate history out of band.
    A lock guards the list because the console boundary and the scheduler's
    digest job may touch it from different execution contexts.
    """

    def __init__(self) -> None:
        self._items: list[Task] = []
        self._lock = threading.Lock()

    def close(self) -> None:
        return

    def append(self, task: Task) -> None:
        with self._lock:
            self._items.append(replace(task))
        logger.debug("History append task_id=%s status=%s", task.task_id, task.status.value)

    def list_tasks(self) -> list[Task]:
        with self._lock:
            return [replace(t) for t in self._items]

    def count(self) -> int:
        with self._lock:
            return len(self._items)


class SqliteHistoryStore:
    """
    Durable task history in SQLite.

    Schema is created on startup and missing columns are added with ALTER TABLE.
    Insertion order is the autoincrement `seq` column.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "history.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SqliteHistoryStore ready db=%s total=%s", self._db_path, self.count())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS task_history (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id TEXT NOT NULL,
                    description TEXT NOT NULL,
                    priority INTEGER NOT NULL,
                    type TEXT NOT NULL DEFAULT 'other',
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(task_history)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE task_history ADD COLUMN {name} {decl}")
                logger.info("SqliteHistoryStore migration: added column %s", name)

            add_col("finished_at", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_history_status ON task_history(status)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _parse_ts(raw: str | None) -> datetime | None:
        if not raw:
            return None
        try:
            ts = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            description=str(row["description"] or ""),
            priority=int(row["priority"]),
            type=TaskType.from_raw(row["type"]),
            status=TaskStatus.from_db(row["status"]),
            task_id=str(row["task_id"]),
            created_at=self._parse_ts(row["created_at"]) or datetime.fromtimestamp(0, timezone.utc),
            finished_at=self._parse_ts(row["finished_at"]),
        )

    # ---- public API ----

    def append(self, task: Task) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO task_history(
                    task_id, description, priority, type, status, created_at, finished_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.task_id,
                    task.description,
                    int(task.priority),
                    task.type.value,
                    task.status.value,
                    task.created_at.isoformat(),
                    task.finished_at.isoformat() if task.finished_at else None,
                ),
            )
            conn.commit()
            logger.debug("History append task_id=%s status=%s", task.task_id, task.status.value)
        finally:
            conn.close()

    def list_tasks(self) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM task_history ORDER BY seq ASC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM task_history")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()


def create_history_store(backend: str, db_path: str | Path) -> InMemoryHistoryStore | SqliteHistoryStore:
    if backend == "sqlite":
        return SqliteHistoryStore(db_path)
    if backend != "memory":
        logger.warning("Unknown history backend %r; using in-memory history", backend)
    return InMemoryHistoryStore()
