"""
Task storage for the reference status server (SQLite).

Only what the status-update contract needs: seed/read tasks and change a
task's status. Card order within a column is not persisted here.
"""
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .schema import Task

logger = logging.getLogger(__name__)


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with WAL mode and dict-like rows."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class TaskStore:
    """SQLite-backed store for board tasks."""

    def __init__(self, db_path: str):
        """Initialize store and create tables if needed."""
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY,
                    project_id INTEGER,
                    title TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'todo',
                    position INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status, position)")
            conn.commit()

    def save(self, task: Task) -> Task:
        """Insert or replace a task."""
        data = task.to_dict()
        with _connect(self.db_path) as conn:
            conn.execute("""
                INSERT OR REPLACE INTO tasks (id, project_id, title, status, position, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                data["id"],
                data["project_id"],
                data["title"],
                data["status"],
                data["position"],
                data["updated_at"],
            ))
            conn.commit()
        return task

    def get(self, task_id: int) -> Optional[Task]:
        with _connect(self.db_path) as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return Task.from_dict(dict(row)) if row else None

    def list_all(self) -> List[Task]:
        """All tasks ordered by status, then position."""
        with _connect(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY status, position, id").fetchall()
        return [Task.from_dict(dict(r)) for r in rows]

    def tasks_by_status(self, columns: List[str]) -> Dict[str, List[dict]]:
        """Group tasks per column (every configured column present, possibly empty)."""
        grouped = {key: [] for key in columns}
        for task in self.list_all():
            grouped.setdefault(task.status, []).append(task.to_dict())
        return grouped

    def update_status(self, task_id: int, status: str) -> bool:
        """Set a task's status. Returns False when the task does not exist."""
        now = datetime.now(timezone.utc).isoformat()
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE tasks SET status = ?, updated_at = ? WHERE id = ?",
                (status, now, task_id),
            )
            conn.commit()
            updated = cursor.rowcount > 0
        if updated:
            logger.info(f"Task {task_id} status → {status}")
        return updated
