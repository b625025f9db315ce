"""
Local board state: column key → ordered task ids.

Every task id appears in exactly one column. All mutations go through
move(), which removes and re-inserts in one step, so there is no moment
where a task is in zero or two columns.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import UnknownColumnError, UnknownTaskError
from .schema import DEFAULT_COLUMNS, Task

logger = logging.getLogger(__name__)


class BoardState:
    """Locally cached, ordered view of the tasks on a board."""

    def __init__(self, columns: Iterable[str] = DEFAULT_COLUMNS):
        self._columns: Dict[str, List[int]] = {key: [] for key in columns}
        self._tasks: Dict[int, Task] = {}

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task], columns: Iterable[str] = DEFAULT_COLUMNS) -> "BoardState":
        """Build a board from task records, ordered by position within each column."""
        board = cls(columns)
        for task in sorted(tasks, key=lambda t: (t.position, t.id)):
            board.add(task)
        return board

    # ──────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def has_column(self, key: str) -> bool:
        return key in self._columns

    def column(self, key: str) -> List[int]:
        """Ordered task ids of a column (a copy)."""
        if key not in self._columns:
            raise UnknownColumnError(key)
        return list(self._columns[key])

    def task(self, task_id: int) -> Task:
        try:
            return self._tasks[task_id]
        except KeyError:
            raise UnknownTaskError(task_id)

    def __contains__(self, task_id) -> bool:
        return task_id in self._tasks

    def locate(self, task_id: int) -> Tuple[str, int]:
        """Return (column, index) of a task."""
        task = self.task(task_id)
        return task.status, self._columns[task.status].index(task_id)

    def snapshot(self) -> Dict[str, List[int]]:
        return {key: list(ids) for key, ids in self._columns.items()}

    # ──────────────────────────────────────────
    # Mutations
    # ──────────────────────────────────────────

    def add(self, task: Task, index: Optional[int] = None) -> None:
        """Place a new task in its status column (at the end unless index is given)."""
        if task.status not in self._columns:
            raise UnknownColumnError(task.status)
        if task.id in self._tasks:
            raise ValueError(f"Task {task.id} is already on the board")
        ids = self._columns[task.status]
        ids.insert(self._clamp(index, len(ids)), task.id)
        self._tasks[task.id] = task
        self._renumber(task.status)

    def move(self, task_id: int, column: str, index: Optional[int] = None) -> int:
        """
        Re-parent a task to column at index (end of column when None).

        Index is interpreted in the target column with the task already
        removed, and clamped to the valid range. Returns the final index.
        """
        if column not in self._columns:
            raise UnknownColumnError(column)
        task = self.task(task_id)
        source = task.status
        self._columns[source].remove(task_id)
        ids = self._columns[column]
        final = self._clamp(index, len(ids))
        ids.insert(final, task_id)
        task.status = column
        self._renumber(source)
        if column != source:
            self._renumber(column)
        logger.debug(f"Board: task {task_id} {source} → {column}@{final}")
        return final

    @staticmethod
    def _clamp(index: Optional[int], length: int) -> int:
        if index is None:
            return length
        return max(0, min(index, length))

    def _renumber(self, column: str) -> None:
        for position, task_id in enumerate(self._columns[column]):
            self._tasks[task_id].position = position
