"""
Drag session state machine.

  IDLE → ACTIVE → COMMITTING → IDLE
                ↘ CANCELLED  → IDLE

One DragSession instance is owned by the drag manager. start() refuses to
begin a second drag while one is in progress, so at most one drag is ever
active. The session never talks to the network; it only records where the
card came from and where it is hovering.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ConcurrentDragError
from .schema import DropKind, DropOutcome

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTING = "committing"
    CANCELLED = "cancelled"


@dataclass
class DragSnapshot:
    """What is being dragged, from where, and the current candidate drop location."""
    task_id: int
    source_column: str
    source_index: int
    started_at: float
    hover_column: Optional[str] = None
    hover_index: Optional[int] = None


class DragSession:
    """Lifecycle of the single in-progress drag."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self.state = SessionState.IDLE
        self._current: Optional[DragSnapshot] = None

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def snapshot(self) -> Optional[DragSnapshot]:
        return self._current

    def start(self, task_id: int, source_column: str, source_index: int) -> DragSnapshot:
        """Begin dragging a task. Raises ConcurrentDragError unless idle."""
        if self.state != SessionState.IDLE:
            active = self._current.task_id if self._current else None
            raise ConcurrentDragError(active, task_id)

        self._current = DragSnapshot(
            task_id=task_id,
            source_column=source_column,
            source_index=source_index,
            started_at=self._clock(),
        )
        self.state = SessionState.ACTIVE
        logger.debug(f"Drag started: task {task_id} from {source_column}@{source_index}")
        return self._current

    def update_hover(self, column: Optional[str], index: Optional[int]) -> None:
        """Record the candidate drop location. column=None means outside every drop zone."""
        self._require_active("update_hover")
        self._current.hover_column = column
        self._current.hover_index = index if column is not None else None

    def rebase(self, column: str, index: int) -> None:
        """Reset the recorded source to the card's current board position."""
        self._require_active("rebase")
        current = self._current
        if (column, index) != (current.source_column, current.source_index):
            logger.debug(
                f"Drag source of task {current.task_id} shifted: "
                f"{current.source_column}@{current.source_index} → {column}@{index}"
            )
        current.source_column = column
        current.source_index = index

    def drop(self) -> Optional[DropOutcome]:
        """
        Finish the drag at the current hover location.

        Returns None (after cancelling) when not over a drop zone. A drop
        back onto the source position is a NOOP and returns the session to
        IDLE right away; MOVE and REORDER leave it COMMITTING until release().
        """
        self._require_active("drop")
        current = self._current

        if current.hover_column is None or current.hover_index is None:
            logger.debug(f"Drop of task {current.task_id} outside any drop zone")
            self.cancel()
            return None

        if current.hover_column != current.source_column:
            kind = DropKind.MOVE
        elif current.hover_index != current.source_index:
            kind = DropKind.REORDER
        else:
            kind = DropKind.NOOP

        outcome = DropOutcome(
            task_id=current.task_id,
            from_column=current.source_column,
            from_index=current.source_index,
            to_column=current.hover_column,
            to_index=current.hover_index,
            kind=kind,
        )
        self.state = SessionState.COMMITTING
        if kind == DropKind.NOOP:
            self.release()
        return outcome

    def cancel(self) -> Optional[DragSnapshot]:
        """Abandon the drag. Returns the source snapshot, or None if nothing was active."""
        if self.state != SessionState.ACTIVE:
            return None
        current = self._current
        self.state = SessionState.CANCELLED
        logger.debug(f"Drag cancelled: task {current.task_id} stays at {current.source_column}@{current.source_index}")
        self._reset()
        return current

    def release(self) -> None:
        """Hand-off complete: COMMITTING → IDLE."""
        if self.state != SessionState.COMMITTING:
            raise RuntimeError(f"release() called in state {self.state.value}")
        self._reset()

    def _reset(self) -> None:
        self._current = None
        self.state = SessionState.IDLE

    def _require_active(self, operation: str) -> None:
        if self.state != SessionState.ACTIVE:
            raise RuntimeError(f"{operation}() requires an active drag (state={self.state.value})")
