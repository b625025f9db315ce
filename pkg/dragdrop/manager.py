"""
Drag & drop manager: the gesture sink that ties the engine together.

    GestureAdapter → DragSession.start
                   → compute_insertion_index (every move) → DragSession.update_hover
                   → DragSession.drop → StatusReconciliationEngine.begin / settle

The manager owns the single DragSession and the gesture adapter; the
reconciliation engine owns the in-flight set. Drops that change column
are reconciled with the backend. Same-column reorders are applied to the
local board only; persisting card order is a separate product decision.
"""
import asyncio
import logging
from typing import List, Optional, Set

from .backend import HttpStatusBackend, StatusBackend
from .board import BoardState
from .dropzone import compute_insertion_index
from .errors import ConcurrentDragError, ConcurrentReconciliationError
from .gestures import DEFAULT_TOUCH_THRESHOLD, GestureAdapter, GestureSink
from .journal import MoveJournal
from .notify import LogNotifier, Notifier
from .reconcile import StatusReconciliationEngine
from .schema import DropKind, NotifyKind, Point, ReconcileResult
from .session import DragSession, DragSnapshot

logger = logging.getLogger(__name__)

FAILED_BUSY_MESSAGE = "Task is still being updated, try again in a moment"


class DragDropManager(GestureSink):
    """
    Handles all drag and drop functionality for task cards.

    Gesture handlers must be called from inside a running asyncio event
    loop: a drop into another column schedules its status update as a task
    on that loop. Outside one, the drop raises RuntimeError and the board is
    left untouched.
    """

    def __init__(
        self,
        board: BoardState,
        surface,
        backend: StatusBackend,
        notifier: Notifier = None,
        journal: Optional[MoveJournal] = None,
        touch_threshold: float = DEFAULT_TOUCH_THRESHOLD,
    ):
        self.board = board
        self.surface = surface
        self.notifier = notifier or LogNotifier()
        self.session = DragSession()
        self.engine = StatusReconciliationEngine(board, backend, surface, self.notifier, journal)
        self.gestures = GestureAdapter(self, touch_threshold)
        self.is_initialized = False
        self._settling: Set[asyncio.Task] = set()

    @classmethod
    def from_config(cls, cfg, board: BoardState, surface, notifier: Notifier = None) -> "DragDropManager":
        """Build a manager talking HTTP to the endpoint described by a BoardConfig."""
        backend = HttpStatusBackend(cfg.api_base_url, cfg.status_endpoint, cfg.request_timeout)
        journal = MoveJournal(cfg.journal_path) if cfg.journal_path else None
        return cls(board, surface, backend, notifier=notifier, journal=journal,
                   touch_threshold=cfg.touch_threshold_px)

    # ──────────────────────────────────────────
    # Setup
    # ──────────────────────────────────────────

    def initialize(self) -> None:
        """Attach input handlers to the surface and render the board (idempotent)."""
        if self.is_initialized:
            return
        self.gestures.attach(self.surface)
        self.surface.render(self.board)
        self.is_initialized = True
        logger.info("Drag & drop initialized")

    def shutdown(self) -> None:
        """Detach input handlers; cancels any drag in progress."""
        if not self.is_initialized:
            return
        self.gestures.detach(self.surface)
        self.is_initialized = False

    def refresh(self) -> None:
        """Re-render after the board was changed from outside (e.g. a reload)."""
        self.surface.render(self.board)

    def set_enabled(self, enabled: bool) -> None:
        self.gestures.set_enabled(enabled)
        self.surface.set_draggable(enabled)

    def is_dragging(self) -> bool:
        return self.session.is_active

    def dragged_task(self) -> Optional[DragSnapshot]:
        return self.session.snapshot() if self.session.is_active else None

    async def drain(self) -> List[ReconcileResult]:
        """Wait for every outstanding status update to settle."""
        results = []
        while self._settling:
            batch = list(self._settling)
            results.extend(await asyncio.gather(*batch))
            self._settling.difference_update(batch)
        return results

    # ──────────────────────────────────────────
    # Gesture sink
    # ──────────────────────────────────────────

    def on_gesture_start(self, task_id: int, pos: Point) -> bool:
        if task_id not in self.board:
            logger.debug(f"Ignoring drag of unknown task {task_id}")
            return False
        if self.engine.is_pending(task_id):
            # Pending cards have reduced interactivity until their update settles
            logger.debug(f"Ignoring drag of task {task_id}: status update in flight")
            return False

        column, index = self.board.locate(task_id)
        try:
            self.session.start(task_id, column, index)
        except ConcurrentDragError as e:
            logger.warning(str(e))
            return False

        self.surface.set_dragging(task_id, True)
        self._update_hover(pos)
        logger.info(f"Started dragging task {task_id} from {column}")
        return True

    def on_gesture_move(self, pos: Point) -> None:
        if self.session.is_active:
            self._update_hover(pos)

    def on_gesture_end(self, pos: Point) -> None:
        if not self.session.is_active:
            return
        self._update_hover(pos)
        task_id = self.session.snapshot().task_id
        self.session.rebase(*self.board.locate(task_id))
        outcome = self.session.drop()
        self._clear_feedback(task_id)

        if outcome is None:
            logger.info(f"Task {task_id} dropped outside any column; drag cancelled")
            return

        if outcome.kind == DropKind.NOOP:
            logger.debug(f"Task {task_id} dropped back in place")
            return

        if outcome.kind == DropKind.REORDER:
            try:
                self.board.move(task_id, outcome.to_column, outcome.to_index)
                self.surface.render(self.board)
                logger.info(f"Reordered task {task_id} in {outcome.to_column} (local only)")
            finally:
                self.session.release()
            return

        logger.info(f"Moving task {task_id} from {outcome.from_column} to {outcome.to_column}")
        try:
            loop = asyncio.get_running_loop()
            request = self.engine.begin(task_id, outcome.from_column, outcome.to_column, outcome.to_index)
        except ConcurrentReconciliationError as e:
            logger.warning(str(e))
            self.notifier.notify(FAILED_BUSY_MESSAGE, NotifyKind.ERROR)
            return
        finally:
            self.session.release()

        task = loop.create_task(self.engine.settle(request))
        self._settling.add(task)
        task.add_done_callback(self._settling.discard)

    def on_gesture_cancel(self) -> None:
        snapshot = self.session.cancel()
        if snapshot is not None:
            self._clear_feedback(snapshot.task_id)
            logger.info(f"Drag of task {snapshot.task_id} cancelled")

    # ──────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────

    def _update_hover(self, pos: Point) -> None:
        task_id = self.session.snapshot().task_id
        column = self.surface.column_at(pos)
        if column is None or not self.board.has_column(column):
            self.session.update_hover(None, None)
            self.surface.hide_drop_indicator()
            return
        index = compute_insertion_index(self.surface.card_slots(column), pos.y, exclude=task_id)
        self.session.update_hover(column, index)
        self.surface.show_drop_indicator(column, index)

    def _clear_feedback(self, task_id: int) -> None:
        self.surface.hide_drop_indicator()
        self.surface.set_dragging(task_id, False)

