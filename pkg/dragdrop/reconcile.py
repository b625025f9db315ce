"""
Status reconciliation: optimistic move, backend confirmation, rollback.

    begin()   synchronous; reject if the task is already in flight, move
              the card to its target column, mark it pending
    settle()  await the backend; keep the move on success, put the card
              back at its exact origin on any failure

reconcile() is begin() followed by settle(). Requests for different tasks
may overlap freely; a second request for a task that is still in flight is
rejected with ConcurrentReconciliationError and leaves the board untouched.
"""
import asyncio
import logging
from typing import Dict, FrozenSet, Optional

from .backend import StatusBackend
from .board import BoardState
from .errors import ConcurrentReconciliationError, ReconciliationFailure, UnknownColumnError
from .journal import MoveJournal
from .notify import LogNotifier, Notifier
from .schema import NotifyKind, ReconcileResult, ReconciliationRequest, StatusResponse

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to update task status"


def describe_status(status: str) -> str:
    """Column key → human label ("in_progress" → "in progress")."""
    return status.replace("_", " ")


class StatusReconciliationEngine:
    """Owns the per-task in-flight set and is the only writer of committed task status."""

    def __init__(
        self,
        board: BoardState,
        backend: StatusBackend,
        surface=None,
        notifier: Notifier = None,
        journal: Optional[MoveJournal] = None,
    ):
        self.board = board
        self.backend = backend
        self.surface = surface
        self.notifier = notifier or LogNotifier()
        self.journal = journal
        self._in_flight: Dict[int, ReconciliationRequest] = {}

    def in_flight(self) -> FrozenSet[int]:
        return frozenset(self._in_flight)

    def is_pending(self, task_id: int) -> bool:
        return task_id in self._in_flight

    async def reconcile(
        self,
        task_id: int,
        from_status: str,
        to_status: str,
        to_index: Optional[int] = None,
    ) -> ReconcileResult:
        """Move a task to to_status and confirm it with the backend."""
        request = self.begin(task_id, from_status, to_status, to_index)
        return await self.settle(request)

    def begin(
        self,
        task_id: int,
        from_status: str,
        to_status: str,
        to_index: Optional[int] = None,
    ) -> ReconciliationRequest:
        """
        Apply the move optimistically and register the request as in flight.

        Raises:
            ConcurrentReconciliationError if task_id already has a request in flight.
            UnknownTaskError / UnknownColumnError for ids not on the board.
        """
        if task_id in self._in_flight:
            raise ConcurrentReconciliationError(task_id)
        if not self.board.has_column(to_status):
            raise UnknownColumnError(to_status)

        origin_column, origin_index = self.board.locate(task_id)
        if origin_column != from_status:
            logger.debug(
                f"Task {task_id}: caller says {from_status}, board has {origin_column}; "
                f"rollback target is the board position"
            )

        request = ReconciliationRequest(
            task_id=task_id,
            from_status=from_status,
            to_status=to_status,
            origin_column=origin_column,
            origin_index=origin_index,
        )
        request.to_index = self.board.move(task_id, to_status, to_index)
        self._in_flight[task_id] = request

        if self.surface is not None:
            self.surface.render(self.board)
            self.surface.set_pending(task_id, True)

        logger.info(f"Updating task {task_id} status: {from_status} → {to_status} (index {request.to_index})")
        return request

    async def settle(self, request: ReconciliationRequest) -> ReconcileResult:
        """Await the backend and commit or roll back. Never raises ReconciliationFailure."""
        task_id = request.task_id
        try:
            error = None
            response = None
            try:
                response = await self.backend.update_status(task_id, request.to_status)
                if not isinstance(response, StatusResponse):
                    response = StatusResponse.from_payload(response)
                if not response.success:
                    raise ReconciliationFailure(response.message or "Server rejected status update")
            except ReconciliationFailure as e:
                error = e
            except asyncio.CancelledError:
                self._rollback(request, ReconciliationFailure("Status update cancelled"))
                raise
            except Exception as e:
                logger.exception(f"Unexpected error updating task {task_id}")
                error = ReconciliationFailure(f"Unexpected error: {e}")

            if error is None:
                result = self._commit(request, response)
            else:
                result = self._rollback(request, error)
        finally:
            self._in_flight.pop(task_id, None)
            if self.surface is not None:
                self.surface.set_pending(task_id, False)

        if self.journal is not None:
            self.journal.record(result, request.issued_at)
        return result

    def _commit(self, request: ReconciliationRequest, response: StatusResponse) -> ReconcileResult:
        column, index = self.board.locate(request.task_id)
        logger.info(f"Task {request.task_id} committed to {column}@{index}")
        self.notifier.notify(f"Task moved to {describe_status(request.to_status)}", NotifyKind.SUCCESS)
        return ReconcileResult(
            task_id=request.task_id,
            from_status=request.from_status,
            to_status=request.to_status,
            success=True,
            message=response.message,
            column=column,
            index=index,
        )

    def _rollback(self, request: ReconciliationRequest, error: ReconciliationFailure) -> ReconcileResult:
        index = self.board.move(request.task_id, request.origin_column, request.origin_index)
        if self.surface is not None:
            self.surface.render(self.board)
        logger.warning(
            f"Task {request.task_id} rolled back to {request.origin_column}@{index}: {error.message}"
        )
        self.notifier.notify(FAILURE_MESSAGE, NotifyKind.ERROR)
        return ReconcileResult(
            task_id=request.task_id,
            from_status=request.from_status,
            to_status=request.to_status,
            success=False,
            message=error.message,
            column=request.origin_column,
            index=index,
            error=error,
        )
