"""
Exceptions raised by the drag-and-drop engine.

Every error here leaves each task in exactly one column: rejected
operations never touch the board, and reconciliation failures are
rolled back before they are reported.
"""


class DragDropError(Exception):
    """Base for all drag-and-drop errors."""
    pass


class ConfigError(DragDropError):
    """Raised when configuration is invalid or incomplete."""
    pass


class ConcurrentDragError(DragDropError):
    """Raised when a drag starts while another one is still active."""

    def __init__(self, active_task_id, requested_task_id):
        super().__init__(
            f"Cannot drag task {requested_task_id}: "
            f"task {active_task_id} is already being dragged"
        )
        self.active_task_id = active_task_id
        self.requested_task_id = requested_task_id


class ConcurrentReconciliationError(DragDropError):
    """Raised when a task already has a status update in flight."""

    def __init__(self, task_id):
        super().__init__(
            f"Task {task_id} already has a status update in flight; "
            f"retry after it settles"
        )
        self.task_id = task_id


class ReconciliationFailure(DragDropError):
    """The backend did not confirm a status update (network, HTTP or body error)."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UnknownTaskError(DragDropError):
    """Raised when a task id is not on the board."""

    def __init__(self, task_id):
        super().__init__(f"Task {task_id} not found on board")
        self.task_id = task_id


class UnknownColumnError(DragDropError):
    """Raised when a column key is not on the board."""

    def __init__(self, column: str):
        super().__init__(f"Column '{column}' not found on board")
        self.column = column
