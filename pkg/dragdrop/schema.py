"""
Drag-and-drop data model.

A Task lives in exactly one status column. The board caches a local view
of task ids per column; the backend owns the authoritative status.

Move lifecycle:
  gesture start → hover updates → drop → optimistic move → commit | rollback
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from .errors import ReconciliationFailure


DEFAULT_COLUMNS = ("todo", "in_progress", "done")


class DropKind(Enum):
    """What a completed drag turns into."""
    MOVE = "move"          # Different column: persisted through reconciliation
    REORDER = "reorder"    # Same column, different index: local only
    NOOP = "noop"          # Same column, same index


class NotifyKind(Enum):
    """Notification severities understood by the notification sink."""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Point:
    """Pointer position in surface coordinates."""
    x: float
    y: float


@dataclass(frozen=True)
class CardSlot:
    """A rendered card as seen by the drop zone: its id and vertical center."""
    task_id: int
    vertical_center: float


@dataclass
class Task:
    """Locally cached view of a backend task."""

    id: int
    status: str                     # Column key (e.g., "todo")
    position: int = 0               # Ordinal within the column
    project_id: Optional[int] = None
    title: str = ""
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "position": self.position,
            "project_id": self.project_id,
            "title": self.title,
            "updated_at": self.updated_at.isoformat() if isinstance(self.updated_at, datetime) else self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize from an API or store row dict."""
        project_id = data.get("project_id")
        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            try:
                updated_at = datetime.fromisoformat(updated_at)
            except ValueError:
                updated_at = None
        return cls(
            id=int(data["id"]),
            status=data.get("status", DEFAULT_COLUMNS[0]),
            position=int(data.get("position") or 0),
            project_id=int(project_id) if project_id is not None else None,
            title=data.get("title", "") or "",
            updated_at=updated_at or datetime.now(timezone.utc),
        )


@dataclass(frozen=True)
class DropOutcome:
    """Result of DragSession.drop(): where the dragged card should end up."""
    task_id: int
    from_column: str
    from_index: int
    to_column: str
    to_index: int
    kind: DropKind


@dataclass
class ReconciliationRequest:
    """One outstanding status update, with the origin captured for rollback."""
    task_id: int
    from_status: str
    to_status: str
    to_index: Optional[int] = None
    origin_column: str = ""
    origin_index: int = 0
    issued_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


@dataclass
class ReconcileResult:
    """Final resting place of a task after reconciliation settled."""
    task_id: int
    from_status: str
    to_status: str
    success: bool
    message: str
    column: str
    index: int
    error: Optional[ReconciliationFailure] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "success": self.success,
            "message": self.message,
            "column": self.column,
            "index": self.index,
        }


@dataclass
class StatusResponse:
    """Parsed body of the status-update RPC."""
    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "StatusResponse":
        """
        Validate a decoded JSON body.

        Raises:
            ReconciliationFailure if the body is not a {success: bool, message: str} object.
        """
        if not isinstance(payload, dict):
            raise ReconciliationFailure(f"Malformed response body: expected object, got {type(payload).__name__}")
        success = payload.get("success")
        if not isinstance(success, bool):
            raise ReconciliationFailure("Malformed response body: 'success' must be a boolean")
        message = payload.get("message", "")
        if message is None:
            message = ""
        if not isinstance(message, str):
            raise ReconciliationFailure("Malformed response body: 'message' must be a string")
        data = payload.get("data")
        return cls(success=success, message=message, data=data if isinstance(data, dict) else {})
