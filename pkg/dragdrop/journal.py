"""
Move journal: one JSON line per settled status reconciliation.
"""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .schema import ReconcileResult

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """ISO-8601 UTC timestamp."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class MoveJournal:
    """
    Appends structured JSON entries to a .jsonl file.
    Every committed move and every rollback is recorded.
    """

    def __init__(self, log_path):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, result: ReconcileResult, issued_at: str = None) -> None:
        """Append one entry. issued_at is when the status update was sent."""
        entry = {
            "ts": utc_now(),
            "issued_at": issued_at,
            "task_id": result.task_id,
            "from_status": result.from_status,
            "to_status": result.to_status,
            "outcome": "committed" if result.success else "rolled_back",
            "column": result.column,
            "index": result.index,
            "message": result.message,
        }
        try:
            with open(self.log_path, "a") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.error(f"Failed to write move journal: {e}")

    def entries(self) -> list:
        """Read back all entries (oldest first)."""
        if not self.log_path.exists():
            return []
        with open(self.log_path) as f:
            return [json.loads(line) for line in f if line.strip()]
