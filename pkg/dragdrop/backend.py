"""
Status-update RPC client.

    POST {base_url}{endpoint}   {"task_id": 7, "status": "done"}
    → {"success": true, "message": "Task status updated successfully"}

Anything other than a well-formed success body is a ReconciliationFailure:
transport errors, HTTP error statuses, undecodable JSON, missing or
non-boolean "success", and {"success": false}.
"""
import asyncio
import logging

import requests

from .errors import ReconciliationFailure
from .schema import StatusResponse

logger = logging.getLogger(__name__)

DEFAULT_STATUS_ENDPOINT = "/api/tasks/update_status"


class StatusBackend:
    """Something that can confirm a task's new status."""

    async def update_status(self, task_id: int, status: str) -> StatusResponse:
        """Return the confirmed response, or raise ReconciliationFailure."""
        raise NotImplementedError


class HttpStatusBackend(StatusBackend):
    """HTTP client for the status-update endpoint."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        endpoint: str = DEFAULT_STATUS_ENDPOINT,
        timeout: float = 5,
    ):
        self.base_url = base_url.rstrip("/")
        self.endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    async def update_status(self, task_id: int, status: str) -> StatusResponse:
        # requests blocks; keep the event loop free for gesture handling
        return await asyncio.to_thread(self.post_status, task_id, status)

    def post_status(self, task_id: int, status: str) -> StatusResponse:
        """Blocking request + validation."""
        try:
            r = requests.post(
                self.url,
                json={"task_id": int(task_id), "status": status},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Status update for task {task_id} failed: {e}")
            raise ReconciliationFailure(f"Network error: {e}")

        if not r.ok:
            message = self._error_message(r)
            raise ReconciliationFailure(
                f"HTTP {r.status_code}: {message}" if message else f"HTTP {r.status_code}",
                status_code=r.status_code,
            )

        try:
            payload = r.json()
        except ValueError:
            raise ReconciliationFailure("Malformed response body: not JSON", status_code=r.status_code)

        response = StatusResponse.from_payload(payload)
        if not response.success:
            raise ReconciliationFailure(response.message or "Server rejected status update", status_code=r.status_code)
        return response

    def health(self) -> bool:
        """Check if the board API is reachable."""
        try:
            r = requests.get(f"{self.base_url}/health", timeout=2)
            return r.ok
        except requests.RequestException:
            return False

    @staticmethod
    def _error_message(r) -> str:
        try:
            body = r.json()
        except ValueError:
            return ""
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or "")
        return ""
