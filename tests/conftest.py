"""Shared fixtures for drag & drop engine tests."""

import asyncio
import sys
from pathlib import Path

import pytest

# Ensure the project root (pkg/, board_server.py) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from pkg.dragdrop.backend import StatusBackend
from pkg.dragdrop.board import BoardState
from pkg.dragdrop.notify import RecordingNotifier
from pkg.dragdrop.schema import StatusResponse, Task
from pkg.dragdrop.surface import HeadlessSurface


# Column layout used across tests. With the headless surface defaults
# (top_offset=50, card_height=100) the three "done" cards sit at vertical
# centers 100, 200 and 300.
LAYOUT = {
    "todo": [1, 2, 7, 4],
    "in_progress": [5, 9, 6],
    "done": [10, 11, 12],
}


def make_board(layout=None) -> BoardState:
    layout = layout or LAYOUT
    tasks = [
        Task(id=task_id, status=column, position=position, project_id=1, title=f"Task {task_id}")
        for column, ids in layout.items()
        for position, task_id in enumerate(ids)
    ]
    return BoardState.from_tasks(tasks, columns=list(layout))


class FakeBackend(StatusBackend):
    """
    Scripted status backend.

    responses: task_id → JSON payload dict or an exception instance to raise.
    hold(task_id) returns an asyncio.Event the call for that task waits on.
    """

    def __init__(self):
        self.calls = []
        self.responses = {}
        self.gates = {}
        self.open = set()
        self.max_concurrent = 0
        self.overlapped = []

    def hold(self, task_id) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[task_id] = gate
        return gate

    async def update_status(self, task_id, status):
        self.calls.append((task_id, status))
        if task_id in self.open:
            self.overlapped.append(task_id)
        self.open.add(task_id)
        self.max_concurrent = max(self.max_concurrent, len(self.open))
        try:
            gate = self.gates.get(task_id)
            if gate is not None:
                await gate.wait()
            response = self.responses.get(task_id, {"success": True, "message": "Task status updated successfully"})
            if isinstance(response, Exception):
                raise response
            return StatusResponse.from_payload(response)
        finally:
            self.open.discard(task_id)


@pytest.fixture
def board():
    return make_board()


@pytest.fixture
def surface(board):
    return HeadlessSurface(board)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def notifier():
    return RecordingNotifier()
