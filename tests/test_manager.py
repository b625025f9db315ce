"""
End-to-end drag & drop through the manager: input events on a headless
surface → drag session → drop placement → reconciliation.
"""
import asyncio

import pytest

from pkg.dragdrop.config import BoardConfig
from pkg.dragdrop.backend import HttpStatusBackend
from pkg.dragdrop.gestures import InputEvent
from pkg.dragdrop.manager import FAILED_BUSY_MESSAGE, DragDropManager
from pkg.dragdrop.reconcile import FAILURE_MESSAGE
from pkg.dragdrop.schema import NotifyKind, Point
from pkg.dragdrop.session import SessionState

from conftest import LAYOUT


DONE_X = 750        # Horizontal center of the "done" column
OUTSIDE_X = 2000    # Right of every column


@pytest.fixture
def manager(board, surface, backend, notifier):
    m = DragDropManager(board, surface, backend, notifier=notifier)
    m.initialize()
    return m


def press(surface, task_id, column, index, kind="pointer"):
    pos = surface.card_center(column, index)
    event_type = "pointerdown" if kind == "pointer" else "touchstart"
    surface.emit(InputEvent(event_type, pos.x, pos.y, task_id=task_id))
    return pos


def move(surface, x, y, kind="pointer"):
    surface.emit(InputEvent("pointermove" if kind == "pointer" else "touchmove", x, y))


def release(surface, x, y, kind="pointer"):
    surface.emit(InputEvent("pointerup" if kind == "pointer" else "touchend", x, y))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Scenarios
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestScenarios:

    def test_move_to_other_column_commits(self, manager, board, surface, backend, notifier):
        """Task 7 (todo@2) → done between cards centered at 100 and 200."""
        assert [slot.vertical_center for slot in surface.card_slots("done")] == [100, 200, 300]

        async def run():
            press(surface, 7, "todo", 2)
            move(surface, DONE_X, 150)
            assert surface.indicator == ("done", 1)
            release(surface, DONE_X, 150)
            # Optimistic: moved before the backend answered
            assert board.locate(7) == ("done", 1)
            assert 7 in surface.pending
            return await manager.drain()

        results = asyncio.run(run())
        assert [r.success for r in results] == [True]
        assert board.column("done") == [10, 7, 11, 12]
        assert board.column("todo") == [1, 2, 4]
        assert backend.calls == [(7, "done")]
        assert surface.pending == set()
        assert surface.indicator is None
        assert notifier.messages == [("Task moved to done", NotifyKind.SUCCESS)]
        assert manager.session.state == SessionState.IDLE

    def test_failed_move_rolls_back_to_origin(self, manager, board, surface, backend, notifier):
        backend.responses[7] = {"success": False, "message": "Failed to update task"}

        async def run():
            press(surface, 7, "todo", 2)
            move(surface, DONE_X, 150)
            release(surface, DONE_X, 150)
            return await manager.drain()

        results = asyncio.run(run())
        assert not results[0].success
        assert board.locate(7) == ("todo", 2)
        assert board.column("done") == [10, 11, 12]
        assert surface.order == LAYOUT
        assert notifier.messages == [(FAILURE_MESSAGE, NotifyKind.ERROR)]

    def test_drop_back_in_place_issues_no_request(self, manager, board, surface, backend):
        async def run():
            start = press(surface, 9, "in_progress", 1)
            move(surface, start.x + 10, start.y + 10)
            release(surface, start.x + 10, start.y + 10)
            return await manager.drain()

        assert asyncio.run(run()) == []
        assert backend.calls == []
        assert board.snapshot() == LAYOUT
        assert not manager.is_dragging()

    def test_release_outside_columns_cancels(self, manager, board, surface, backend, notifier):
        async def run():
            press(surface, 7, "todo", 2)
            move(surface, DONE_X, 150)
            move(surface, OUTSIDE_X, 150)
            assert surface.indicator is None
            release(surface, OUTSIDE_X, 150)
            return await manager.drain()

        assert asyncio.run(run()) == []
        assert backend.calls == []
        assert board.snapshot() == LAYOUT
        assert surface.dragging is None
        assert notifier.messages == []
        assert manager.session.state == SessionState.IDLE


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Drag lifecycle
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestDragLifecycle:

    def test_same_column_reorder_is_local_only(self, manager, board, surface, backend):
        async def run():
            press(surface, 1, "todo", 0)
            move(surface, 150, 350)   # between 7 (300) and 4 (400)
            release(surface, 150, 350)
            return await manager.drain()

        assert asyncio.run(run()) == []
        assert board.column("todo") == [2, 7, 1, 4]
        assert surface.order["todo"] == [2, 7, 1, 4]
        assert backend.calls == []
        assert manager.session.state == SessionState.IDLE

    def test_dragging_feedback(self, manager, surface):
        press(surface, 7, "todo", 2)
        assert manager.is_dragging()
        assert manager.dragged_task().task_id == 7
        assert surface.dragging == 7
        assert surface.indicator == ("todo", 2)
        surface.emit(InputEvent("keydown", key="Escape"))
        assert not manager.is_dragging()
        assert manager.dragged_task() is None
        assert surface.dragging is None
        assert surface.indicator is None

    def test_blur_cancels_without_network(self, manager, board, surface, backend):
        press(surface, 7, "todo", 2)
        move(surface, DONE_X, 150)
        surface.emit(InputEvent("blur"))
        release(surface, DONE_X, 150)
        assert backend.calls == []
        assert board.snapshot() == LAYOUT

    def test_touch_drag_commits(self, manager, board, surface, backend):
        async def run():
            start = press(surface, 7, "todo", 2, kind="touch")
            move(surface, start.x + 4, start.y + 4, kind="touch")
            assert not manager.is_dragging()
            move(surface, DONE_X, 150, kind="touch")
            assert manager.is_dragging()
            release(surface, DONE_X, 150, kind="touch")
            return await manager.drain()

        results = asyncio.run(run())
        assert results[0].success
        assert board.locate(7) == ("done", 1)

    def test_touch_tap_is_not_a_drag(self, manager, board, surface, backend):
        start = press(surface, 7, "todo", 2, kind="touch")
        release(surface, start.x + 2, start.y, kind="touch")
        assert backend.calls == []
        assert surface.dragging is None

    def test_at_most_one_active_drag(self, manager, surface):
        press(surface, 7, "todo", 2)
        # A second device and a direct call both fail to start another drag
        start = press(surface, 9, "in_progress", 1, kind="touch")
        move(surface, start.x, start.y + 50, kind="touch")
        assert manager.on_gesture_start(10, Point(DONE_X, 100)) is False
        assert manager.dragged_task().task_id == 7
        assert manager.session.state == SessionState.ACTIVE

    def test_pending_card_cannot_be_dragged(self, manager, board, surface, backend):
        async def run():
            gate = backend.hold(7)
            press(surface, 7, "todo", 2)
            move(surface, DONE_X, 150)
            release(surface, DONE_X, 150)
            await asyncio.sleep(0)

            press(surface, 7, "done", 1)
            assert not manager.is_dragging()

            # Other cards stay draggable while 7 is in flight
            press(surface, 10, "done", 0)
            assert manager.is_dragging()
            surface.emit(InputEvent("keydown", key="Escape"))

            gate.set()
            return await manager.drain()

        results = asyncio.run(run())
        assert [r.task_id for r in results] == [7]
        assert backend.calls == [(7, "done")]

    def test_reconcile_rejection_is_reported(self, manager, board, surface, backend, notifier):
        async def run():
            gate = backend.hold(7)
            manager.engine.begin(7, "todo", "in_progress", 0)
            # Force a drag of the in-flight task past the pending check
            manager.session.start(7, "in_progress", 0)
            manager.session.update_hover("done", 0)
            manager.on_gesture_end(Point(DONE_X, 10))
            gate.set()

        asyncio.run(run())
        assert (FAILED_BUSY_MESSAGE, NotifyKind.ERROR) in notifier.messages
        assert manager.session.state == SessionState.IDLE
        assert board.locate(7) == ("in_progress", 0)

    def test_drop_classified_against_board_after_other_task_rolls_back(self, manager, board, surface, backend):
        backend.responses[7] = {"success": False, "message": "no"}

        async def run():
            gate = backend.hold(7)
            press(surface, 7, "todo", 2)
            move(surface, DONE_X, 150)
            release(surface, DONE_X, 150)
            assert board.column("todo") == [1, 2, 4]

            # Drag 4 from todo@2, then 7 rolls back in front of it
            press(surface, 4, "todo", 2)
            gate.set()
            await manager.drain()
            assert board.column("todo") == [1, 2, 7, 4]
            assert manager.is_dragging()

            # Between 2 (200) and 7 (300): index 2, which differs from 4's current index 3
            move(surface, 150, 250)
            release(surface, 150, 250)

        asyncio.run(run())
        assert board.column("todo") == [1, 2, 4, 7]
        assert backend.calls == [(7, "done")]
        assert manager.session.state == SessionState.IDLE

    def test_cross_column_drop_requires_running_loop(self, manager, board, surface, backend):
        press(surface, 7, "todo", 2)
        move(surface, DONE_X, 150)
        with pytest.raises(RuntimeError):
            manager.on_gesture_end(Point(DONE_X, 150))
        assert board.snapshot() == LAYOUT
        assert backend.calls == []
        assert manager.session.state == SessionState.IDLE
        assert manager.engine.in_flight() == frozenset()

    def test_concurrent_moves_of_different_tasks(self, manager, board, surface, backend):
        backend.responses[1] = {"success": False, "message": "no"}

        async def run():
            gate1 = backend.hold(1)
            press(surface, 1, "todo", 0)
            move(surface, DONE_X, 50)
            release(surface, DONE_X, 50)
            await asyncio.sleep(0)

            press(surface, 5, "in_progress", 0)
            move(surface, DONE_X, 950)
            release(surface, DONE_X, 950)
            await asyncio.sleep(0)
            assert manager.engine.in_flight() == frozenset({1})

            gate1.set()
            await manager.drain()

        asyncio.run(run())
        assert sorted(backend.calls) == [(1, "done"), (5, "done")]
        assert board.locate(1) == ("todo", 0)
        assert board.column("done")[-1] == 5


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Setup
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestSetup:

    def test_initialize_is_idempotent(self, manager, surface):
        count = surface.listener_count()
        manager.initialize()
        assert surface.listener_count() == count

    def test_shutdown_detaches(self, manager, surface):
        press(surface, 7, "todo", 2)
        manager.shutdown()
        assert surface.listener_count() == 0
        assert not manager.is_dragging()

    def test_set_enabled(self, manager, surface):
        manager.set_enabled(False)
        assert surface.draggable is False
        press(surface, 7, "todo", 2)
        assert not manager.is_dragging()
        manager.set_enabled(True)
        press(surface, 7, "todo", 2)
        assert manager.is_dragging()

    def test_refresh_renders_board(self, manager, board, surface):
        board.move(1, "done")
        manager.refresh()
        assert surface.order["done"] == [10, 11, 12, 1]

    def test_from_config(self, tmp_path, board, surface):
        cfg = BoardConfig(
            api_base_url="http://board.local:8080/",
            touch_threshold_px=25,
            journal_path=str(tmp_path / "moves.jsonl"),
        )
        manager = DragDropManager.from_config(cfg, board, surface)
        backend = manager.engine.backend
        assert isinstance(backend, HttpStatusBackend)
        assert backend.url == "http://board.local:8080/api/tasks/update_status"
        assert manager.gestures.touch.threshold == 25
        assert manager.engine.journal is not None
