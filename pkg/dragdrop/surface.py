"""
UI surface: what the drag engine needs from whatever renders the board.

The engine asks the surface which column container is under the pointer,
where the cards of a container are, and tells it where to draw the drop
indicator, which cards are pending or being dragged, and the committed
card order. Listener registration mirrors the DOM's add/remove pair.

HeadlessSurface lays columns out side by side with fixed-height cards.
It backs the tests and any non-graphical driver (replaying recorded input).
"""
import logging
from typing import Callable, Dict, List, Optional, Set, Tuple

from .board import BoardState
from .schema import CardSlot, Point

logger = logging.getLogger(__name__)


class BoardSurface:
    """Interface the drag manager drives. Override every method."""

    def add_listener(self, event_type: str, handler: Callable) -> None:
        raise NotImplementedError

    def remove_listener(self, event_type: str, handler: Callable) -> None:
        raise NotImplementedError

    def column_at(self, pos: Point) -> Optional[str]:
        """Key of the drop container under pos, or None outside every container."""
        raise NotImplementedError

    def card_slots(self, column: str) -> List[CardSlot]:
        """Cards of a container, top to bottom, with their vertical centers."""
        raise NotImplementedError

    def show_drop_indicator(self, column: str, index: int) -> None:
        raise NotImplementedError

    def hide_drop_indicator(self) -> None:
        raise NotImplementedError

    def set_dragging(self, task_id: int, dragging: bool) -> None:
        raise NotImplementedError

    def set_pending(self, task_id: int, pending: bool) -> None:
        raise NotImplementedError

    def set_draggable(self, enabled: bool) -> None:
        raise NotImplementedError

    def render(self, board: BoardState) -> None:
        """Show the board's current column order."""
        raise NotImplementedError


class HeadlessSurface(BoardSurface):
    """
    In-memory surface with a simple grid layout.

    Column i spans x in [i * column_width, (i + 1) * column_width) and y in
    [0, column_height). Card n of a column is centered at
    top_offset + n * card_height + card_height / 2.
    """

    def __init__(
        self,
        board: BoardState,
        column_width: float = 300,
        column_height: float = 1000,
        top_offset: float = 50,
        card_height: float = 100,
    ):
        self.column_width = column_width
        self.column_height = column_height
        self.top_offset = top_offset
        self.card_height = card_height

        self.listeners: Dict[str, List[Callable]] = {}
        self.order: Dict[str, List[int]] = {}
        self.indicator: Optional[Tuple[str, int]] = None
        self.dragging: Optional[int] = None
        self.pending: Set[int] = set()
        self.draggable = True
        self.render_count = 0
        self.render(board)

    # ── Listeners ──

    def add_listener(self, event_type: str, handler: Callable) -> None:
        handlers = self.listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_listener(self, event_type: str, handler: Callable) -> None:
        handlers = self.listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: str = None) -> int:
        if event_type:
            return len(self.listeners.get(event_type, []))
        return sum(len(h) for h in self.listeners.values())

    def emit(self, event) -> None:
        """Deliver an InputEvent to every listener registered for its type."""
        for handler in list(self.listeners.get(event.type, [])):
            handler(event)

    # ── Geometry ──

    def column_x(self, column: str) -> float:
        """Horizontal center of a column."""
        index = list(self.order).index(column)
        return index * self.column_width + self.column_width / 2

    def card_center(self, column: str, index: int) -> Point:
        return Point(self.column_x(column), self.top_offset + index * self.card_height + self.card_height / 2)

    def column_at(self, pos: Point) -> Optional[str]:
        if pos.x < 0 or pos.y < 0 or pos.y >= self.column_height:
            return None
        index = int(pos.x // self.column_width)
        keys = list(self.order)
        if index >= len(keys):
            return None
        return keys[index]

    def card_slots(self, column: str) -> List[CardSlot]:
        return [
            CardSlot(task_id, self.top_offset + n * self.card_height + self.card_height / 2)
            for n, task_id in enumerate(self.order.get(column, []))
        ]

    # ── Feedback ──

    def show_drop_indicator(self, column: str, index: int) -> None:
        # Single indicator: showing it somewhere removes it from everywhere else
        self.indicator = (column, index)

    def hide_drop_indicator(self) -> None:
        self.indicator = None

    def set_dragging(self, task_id: int, dragging: bool) -> None:
        if dragging:
            self.dragging = task_id
        elif self.dragging == task_id:
            self.dragging = None

    def set_pending(self, task_id: int, pending: bool) -> None:
        if pending:
            self.pending.add(task_id)
        else:
            self.pending.discard(task_id)

    def set_draggable(self, enabled: bool) -> None:
        self.draggable = enabled

    def render(self, board: BoardState) -> None:
        self.order = board.snapshot()
        self.render_count += 1
