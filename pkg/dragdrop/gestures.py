"""
Gesture adapter: pointer and touch input → one start/move/end/cancel vocabulary.

Two thin translators turn native input events into gesture calls; the
adapter forwards them to a single gesture sink (the drag manager) and
makes sure only one input device drives a gesture at a time.

Touch input only becomes a drag after the finger has moved at least
touch_threshold pixels along either axis. A touch released before that
is a tap and produces no gesture at all.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .schema import Point

logger = logging.getLogger(__name__)

DEFAULT_TOUCH_THRESHOLD = 10.0

POINTER_EVENTS = ("pointerdown", "pointermove", "pointerup", "pointercancel")
TOUCH_EVENTS = ("touchstart", "touchmove", "touchend", "touchcancel")
WINDOW_EVENTS = ("keydown", "blur")


@dataclass(frozen=True)
class InputEvent:
    """A native input event as delivered by the UI surface."""
    type: str                       # One of POINTER_EVENTS, TOUCH_EVENTS, WINDOW_EVENTS
    x: float = 0.0
    y: float = 0.0
    task_id: Optional[int] = None   # Card under the event, for down/start events
    pointer_id: int = 0             # Touch identifier / pointer id
    button: int = 0                 # 0 = primary
    key: str = ""                   # For keydown

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


class GestureSink:
    """
    Receiver of normalized gestures.

    on_gesture_start returns False to refuse the gesture (e.g. the card is
    busy); the adapter then ignores the rest of that input sequence.
    """

    def on_gesture_start(self, task_id: int, pos: Point) -> bool:
        raise NotImplementedError

    def on_gesture_move(self, pos: Point) -> None:
        raise NotImplementedError

    def on_gesture_end(self, pos: Point) -> None:
        raise NotImplementedError

    def on_gesture_cancel(self) -> None:
        raise NotImplementedError


class PointerTranslator:
    """Mouse/pen: a primary-button press on a card starts a gesture immediately."""

    name = "pointer"

    def __init__(self, adapter: "GestureAdapter"):
        self.adapter = adapter
        self._pointer_id: Optional[int] = None

    @property
    def tracking(self) -> bool:
        return self._pointer_id is not None

    def down(self, event: InputEvent) -> None:
        if self.tracking or event.button != 0 or event.task_id is None:
            return
        if self.adapter._start(self, event.task_id, event.point):
            self._pointer_id = event.pointer_id

    def move(self, event: InputEvent) -> None:
        if self._pointer_id == event.pointer_id:
            self.adapter._move(self, event.point)

    def up(self, event: InputEvent) -> None:
        if self._pointer_id == event.pointer_id:
            self._pointer_id = None
            self.adapter._end(self, event.point)

    def cancel(self) -> None:
        if self.tracking:
            self._pointer_id = None
            self.adapter._cancel(self)


class TouchTranslator:
    """Finger: a touch is promoted to a drag once it moves past the threshold."""

    name = "touch"

    def __init__(self, adapter: "GestureAdapter", threshold: float = DEFAULT_TOUCH_THRESHOLD):
        self.adapter = adapter
        self.threshold = threshold
        self._touch_id: Optional[int] = None
        self._task_id: Optional[int] = None
        self._origin: Optional[Point] = None
        self._promoted = False

    @property
    def tracking(self) -> bool:
        return self._touch_id is not None

    def start(self, event: InputEvent) -> None:
        # Secondary fingers are ignored while one is tracked
        if self.tracking or event.task_id is None:
            return
        self._touch_id = event.pointer_id
        self._task_id = event.task_id
        self._origin = event.point
        self._promoted = False

    def move(self, event: InputEvent) -> None:
        if self._touch_id != event.pointer_id:
            return
        if not self._promoted:
            dx = abs(event.x - self._origin.x)
            dy = abs(event.y - self._origin.y)
            if dx < self.threshold and dy < self.threshold:
                return
            if not self.adapter._start(self, self._task_id, self._origin):
                self._reset()
                return
            self._promoted = True
        self.adapter._move(self, event.point)

    def end(self, event: InputEvent) -> None:
        if self._touch_id != event.pointer_id:
            return
        promoted = self._promoted
        self._reset()
        if promoted:
            self.adapter._end(self, event.point)
        else:
            logger.debug("Touch released below drag threshold: tap")

    def cancel(self) -> None:
        promoted = self._promoted
        self._reset()
        if promoted:
            self.adapter._cancel(self)

    def _reset(self) -> None:
        self._touch_id = None
        self._task_id = None
        self._origin = None
        self._promoted = False


class GestureAdapter:
    """
    Routes native input events from a surface to a GestureSink.

    Handlers are bound once, here, and attached to or detached from a
    surface explicitly; attaching the same surface twice is a no-op.
    """

    def __init__(self, sink: GestureSink, touch_threshold: float = DEFAULT_TOUCH_THRESHOLD):
        self.sink = sink
        self.pointer = PointerTranslator(self)
        self.touch = TouchTranslator(self, touch_threshold)
        self.enabled = True
        self._owner = None
        self._attached = []

        self.handlers: Dict[str, Callable[[InputEvent], None]] = {
            "pointerdown": self.pointer.down,
            "pointermove": self.pointer.move,
            "pointerup": self.pointer.up,
            "pointercancel": self._on_pointer_cancel,
            "touchstart": self.touch.start,
            "touchmove": self.touch.move,
            "touchend": self.touch.end,
            "touchcancel": self._on_touch_cancel,
            "keydown": self._on_keydown,
            "blur": self._on_blur,
        }

    # ──────────────────────────────────────────
    # Listener management
    # ──────────────────────────────────────────

    def attach(self, surface) -> None:
        """Register the bound handlers on a surface (once)."""
        if any(s is surface for s in self._attached):
            return
        for event_type, handler in self.handlers.items():
            surface.add_listener(event_type, handler)
        self._attached.append(surface)

    def detach(self, surface) -> None:
        """Remove the bound handlers from a surface and drop any gesture in progress."""
        if not any(s is surface for s in self._attached):
            return
        for event_type, handler in self.handlers.items():
            surface.remove_listener(event_type, handler)
        self._attached = [s for s in self._attached if s is not surface]
        self.cancel()

    def dispatch(self, event: InputEvent) -> None:
        """Feed one native event directly (surfaces normally call the handlers)."""
        handler = self.handlers.get(event.type)
        if handler is None:
            logger.debug(f"Ignoring unsupported input event: {event.type}")
            return
        handler(event)

    def set_enabled(self, enabled: bool) -> None:
        """Disabling cancels any gesture in progress and ignores new ones."""
        self.enabled = enabled
        if not enabled:
            self.cancel()

    @property
    def active_device(self) -> Optional[str]:
        return self._owner.name if self._owner else None

    def cancel(self) -> None:
        """Cancel whatever gesture is in progress, from either device."""
        self.pointer.cancel()
        self.touch.cancel()

    # ──────────────────────────────────────────
    # Window events
    # ──────────────────────────────────────────

    def _on_pointer_cancel(self, event: InputEvent) -> None:
        self.pointer.cancel()

    def _on_touch_cancel(self, event: InputEvent) -> None:
        self.touch.cancel()

    def _on_keydown(self, event: InputEvent) -> None:
        if event.key == "Escape":
            self.cancel()

    def _on_blur(self, event: InputEvent) -> None:
        self.cancel()

    # ──────────────────────────────────────────
    # Translator → sink (one device owns a gesture at a time)
    # ──────────────────────────────────────────

    def _start(self, source, task_id: int, pos: Point) -> bool:
        if not self.enabled or self._owner is not None:
            return False
        if not self.sink.on_gesture_start(task_id, pos):
            return False
        self._owner = source
        return True

    def _move(self, source, pos: Point) -> None:
        if self._owner is source:
            self.sink.on_gesture_move(pos)

    def _end(self, source, pos: Point) -> None:
        if self._owner is source:
            self._owner = None
            self.sink.on_gesture_end(pos)

    def _cancel(self, source) -> None:
        if self._owner is source:
            self._owner = None
            self.sink.on_gesture_cancel()
