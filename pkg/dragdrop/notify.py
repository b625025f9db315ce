"""
Notification sinks: notify(message, kind) for user-facing move feedback.
"""
import logging
from typing import List, Tuple

from .schema import NotifyKind

logger = logging.getLogger(__name__)


class Notifier:
    """Base sink. Subclasses render the message somewhere the user sees it."""

    def notify(self, message: str, kind: NotifyKind = NotifyKind.INFO) -> None:
        raise NotImplementedError


class LogNotifier(Notifier):
    """Sends notifications to the log (headless use)."""

    def notify(self, message: str, kind: NotifyKind = NotifyKind.INFO) -> None:
        if kind == NotifyKind.ERROR:
            logger.error(message)
        else:
            logger.info(f"[{kind.value}] {message}")


class RecordingNotifier(Notifier):
    """Keeps every notification in order; used by headless surfaces and tests."""

    def __init__(self):
        self.messages: List[Tuple[str, NotifyKind]] = []

    def notify(self, message: str, kind: NotifyKind = NotifyKind.INFO) -> None:
        self.messages.append((message, kind))

    def kinds(self) -> List[NotifyKind]:
        return [kind for _, kind in self.messages]
