"""User-facing notifications and the default in-memory notifier."""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 4000


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    duration_ms: int = DEFAULT_DURATION_MS

    def to_dict(self) -> dict:
        return {"title": self.title, "message": self.message, "duration_ms": self.duration_ms}


class NotificationLog:
    """Keeps the most recent notifications and mirrors them to the log."""

    def __init__(self, max_items: int = 50):
        self._items: Deque[Notification] = deque(maxlen=max_items)

    def notify(self, notification: Notification) -> None:
        self._items.append(notification)
        logger.info(f"[notify] {notification.title}: {notification.message}")

    @property
    def latest(self) -> Optional[Notification]:
        return self._items[-1] if self._items else None

    def items(self) -> List[Notification]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()
