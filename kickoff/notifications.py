"""Short-lived notifications shown next to the data."""
import threading
import time
from typing import Callable, List

from .config import MAX_VISIBLE_NOTIFICATIONS, NOTIFICATION_TTL_SECONDS
from .models import AppNotification, new_id

NOTIFICATION_TYPES = ("goal", "start", "end", "info")


class NotificationCenter:
    """Keeps the newest few notifications and expires them after a fixed time."""

    def __init__(
        self,
        ttl: float = NOTIFICATION_TTL_SECONDS,
        max_visible: int = MAX_VISIBLE_NOTIFICATIONS,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl = ttl
        self.max_visible = max_visible
        self.clock = clock
        self._items: List[AppNotification] = []
        self._lock = threading.Lock()

    def add(self, title: str, message: str, type: str = "info") -> AppNotification:
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {type}")
        notification = AppNotification(
            id=new_id(),
            title=title,
            message=message,
            type=type,
            timestamp=self.clock(),
        )
        with self._lock:
            self._items = ([notification] + self._items)[:self.max_visible]
        return notification

    def active(self) -> List[AppNotification]:
        """Notifications younger than the ttl, newest first."""
        now = self.clock()
        with self._lock:
            self._items = [n for n in self._items if now - n.timestamp < self.ttl]
            return list(self._items)

    def dismiss(self, notification_id: str) -> None:
        with self._lock:
            self._items = [n for n in self._items if n.id != notification_id]

    def clear(self) -> None:
        with self._lock:
            self._items = []
