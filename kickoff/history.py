"""Bounded, newest-first history of successful fetches."""
import logging
import threading
from datetime import datetime
from typing import List, Optional

from .config import HISTORY_KEY, HISTORY_LIMIT
from .models import HistoricalSnapshot, SportsData, new_id
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


def format_snapshot_timestamp(now: datetime) -> str:
    return now.strftime("%d/%m/%Y, %H:%M:%S")


class HistoryStore:
    """Snapshot ring buffer persisted under a single store key."""

    def __init__(self, store: KeyValueStore, limit: int = HISTORY_LIMIT, key: str = HISTORY_KEY):
        self.store = store
        self.limit = limit
        self.key = key
        self._lock = threading.Lock()

    def load(self) -> List[HistoricalSnapshot]:
        """Read the history, skipping entries that no longer parse."""
        raw = self.store.get_json(self.key, [])
        if not isinstance(raw, list):
            logger.warning(f"History under {self.key} is not a list, ignoring it")
            return []

        snapshots = []
        for entry in raw:
            try:
                snapshots.append(HistoricalSnapshot.from_dict(entry))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed history entry: {e}")
        return snapshots

    def append(self, data: SportsData, now: datetime = None) -> HistoricalSnapshot:
        """Prepend a snapshot of data, evicting the oldest past the limit."""
        snapshot = HistoricalSnapshot(
            id=new_id(),
            timestamp=format_snapshot_timestamp(now or datetime.now()),
            data=data,
        )
        with self._lock:
            updated = [snapshot] + self.load()
            self.store.set_json(self.key, [s.to_dict() for s in updated[:self.limit]])
        return snapshot

    def latest(self) -> Optional[HistoricalSnapshot]:
        snapshots = self.load()
        return snapshots[0] if snapshots else None

    def get(self, snapshot_id: str) -> Optional[HistoricalSnapshot]:
        return next((s for s in self.load() if s.id == snapshot_id), None)

    def clear(self) -> None:
        with self._lock:
            self.store.remove(self.key)

    def __len__(self) -> int:
        return len(self.load())
