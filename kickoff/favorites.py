"""Followed teams and their alert preferences."""
import logging
import threading
from typing import List, Optional

from .config import FAVORITES_KEY
from .models import FavoriteTeam
from .storage import KeyValueStore

logger = logging.getLogger(__name__)


class FavoritesStore:
    """Favorite teams persisted as a JSON list."""

    def __init__(self, store: KeyValueStore, key: str = FAVORITES_KEY):
        self.store = store
        self.key = key
        self._lock = threading.Lock()

    def load(self) -> List[FavoriteTeam]:
        raw = self.store.get_json(self.key, [])
        if not isinstance(raw, list):
            return []

        favorites = []
        for entry in raw:
            # Older stores kept plain team names
            if isinstance(entry, str):
                favorites.append(FavoriteTeam(name=entry))
            elif isinstance(entry, dict) and entry.get("name"):
                favorites.append(FavoriteTeam.from_dict(entry))
            else:
                logger.warning(f"Skipping malformed favorite: {entry!r}")
        return favorites

    def _save(self, favorites: List[FavoriteTeam]) -> None:
        self.store.set_json(self.key, [f.to_dict() for f in favorites])

    def names(self) -> List[str]:
        return [f.name for f in self.load()]

    def get(self, team: str) -> Optional[FavoriteTeam]:
        return next((f for f in self.load() if f.name == team), None)

    def is_favorite(self, team: str) -> bool:
        return self.get(team) is not None

    def toggle(self, team: str) -> bool:
        """Add or remove team. Returns True if it is now a favorite."""
        with self._lock:
            favorites = self.load()
            remaining = [f for f in favorites if f.name != team]
            if len(remaining) < len(favorites):
                self._save(remaining)
                return False
            self._save(favorites + [FavoriteTeam(name=team)])
            return True

    def set_flags(self, team: str, goals: bool = None, start: bool = None, end: bool = None) -> FavoriteTeam:
        """Update which events alert for a favorite team."""
        with self._lock:
            favorites = self.load()
            target = next((f for f in favorites if f.name == team), None)
            if target is None:
                raise KeyError(f"{team} is not a favorite")
            if goals is not None:
                target.notify_goals = goals
            if start is not None:
                target.notify_start = start
            if end is not None:
                target.notify_end = end
            self._save(favorites)
            return target
