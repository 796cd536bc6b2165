"""Detect goals, kick-offs and final whistles of favorite teams between fetches."""
import re
from typing import Dict, Iterator, List, Optional, Tuple

from .models import FavoriteTeam, Match, MatchStatus, SportsData

MatchEvent = Tuple[str, str, str]  # (type, title, message)


def _match_key(match: Match) -> Tuple[str, str]:
    # Match ids are regenerated by the model on every fetch
    return match.home_team.strip().lower(), match.away_team.strip().lower()


def total_goals(score: str) -> int:
    """Sum of the numbers in a free-text score; blank scores count as 0."""
    return sum(int(n) for n in re.findall(r"\d+", score or "")[:2])


def _favorite_for(match: Match, favorites: Dict[str, FavoriteTeam]) -> List[FavoriteTeam]:
    return [favorites[t] for t in (match.home_team, match.away_team) if t in favorites]


def detect_match_events(
    previous: Optional[SportsData],
    current: SportsData,
    favorites: List[FavoriteTeam]
) -> Iterator[MatchEvent]:
    """
    Compare two fetches and yield events for matches involving favorites.

    Yields:
        ('goal' | 'start' | 'end', title, message) tuples
    """
    if previous is None or not favorites:
        return

    by_name = {f.name: f for f in favorites}
    before = {_match_key(m): m for m in previous.matches}

    for match in current.matches:
        followed = _favorite_for(match, by_name)
        old = before.get(_match_key(match))
        if not followed or old is None:
            continue

        old_kind, new_kind = old.status_kind, match.status_kind

        if old_kind is MatchStatus.UPCOMING and new_kind is MatchStatus.LIVE:
            if any(f.notify_start for f in followed):
                yield "start", "Kick-off", f"{match.name} has started"
        if new_kind is not MatchStatus.UPCOMING and total_goals(match.score) > total_goals(old.score):
            if any(f.notify_goals for f in followed):
                yield "goal", "Goal!", f"{match.name} {match.score}"
        if old_kind is MatchStatus.LIVE and new_kind is MatchStatus.FINISHED:
            if any(f.notify_end for f in followed):
                yield "end", "Full time", f"{match.name} ended {match.score}".rstrip()
