"""Search and league filters over a fetched dataset."""
from typing import Dict, List, Optional, Sequence

from .models import Match, SportsData, Standing

ALL_LEAGUES = "All"
FORM_POINTS = {"W": 3, "D": 1, "L": 0}
DEFAULT_FORM = ("W", "D", "L", "W", "W")


def available_leagues(data: Optional[SportsData]) -> List[str]:
    """Sorted union of leagues seen in matches and standings."""
    if data is None:
        return []
    leagues = {m.league for m in data.matches if m.league}
    leagues.update(data.standings.keys())
    return sorted(leagues)


def filter_matches(
    data: Optional[SportsData],
    search: str = "",
    league: str = ALL_LEAGUES,
    live_only: bool = False
) -> List[Match]:
    if data is None:
        return []
    term = search.lower()
    return [
        m for m in data.matches
        if (term in m.home_team.lower() or term in m.away_team.lower())
        and (league == ALL_LEAGUES or m.league == league)
        and (not live_only or m.is_live)
    ]


def filter_standings(
    data: Optional[SportsData],
    search: str = "",
    league: str = ALL_LEAGUES
) -> Dict[str, List[Standing]]:
    """Standings filtered by team name; leagues left empty are dropped."""
    if data is None:
        return {}
    term = search.lower()
    filtered = {}
    for name, rows in data.standings.items():
        if league != ALL_LEAGUES and name != league:
            continue
        teams = [s for s in rows if term in s.team.lower()]
        if teams:
            filtered[name] = teams
    return filtered


def find_standing(data: Optional[SportsData], team: str) -> Optional[Standing]:
    if data is None:
        return None
    for rows in data.standings.values():
        for standing in rows:
            if standing.team == team:
                return standing
    return None


def form_points(sequence: Sequence[str] = None) -> List[int]:
    """Points per game for a W/D/L form sequence."""
    return [FORM_POINTS.get(result, 0) for result in (sequence or DEFAULT_FORM)]
