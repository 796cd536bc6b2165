"""Data models for KickOff AI."""
import re
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

FORM_RESULTS = ("W", "D", "L")


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce model output (numbers, numeric strings) to float."""
    if value is None or value == "":
        return default
    try:
        return float(str(value).replace(",", "."))
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def new_id() -> str:
    """Short random identifier for locally created records."""
    return uuid.uuid4().hex[:9]


class MatchStatus(str, Enum):
    LIVE = "live"
    FINISHED = "finished"
    UPCOMING = "upcoming"


_LIVE_MARKERS = ("live", "in corso", "intervallo", "half time", "halftime")
_FINISHED_MARKERS = ("finished", "terminata", "finale", "full time", "fulltime", "ended")
_MINUTE_RE = re.compile(r"\d+\s*(\+\s*\d+)?\s*['’]")


def classify_status(status: str) -> MatchStatus:
    """Classify a free-text match status by substring matching."""
    text = (status or "").strip().lower()
    if not text:
        return MatchStatus.UPCOMING
    words = set(re.split(r"[^a-z]+", text))
    if any(marker in text for marker in _FINISHED_MARKERS) or "ft" in words:
        return MatchStatus.FINISHED
    if any(marker in text for marker in _LIVE_MARKERS) or "ht" in words or _MINUTE_RE.search(text):
        return MatchStatus.LIVE
    return MatchStatus.UPCOMING


@dataclass
class Odds:
    """1X2 odds plus optional secondary markets."""
    home: float = 0.0
    draw: float = 0.0
    away: float = 0.0
    over25: Optional[float] = None
    under25: Optional[float] = None
    gg: Optional[float] = None
    ng: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "Odds":
        if not isinstance(raw, dict):
            return cls()
        return cls(
            home=_to_float(raw.get("home")),
            draw=_to_float(raw.get("draw")),
            away=_to_float(raw.get("away")),
            over25=_to_float(raw.get("over25"), None),
            under25=_to_float(raw.get("under25"), None),
            gg=_to_float(raw.get("gg"), None),
            ng=_to_float(raw.get("ng"), None),
        )

    def to_dict(self) -> Dict[str, float]:
        out = {"home": self.home, "draw": self.draw, "away": self.away}
        for key in ("over25", "under25", "gg", "ng"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass
class Match:
    """Represents a football match as reported by the model."""
    id: str
    home_team: str
    away_team: str
    score: str = ""
    status: str = ""
    league: str = ""
    odds: Odds = field(default_factory=Odds)
    time: Optional[str] = None
    date: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.home_team} vs {self.away_team}"

    @property
    def status_kind(self) -> MatchStatus:
        return classify_status(self.status)

    @property
    def is_live(self) -> bool:
        return self.status_kind is MatchStatus.LIVE

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Match":
        return cls(
            id=_to_str(raw.get("id")) or new_id(),
            home_team=_to_str(raw.get("homeTeam")),
            away_team=_to_str(raw.get("awayTeam")),
            score=_to_str(raw.get("score")),
            status=_to_str(raw.get("status")),
            league=_to_str(raw.get("league")),
            odds=Odds.from_dict(raw.get("odds")),
            time=raw.get("time"),
            date=raw.get("date"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "score": self.score,
            "status": self.status,
            "league": self.league,
            "odds": self.odds.to_dict(),
        }
        if self.time is not None:
            out["time"] = self.time
        if self.date is not None:
            out["date"] = self.date
        return out


@dataclass
class Standing:
    """A row of a league table."""
    rank: int
    team: str
    played: int = 0
    points: int = 0
    goals: str = ""
    form_sequence: List[str] = field(default_factory=list)
    form: Optional[str] = None
    next_match: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Standing":
        sequence = raw.get("formSequence") or []
        if isinstance(sequence, str):
            sequence = list(sequence)
        elif not isinstance(sequence, (list, tuple)):
            sequence = []
        return cls(
            rank=_to_int(raw.get("rank")),
            team=_to_str(raw.get("team")),
            played=_to_int(raw.get("played")),
            points=_to_int(raw.get("points")),
            goals=_to_str(raw.get("goals")),
            form_sequence=[str(r).upper() for r in sequence if str(r).upper() in FORM_RESULTS],
            form=raw.get("form"),
            next_match=raw.get("nextMatch"),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "rank": self.rank,
            "team": self.team,
            "played": self.played,
            "points": self.points,
            "goals": self.goals,
            "formSequence": list(self.form_sequence),
        }
        if self.form is not None:
            out["form"] = self.form
        if self.next_match is not None:
            out["nextMatch"] = self.next_match
        return out


@dataclass
class GroundingSource:
    """A web page the model cited while searching."""
    title: str
    uri: str


@dataclass
class SportsData:
    """Matches, standings and sources produced by one successful fetch."""
    matches: List[Match] = field(default_factory=list)
    standings: Dict[str, List[Standing]] = field(default_factory=dict)
    last_updated: str = ""
    sources: List[GroundingSource] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SportsData":
        matches = raw.get("matches") or []
        standings = raw.get("standings") or {}
        sources = raw.get("sources") or []
        return cls(
            matches=[Match.from_dict(m) for m in matches if isinstance(m, dict)],
            standings={
                str(league): [Standing.from_dict(s) for s in rows if isinstance(s, dict)]
                for league, rows in standings.items()
                if isinstance(rows, list)
            } if isinstance(standings, dict) else {},
            last_updated=_to_str(raw.get("lastUpdated")),
            sources=[
                GroundingSource(title=_to_str(s.get("title")), uri=_to_str(s.get("uri")))
                for s in sources if isinstance(s, dict)
            ],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "standings": {league: [s.to_dict() for s in rows] for league, rows in self.standings.items()},
            "lastUpdated": self.last_updated,
            "sources": [{"title": s.title, "uri": s.uri} for s in self.sources],
        }


@dataclass
class HistoricalSnapshot:
    """A timestamped copy of a successful fetch."""
    id: str
    timestamp: str
    data: SportsData

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HistoricalSnapshot":
        return cls(
            id=_to_str(raw["id"]),
            timestamp=_to_str(raw.get("timestamp")),
            data=SportsData.from_dict(raw["data"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "timestamp": self.timestamp, "data": self.data.to_dict()}


@dataclass
class AIPrediction:
    """The model's pick for a single match."""
    prediction: str
    confidence: str
    analysis: str
    thinking: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AIPrediction":
        return cls(
            prediction=_to_str(raw.get("prediction"), "N/D"),
            confidence=_to_str(raw.get("confidence"), "0%"),
            analysis=_to_str(raw.get("analysis")),
            thinking=raw.get("thinking"),
        )


@dataclass
class Bet:
    """A simulated bet placed with the virtual wallet."""
    id: str
    match_id: str
    match_name: str
    selection: str
    odds: float
    amount: float
    potential_win: float
    timestamp: int

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Bet":
        return cls(
            id=_to_str(raw["id"]),
            match_id=_to_str(raw.get("matchId")),
            match_name=_to_str(raw.get("matchName")),
            selection=_to_str(raw.get("selection")),
            odds=_to_float(raw.get("odds")),
            amount=_to_float(raw.get("amount")),
            potential_win=_to_float(raw.get("potentialWin")),
            timestamp=_to_int(raw.get("timestamp")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "matchId": self.match_id,
            "matchName": self.match_name,
            "selection": self.selection,
            "odds": self.odds,
            "amount": self.amount,
            "potentialWin": self.potential_win,
            "timestamp": self.timestamp,
        }


@dataclass
class FavoriteTeam:
    """A followed team and which match events it should alert on."""
    name: str
    notify_goals: bool = True
    notify_start: bool = True
    notify_end: bool = True

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FavoriteTeam":
        return cls(
            name=_to_str(raw["name"]),
            notify_goals=bool(raw.get("notifyGoals", True)),
            notify_start=bool(raw.get("notifyStart", True)),
            notify_end=bool(raw.get("notifyEnd", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "notifyGoals": self.notify_goals,
            "notifyStart": self.notify_start,
            "notifyEnd": self.notify_end,
        }


@dataclass
class AppNotification:
    """A transient message shown to the user."""
    id: str
    title: str
    message: str
    type: str  # 'goal', 'start', 'end', 'info'
    timestamp: float
