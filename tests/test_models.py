"""Tests for model coercion and status classification."""
from __future__ import annotations

import pytest

from kickoff.models import (
    HistoricalSnapshot,
    Match,
    MatchStatus,
    SportsData,
    Standing,
    classify_status,
)
from kickoff.parsing import build_sports_data, parse_ai_response

from conftest import make_data


class TestClassifyStatus:
    @pytest.mark.parametrize("status", ["Live 60'", "LIVE", "In corso", "45+2'", "HT", "Intervallo"])
    def test_live(self, status: str) -> None:
        assert classify_status(status) is MatchStatus.LIVE

    @pytest.mark.parametrize("status", ["FT", "Finished", "Terminata", "Full time"])
    def test_finished(self, status: str) -> None:
        assert classify_status(status) is MatchStatus.FINISHED

    @pytest.mark.parametrize("status", ["", "20:45", "Scheduled", "Domani"])
    def test_upcoming(self, status: str) -> None:
        assert classify_status(status) is MatchStatus.UPCOMING


class TestLenientModels:
    def test_match_coerces_numbers(self) -> None:
        match = Match.from_dict({
            "id": 7,
            "homeTeam": "Roma",
            "awayTeam": "Lazio",
            "odds": {"home": "2,10", "draw": None, "away": "n/a", "gg": "1.7"},
        })
        assert match.id == "7"
        assert match.odds.home == 2.1
        assert match.odds.draw == 0.0
        assert match.odds.away == 0.0
        assert match.odds.gg == 1.7
        assert match.odds.ng is None

    def test_match_without_id_gets_one(self) -> None:
        assert Match.from_dict({"homeTeam": "A", "awayTeam": "B"}).id

    def test_standing_filters_form(self) -> None:
        standing = Standing.from_dict({"rank": "3", "team": "Napoli", "formSequence": ["w", "X", "L", "D"]})
        assert standing.rank == 3
        assert standing.form_sequence == ["W", "L", "D"]

    def test_standing_form_as_string(self) -> None:
        assert Standing.from_dict({"team": "Juve", "formSequence": "WWD"}).form_sequence == ["W", "W", "D"]

    @pytest.mark.parametrize("form", [5, {"last": "W"}, True, 2.5])
    def test_standing_form_of_wrong_type(self, form) -> None:
        assert Standing.from_dict({"team": "Juve", "formSequence": form}).form_sequence == []

    def test_standing_non_finite_numbers(self) -> None:
        standing = Standing.from_dict({"team": "Juve", "rank": float("inf"), "played": "Infinity", "points": float("nan")})
        assert (standing.rank, standing.played, standing.points) == (0, 0, 0)

    def test_payload_with_odd_standings_still_parses(self) -> None:
        payload = parse_ai_response(
            '{"matches":[{"id":"1","homeTeam":"A","awayTeam":"B"}],'
            '"standings":{"Serie A":[{"rank":Infinity,"team":"A","formSequence":5}]}}'
        )
        data = build_sports_data(payload)
        assert len(data.matches) == 1
        assert data.standings["Serie A"][0].form_sequence == []
        assert data.standings["Serie A"][0].rank == 0

    def test_sports_data_skips_junk(self) -> None:
        data = SportsData.from_dict({
            "matches": [{"homeTeam": "A", "awayTeam": "B"}, "junk"],
            "standings": {"Serie A": [{"team": "A"}, 3], "Broken": "x"},
        })
        assert len(data.matches) == 1
        assert list(data.standings) == ["Serie A"]
        assert len(data.standings["Serie A"]) == 1

    def test_snapshot_round_trip_keeps_wire_names(self) -> None:
        snapshot = HistoricalSnapshot(id="abc", timestamp="01/03/2026, 20:00:00", data=make_data())
        raw = snapshot.to_dict()
        assert raw["data"]["matches"][0]["homeTeam"] == "Inter"
        assert raw["data"]["standings"]["Serie A"][0]["formSequence"] == ["W", "W", "D"]
        assert HistoricalSnapshot.from_dict(raw) == snapshot
