"""Tests for favorite-team event detection between fetches."""
from __future__ import annotations

from kickoff.alerts import detect_match_events, total_goals
from kickoff.models import FavoriteTeam

from conftest import make_data


def _events(previous, current, favorites):
    return [event[0] for event in detect_match_events(previous, current, favorites)]


def test_total_goals() -> None:
    assert total_goals("2-1") == 3
    assert total_goals(" 0 : 0 ") == 0
    assert total_goals("") == 0


def test_goal_detected_across_new_ids() -> None:
    before = make_data(tag="a", score="0-0")
    after = make_data(tag="b", score="1-0", status="Live 30'")
    assert _events(before, after, [FavoriteTeam(name="Inter")]) == ["goal"]


def test_kick_off_and_first_goal() -> None:
    before = make_data(status="20:45", score="")
    after = make_data(status="Live 5'", score="1-0")
    assert sorted(_events(before, after, [FavoriteTeam(name="Milan")])) == ["goal", "start"]


def test_full_time() -> None:
    before = make_data(status="Live 90'", score="2-1")
    after = make_data(status="FT", score="2-1")
    events = list(detect_match_events(before, after, [FavoriteTeam(name="Inter")]))
    assert events == [("end", "Full time", "Inter vs Milan ended 2-1")]


def test_respects_flags() -> None:
    before = make_data(status="Live 80'", score="0-0")
    after = make_data(status="FT", score="1-0")
    muted = FavoriteTeam(name="Inter", notify_goals=False, notify_end=False)
    assert _events(before, after, [muted]) == []


def test_ignores_unfollowed_and_new_matches() -> None:
    before = make_data(score="0-0")
    after = make_data(score="1-0")
    assert _events(before, after, [FavoriteTeam(name="Roma")]) == []
    assert _events(None, after, [FavoriteTeam(name="Inter")]) == []
    other = make_data(home="Roma", away="Lazio", score="3-0")
    assert _events(before, other, [FavoriteTeam(name="Roma")]) == []


def test_upcoming_time_is_not_a_score() -> None:
    before = make_data(status="Domani", score="")
    after = make_data(status="Domani", score="20:45")
    assert _events(before, after, [FavoriteTeam(name="Inter")]) == []
