"""Shared fixtures: temporary store, stub backends, sample payloads."""
from __future__ import annotations

import json
from typing import Any, Callable

import pytest

from kickoff.history import HistoryStore
from kickoff.models import Match, Odds, SportsData, Standing
from kickoff.orchestrator import DataRefreshOrchestrator
from kickoff.storage import KeyValueStore

SCENARIO_JSON = (
    '{"matches":[{"id":"1","homeTeam":"Inter","awayTeam":"Milan","score":"1-0",'
    '"status":"Live 60\'","league":"Serie A","odds":{"home":1.8,"draw":3.2,"away":4.5}}],'
    '"standings":{}}'
)


def make_data(tag: str = "a", status: str = "Live 10'", score: str = "0-0", home: str = "Inter", away: str = "Milan") -> SportsData:
    return SportsData(
        matches=[
            Match(
                id=f"m-{tag}",
                home_team=home,
                away_team=away,
                score=score,
                status=status,
                league="Serie A",
                odds=Odds(home=1.8, draw=3.2, away=4.5),
            )
        ],
        standings={"Serie A": [Standing(rank=1, team=home, played=10, points=25, goals="20-5", form_sequence=["W", "W", "D"])]},
        last_updated="12:00",
    )


class StubBackend:
    """Stands in for GeminiClient; ``handler`` decides each call's outcome."""

    def __init__(self, handler: Callable[..., Any]):
        self.handler = handler
        self.calls: list[dict] = []

    def fetch_soccer_data(self, use_thinking=False, use_search=True, location=None, timeout=90):
        call = {"use_thinking": use_thinking, "use_search": use_search, "location": location, "timeout": timeout}
        self.calls.append(call)
        return self.handler(**call)


class FakeKeySelector:
    def __init__(self, selected: bool = True, select_result: bool = True):
        self.selected = selected
        self.select_result = select_result
        self.checks = 0
        self.opened = 0

    def has_selected_api_key(self) -> bool:
        self.checks += 1
        return self.selected

    def open_select_key(self) -> None:
        self.opened += 1
        self.selected = self.select_result


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


def gemini_body(text: str, chunks: list | None = None) -> dict:
    candidate: dict = {"content": {"parts": [{"text": text}]}}
    if chunks is not None:
        candidate["groundingMetadata"] = {"groundingChunks": chunks}
    return {"candidates": [candidate]}


@pytest.fixture
def store(tmp_path) -> KeyValueStore:
    return KeyValueStore(tmp_path / "kickoff.db")


@pytest.fixture
def history(store: KeyValueStore) -> HistoryStore:
    return HistoryStore(store)


@pytest.fixture
def make_orchestrator(history: HistoryStore):
    created: list[DataRefreshOrchestrator] = []

    def factory(backend, **kwargs) -> DataRefreshOrchestrator:
        kwargs.setdefault("normal_timeout", 5)
        kwargs.setdefault("degraded_timeout", 5)
        orchestrator = DataRefreshOrchestrator(backend, history, **kwargs)
        created.append(orchestrator)
        return orchestrator

    yield factory
    for orchestrator in created:
        orchestrator.dispose()


@pytest.fixture
def scenario_payload() -> dict:
    return json.loads(SCENARIO_JSON)
