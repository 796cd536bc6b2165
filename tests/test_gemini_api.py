"""Tests for the Gemini client: request shape and error mapping."""
from __future__ import annotations

import pytest
import requests

from kickoff.errors import BackendError, ErrorKind
from kickoff.gemini_api import NO_ANALYSIS_TEXT, GeminiClient, classify_http_error

from conftest import SCENARIO_JSON, FakeResponse, gemini_body, make_data
from kickoff.models import HistoricalSnapshot


@pytest.fixture
def captured(monkeypatch):
    """Record requests.post calls and answer with the queued response."""
    calls: list[dict] = []
    responses: list = []

    def fake_post(url, **kwargs):
        calls.append({"url": url, **kwargs})
        response = responses.pop(0) if responses else FakeResponse(200, gemini_body(SCENARIO_JSON))
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr("kickoff.gemini_api.requests.post", fake_post)
    return calls, responses


@pytest.fixture
def client() -> GeminiClient:
    return GeminiClient(api_key="test-key", model="gemini-test", base_url="https://example.test/v1beta")


class TestFetchSoccerData:
    def test_request_with_search(self, client: GeminiClient, captured) -> None:
        calls, _ = captured
        data = client.fetch_soccer_data(use_thinking=True, use_search=True, location=(45.46, 9.19), timeout=90)

        call = calls[0]
        assert call["url"] == "https://example.test/v1beta/models/gemini-test:generateContent"
        assert call["headers"]["x-goog-api-key"] == "test-key"
        assert call["timeout"] == (10, 90)
        body = call["json"]
        assert body["tools"] == [{"google_search": {}}]
        assert body["generationConfig"]["temperature"] == 0
        assert body["generationConfig"]["thinkingConfig"]["thinkingBudget"] == 15000
        assert "Coordinate utente: 45.46, 9.19." in body["contents"][0]["parts"][0]["text"]
        assert data.matches[0].home_team == "Inter"
        assert client.last_status_code == 200

    def test_degraded_request(self, client: GeminiClient, captured) -> None:
        calls, _ = captured
        client.fetch_soccer_data(use_thinking=False, use_search=False, timeout=25)
        body = calls[0]["json"]
        assert "tools" not in body
        assert body["generationConfig"]["thinkingConfig"]["thinkingBudget"] == 0
        assert "Coordinate" not in body["contents"][0]["parts"][0]["text"]

    def test_grounding_sources_collected(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        chunks = [{"web": {"title": "ANSA", "uri": "https://ansa.it"}}, {"web": {"uri": "https://x.it"}}, {"other": {}}]
        responses.append(FakeResponse(200, gemini_body(SCENARIO_JSON, chunks)))
        data = client.fetch_soccer_data(use_search=True)
        assert [(s.title, s.uri) for s in data.sources] == [("ANSA", "https://ansa.it"), ("Detail", "https://x.it")]

    def test_sources_ignored_without_search(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(200, gemini_body(SCENARIO_JSON, [{"web": {"title": "A", "uri": "https://a.it"}}])))
        assert client.fetch_soccer_data(use_search=False).sources == []

    def test_thought_parts_skipped(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        body = {"candidates": [{"content": {"parts": [
            {"text": '{"matches": "thinking about it"}', "thought": True},
            {"text": SCENARIO_JSON},
        ]}}]}
        responses.append(FakeResponse(200, body))
        assert client.fetch_soccer_data().matches[0].away_team == "Milan"

    def test_no_candidates_gives_empty_data(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(200, {"candidates": []}))
        assert client.fetch_soccer_data().matches == []

    def test_missing_key_fails_without_request(self, captured) -> None:
        calls, _ = captured
        with pytest.raises(BackendError) as exc:
            GeminiClient(api_key="").fetch_soccer_data()
        assert exc.value.kind is ErrorKind.INVALID_CREDENTIAL
        assert calls == []


class TestErrorMapping:
    @pytest.mark.parametrize("status, body, kind", [
        (429, {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}}, ErrorKind.QUOTA_EXHAUSTED),
        (400, {"error": {"status": "RESOURCE_EXHAUSTED"}}, ErrorKind.QUOTA_EXHAUSTED),
        (400, {"error": {"status": "INVALID_ARGUMENT", "details": [{"reason": "API_KEY_INVALID"}]}}, ErrorKind.INVALID_CREDENTIAL),
        (403, {"error": {"status": "PERMISSION_DENIED"}}, ErrorKind.INVALID_CREDENTIAL),
        (404, {"error": {"message": "Requested entity was not found."}}, ErrorKind.INVALID_CREDENTIAL),
        (503, {}, ErrorKind.NETWORK),
        (400, {"error": {"status": "INVALID_ARGUMENT"}}, ErrorKind.UNKNOWN),
        (418, "not a dict", ErrorKind.UNKNOWN),
    ])
    def test_classify_http_error(self, status: int, body, kind: ErrorKind) -> None:
        assert classify_http_error(status, body) is kind

    def test_http_error_raised_with_message(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(429, {"error": {"code": 429, "status": "RESOURCE_EXHAUSTED", "message": "Quota exceeded"}}))
        with pytest.raises(BackendError) as exc:
            client.fetch_soccer_data()
        assert exc.value.kind is ErrorKind.QUOTA_EXHAUSTED
        assert exc.value.status_code == 429
        assert str(exc.value) == "Quota exceeded"
        assert exc.value.is_credential_problem

    def test_non_json_error_body(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(502, None))
        with pytest.raises(BackendError) as exc:
            client.fetch_soccer_data()
        assert exc.value.kind is ErrorKind.NETWORK
        assert str(exc.value) == "HTTP 502"

    @pytest.mark.parametrize("raised, kind", [
        (requests.Timeout("read timed out"), ErrorKind.TIMEOUT),
        (requests.ConnectionError("dns"), ErrorKind.NETWORK),
        (requests.TooManyRedirects("loop"), ErrorKind.UNKNOWN),
    ])
    def test_transport_errors(self, client: GeminiClient, captured, raised, kind: ErrorKind) -> None:
        _, responses = captured
        responses.append(raised)
        with pytest.raises(BackendError) as exc:
            client.fetch_soccer_data()
        assert exc.value.kind is kind

    def test_list_body_is_malformed(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(200, [1, 2]))
        with pytest.raises(BackendError) as exc:
            client.fetch_soccer_data()
        assert exc.value.kind is ErrorKind.MALFORMED_PAYLOAD


class TestOtherCalls:
    def test_match_prediction(self, client: GeminiClient, captured) -> None:
        calls, responses = captured
        responses.append(FakeResponse(200, gemini_body('Pronostico: {"prediction":"1","confidence":"64%","analysis":"Inter in forma."}')))
        result = client.get_match_prediction("Inter", "Milan", use_thinking=True)
        assert (result.prediction, result.confidence, result.analysis) == ("1", "64%", "Inter in forma.")
        assert calls[0]["json"]["generationConfig"]["thinkingConfig"]["thinkingBudget"] == 10000
        assert "tools" not in calls[0]["json"]

    def test_match_prediction_defaults(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(200, gemini_body("no idea")))
        result = client.get_match_prediction("A", "B")
        assert (result.prediction, result.confidence) == ("N/D", "0%")

    def test_historical_analysis_uses_five_newest(self, client: GeminiClient, captured) -> None:
        calls, responses = captured
        responses.append(FakeResponse(200, gemini_body("Report")))
        history = [HistoricalSnapshot(id=f"s{i}", timestamp="t", data=make_data(tag=str(i))) for i in range(8)]
        assert client.get_historical_analysis(history, ["Inter"]) == "Report"
        prompt = calls[0]["json"]["contents"][0]["parts"][0]["text"]
        assert "m-4" in prompt and "m-5" not in prompt
        assert "Inter" in prompt
        assert calls[0]["json"]["generationConfig"]["temperature"] == 0.7

    def test_historical_analysis_fallback_text(self, client: GeminiClient, captured) -> None:
        _, responses = captured
        responses.append(FakeResponse(200, {"candidates": []}))
        assert client.get_historical_analysis([], []) == NO_ANALYSIS_TEXT
