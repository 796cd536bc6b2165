"""Client for the Gemini generateContent API."""
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import (
    GEMINI_API_KEY,
    GEMINI_MODEL,
    GEMINI_API_BASE_URL,
    CONNECT_TIMEOUT_SECONDS,
    NORMAL_TIMEOUT_SECONDS,
    SPORTS_DATA_THINKING_BUDGET,
    PREDICTION_THINKING_BUDGET,
    ANALYSIS_THINKING_BUDGET,
    LEAGUES,
)
from .errors import BackendError, ErrorKind
from .models import AIPrediction, GroundingSource, HistoricalSnapshot, SportsData
from .parsing import build_sports_data, parse_ai_response

logger = logging.getLogger(__name__)

SPORTS_SCHEMA = (
    '{"matches": [{"id":"uuid","homeTeam":"...","awayTeam":"...","score":"...","status":"...",'
    '"league":"...","odds":{"home":0,"draw":0,"away":0},"time":"..."}],'
    '"standings": {"Serie A": [{"rank":1,"team":"...","played":0,"points":0,"goals":"0-0","formSequence":["W"]}]}}'
)

NO_ANALYSIS_TEXT = "Not enough data to produce a reliable analysis."


def classify_http_error(status_code: int, body: Any) -> ErrorKind:
    """Map an HTTP status and provider error body to an ErrorKind."""
    error = body.get("error", {}) if isinstance(body, dict) else {}
    if not isinstance(error, dict):
        error = {}
    provider_status = str(error.get("status", ""))
    reasons = {
        str(d.get("reason", ""))
        for d in error.get("details", []) or []
        if isinstance(d, dict)
    }

    if status_code == 429 or provider_status == "RESOURCE_EXHAUSTED":
        return ErrorKind.QUOTA_EXHAUSTED
    if status_code in (401, 403, 404) or "API_KEY_INVALID" in reasons or provider_status in ("UNAUTHENTICATED", "PERMISSION_DENIED"):
        return ErrorKind.INVALID_CREDENTIAL
    if status_code >= 500:
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN


def response_text(body: Dict[str, Any]) -> str:
    """Concatenate the non-thought text parts of the first candidate."""
    candidates = body.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(
        p.get("text", "") for p in parts
        if isinstance(p, dict) and not p.get("thought")
    )


def grounding_sources(body: Dict[str, Any]) -> List[GroundingSource]:
    """Collect web sources the model cited while searching."""
    candidates = body.get("candidates") or []
    if not candidates:
        return []
    chunks = (candidates[0].get("groundingMetadata") or {}).get("groundingChunks") or []
    sources = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if web and web.get("uri"):
            sources.append(GroundingSource(title=web.get("title") or "Detail", uri=web["uri"]))
    return sources


class GeminiClient:
    """Client for the Gemini generateContent endpoint."""

    def __init__(self, api_key: str = GEMINI_API_KEY, model: str = GEMINI_MODEL, base_url: str = GEMINI_API_BASE_URL):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self._last_status_code: Optional[int] = None

    @property
    def last_status_code(self) -> Optional[int]:
        """HTTP status of the most recent request."""
        return self._last_status_code

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def _generate(
        self,
        prompt: str,
        temperature: float,
        thinking_budget: int,
        use_search: bool = False,
        timeout: float = NORMAL_TIMEOUT_SECONDS
    ) -> Dict[str, Any]:
        """Make a generateContent request, mapping failures to BackendError."""
        if not self.api_key:
            raise BackendError(ErrorKind.INVALID_CREDENTIAL, "GEMINI_API_KEY not set. Please set it in your .env file.")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "thinkingConfig": {"thinkingBudget": thinking_budget},
            },
        }
        if use_search:
            payload["tools"] = [{"google_search": {}}]

        logger.debug(f"Making request to {url} (search={use_search}, thinking={thinking_budget}, timeout={timeout}s)")
        try:
            response = requests.post(
                url,
                headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
                json=payload,
                timeout=(CONNECT_TIMEOUT_SECONDS, timeout),
            )
        except requests.Timeout as e:
            raise BackendError(ErrorKind.TIMEOUT, f"No response within {timeout}s") from e
        except requests.ConnectionError as e:
            raise BackendError(ErrorKind.NETWORK, f"Connection error: {e}") from e
        except requests.RequestException as e:
            raise BackendError(ErrorKind.UNKNOWN, str(e)) from e

        self._last_status_code = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            kind = classify_http_error(response.status_code, body)
            message = body.get("error", {}).get("message") if isinstance(body, dict) and isinstance(body.get("error"), dict) else None
            raise BackendError(kind, message or f"HTTP {response.status_code}", status_code=response.status_code)

        if not isinstance(body, dict):
            raise BackendError(ErrorKind.MALFORMED_PAYLOAD, "Response body is not a JSON object", status_code=response.status_code)
        return body

    def fetch_soccer_data(
        self,
        use_thinking: bool = False,
        use_search: bool = True,
        location: Optional[Tuple[float, float]] = None,
        timeout: float = NORMAL_TIMEOUT_SECONDS
    ) -> SportsData:
        """
        Fetch today's live and recent matches plus standings.

        Args:
            use_thinking: Give the model a thinking budget
            use_search: Ground the answer with Google Search
            location: Optional (lat, lng) hint added to the prompt
            timeout: Read timeout in seconds

        Returns:
            SportsData parsed leniently from the model's text
        """
        location_context = f"Coordinate utente: {location[0]}, {location[1]}." if location else ""
        search_context = "Usa Google Search per dati reali." if use_search else ""
        prompt = (
            f"Fornisci JSON match calcio LIVE/RECENTI per {', '.join(LEAGUES)} di OGGI. "
            f"{search_context} {location_context}\n"
            "Restituisci esclusivamente un oggetto JSON valido in Italiano.\n"
            f"Schema: {SPORTS_SCHEMA}"
        )
        body = self._generate(
            prompt,
            temperature=0,
            thinking_budget=SPORTS_DATA_THINKING_BUDGET if use_thinking else 0,
            use_search=use_search,
            timeout=timeout,
        )
        payload = parse_ai_response(response_text(body) or "{}")
        sources = grounding_sources(body) if use_search else []
        return build_sports_data(payload, sources)

    def get_match_prediction(self, home: str, away: str, use_thinking: bool = False) -> AIPrediction:
        """Ask the model for a 1/X/2 pick with a short analysis."""
        prompt = f'Analizza e prevedi {home} vs {away}. JSON: {{"prediction":"1/X/2","confidence":"X%","analysis":"Testo breve"}}'
        body = self._generate(
            prompt,
            temperature=0,
            thinking_budget=PREDICTION_THINKING_BUDGET if use_thinking else 0,
        )
        return AIPrediction.from_dict(parse_ai_response(response_text(body) or "{}"))

    def get_historical_analysis(
        self,
        history: List[HistoricalSnapshot],
        favorites: List[str],
        use_thinking: bool = False
    ) -> str:
        """
        Produce a tactical report from the five most recent snapshots.

        Focuses on the favorite teams when any are given.
        """
        recent = [s.to_dict() for s in history[:5]]
        if favorites:
            focus = f"Analizza specificamente queste squadre preferite: {', '.join(favorites)}."
        else:
            focus = "Analizza i trend generali."
        prompt = (
            "Sei un analista tattico senior. Basandoti su questi dati storici recenti: "
            f"{json.dumps(recent, ensure_ascii=False)}\n{focus}\n"
            "Fornisci un report dettagliato in Italiano strutturato così:\n"
            "1. RIEPILOGO PRESTAZIONI: Come si sono comportate le squadre preferite negli ultimi snapshot?\n"
            "2. TREND DI FORMA: Chi è in ascesa e chi in difficoltà?\n"
            "3. PROIEZIONI FUTURE: Cosa aspettarsi dai prossimi match basandosi sulla solidità difensiva e realizzativa mostrata?\n"
            "Usa un tono professionale e analitico. Evita discorsi generici."
        )
        body = self._generate(
            prompt,
            temperature=0.7,
            thinking_budget=ANALYSIS_THINKING_BUDGET if use_thinking else 0,
        )
        return response_text(body) or NO_ANALYSIS_TEXT
