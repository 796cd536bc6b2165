"""Lenient extraction of JSON objects from free-text model output.

The model is asked for "only a JSON object" but routinely wraps it in prose,
markdown fences or trailing commentary. Nothing in here raises: a response
that cannot be read yields an empty payload, and callers decide whether an
empty payload counts as a failure.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import GroundingSource, SportsData

logger = logging.getLogger(__name__)


def empty_payload() -> Dict[str, Any]:
    return {"matches": [], "standings": {}}


def extract_json_block(text: str) -> Optional[str]:
    """Return the first brace-balanced ``{...}`` block in text, or None.

    Braces inside JSON strings are ignored, so ``{"a": "}"}`` is one block.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next one
        start = text.find("{", start + 1)
    return None


def _loads_object(candidate: Optional[str]) -> Optional[Dict[str, Any]]:
    if not candidate:
        return None
    try:
        value = json.loads(candidate)
    except (ValueError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def parse_ai_response(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object embedded in a model response.

    Tries, in order: the first balanced block, the greedy span from the first
    ``{`` to the last ``}``, and the whole text.

    Returns:
        The parsed object, or ``{"matches": [], "standings": {}}`` when
        nothing parses to a JSON object.
    """
    if not text:
        return empty_payload()

    candidates = [extract_json_block(text)]
    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        candidates.append(text[first:last + 1])
    candidates.append(text.strip())

    for candidate in candidates:
        parsed = _loads_object(candidate)
        if parsed is not None:
            return parsed

    logger.warning(f"Could not parse JSON from model response ({len(text)} chars)")
    return empty_payload()


def format_last_updated(now: datetime) -> str:
    return now.strftime("%H:%M")


def build_sports_data(
    payload: Dict[str, Any],
    sources: List[GroundingSource] = None,
    now: datetime = None
) -> SportsData:
    """Normalize a parsed payload, stamping it with the local clock."""
    data = SportsData.from_dict({
        "matches": payload.get("matches") if isinstance(payload.get("matches"), list) else [],
        "standings": payload.get("standings") if isinstance(payload.get("standings"), dict) else {},
    })
    data.last_updated = format_last_updated(now or datetime.now())
    data.sources = list(sources or [])
    return data
