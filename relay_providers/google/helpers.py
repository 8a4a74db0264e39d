"""Google Generative AI request shaping and response inspection.

- ``build_contents``: canonical turns to ``generate_content`` contents with
  the ``user``/``model`` roles Gemini expects.
- ``generation_config``: sampling parameters for every Gemini request.
- ``ensure_not_blocked``: a ``SAFETY`` finish or a blocked prompt is a
  provider failure.
- ``grounding_events``: Google Search grounding metadata to search events.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ..base.adapters import conversation_turns
from ..base.errors import ErrorCode, ProviderRequestFailed
from ..base.models import CanonicalMessage, SearchResult
from ..base.streaming.provider_events import ProviderEvent, SearchResultsFound, SearchStarted
from ..config import RelaySettings
from ..config.defaults import GOOGLE_MAX_OUTPUT_TOKENS, GOOGLE_TOP_K, GOOGLE_TOP_P

SAFETY_BLOCK_MESSAGE = "Content was blocked by Google AI safety filters"
GOOGLE_SEARCH_TOOL = "google_search_retrieval"

_ROLE_MAP = {"user": "user", "assistant": "model"}


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _enum_name(value: Any) -> str:
    """Name of a proto enum, a plain string, or ``""``."""
    if value is None:
        return ""
    return str(getattr(value, "name", value)).upper()


def build_contents(messages: Sequence[CanonicalMessage]) -> List[Dict[str, Any]]:
    return [{"role": _ROLE_MAP[m.role], "parts": [m.content]} for m in conversation_turns(messages)]


def generation_config(settings: RelaySettings) -> Dict[str, Any]:
    return {
        "temperature": settings.temperature,
        "max_output_tokens": GOOGLE_MAX_OUTPUT_TOKENS,
        "top_p": GOOGLE_TOP_P,
        "top_k": GOOGLE_TOP_K,
    }


def _first_candidate(response: Any) -> Any:
    candidates = _get(response, "candidates") or []
    return candidates[0] if candidates else None


def ensure_not_blocked(response: Any, model: str) -> None:
    """Raise `ProviderRequestFailed` when the safety filters stopped the answer."""
    feedback = _get(response, "prompt_feedback")
    blocked_prompt = _enum_name(_get(feedback, "block_reason")) not in ("", "BLOCK_REASON_UNSPECIFIED", "0")
    finish = _enum_name(_get(_first_candidate(response), "finish_reason"))
    if blocked_prompt or finish == "SAFETY":
        raise ProviderRequestFailed(
            code=ErrorCode.VALIDATION,
            message=SAFETY_BLOCK_MESSAGE,
            provider="google",
            model=model,
        )


def response_text(response: Any) -> str:
    """Concatenate the text parts of the first candidate.

    ``response.text`` raises on empty or multi-candidate responses, so parts
    are read directly.
    """
    content = _get(_first_candidate(response), "content")
    parts = _get(content, "parts") or []
    return "".join(_get(p, "text") or "" for p in parts)


def grounding_events(response: Any, fallback_query: str) -> List[ProviderEvent]:
    """Search events from the first candidate's grounding metadata.

    One ``SearchStarted`` per distinct web search query, then a single
    ``SearchResultsFound`` with the grounding chunks deduplicated by URL.
    """
    metadata = _get(_first_candidate(response), "grounding_metadata")
    if metadata is None:
        return []
    queries = [q for q in (_get(metadata, "web_search_queries") or []) if q]
    results: List[SearchResult] = []
    seen: set[str] = set()
    for chunk in _get(metadata, "grounding_chunks") or []:
        web = _get(chunk, "web")
        url = _get(web, "uri")
        if not url or url in seen:
            continue
        seen.add(url)
        results.append(SearchResult(title=_get(web, "title") or url, url=url))
    if not queries and not results:
        return []
    events: List[ProviderEvent] = [SearchStarted(q) for q in dict.fromkeys(queries)]
    query = queries[0] if queries else fallback_query
    if not events:
        events.append(SearchStarted(query))
    if results:
        events.append(SearchResultsFound(query, tuple(results)))
    return events


__all__ = [
    "SAFETY_BLOCK_MESSAGE",
    "GOOGLE_SEARCH_TOOL",
    "build_contents",
    "generation_config",
    "ensure_not_blocked",
    "response_text",
    "grounding_events",
]
