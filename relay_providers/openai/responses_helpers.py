"""Responses API request building and event translation.

The Responses sub-protocol carries everything the chat endpoint cannot:
reasoning-tier models, the ``web_search_preview`` tool and the
``file_search`` tool. Streamed events are typed by their ``type`` string;
the translator is stateful because citation snippets are cut from the text
streamed so far and search queries are reported once per search call.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Set

from ..base.adapters import conversation_turns, last_user_text, system_text
from ..base.capabilities import is_reasoning_model, is_simulated_reasoning_model
from ..base.errors import ProviderRequestFailed, classify_exception
from ..base.models import CanonicalMessage, GenerationOptions, SearchResult
from ..base.streaming.provider_events import (
    ProviderEvent,
    SearchResultsFound,
    SearchStarted,
    TextDelta,
    UsageReported,
)
from ..base.tokens import extract_responses_token_usage, has_usage
from ..config import RelaySettings

WEB_SEARCH_TOOL = "web_search_preview"
FILE_SEARCH_TOOL = "file_search"

_SEARCH_STARTED_TYPES = frozenset(
    {
        "response.web_search_call.in_progress",
        "response.web_search_call.searching",
        "response.file_search_call.in_progress",
        "response.file_search_call.searching",
    }
)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def build_responses_params(
    model: str,
    messages: Sequence[CanonicalMessage],
    options: GenerationOptions,
    settings: RelaySettings,
) -> Dict[str, Any]:
    """``responses.create`` keyword arguments (without ``stream``).

    System text goes to ``instructions``; the non-streaming reasoning
    variants reject it, so for them it is folded into the first user turn.
    Reasoning models take ``reasoning.effort`` and no ``temperature``.
    """
    simulated = is_simulated_reasoning_model(model)
    instructions = system_text(messages)
    turns = [{"role": m.role, "content": m.content} for m in conversation_turns(messages)]
    if instructions and simulated:
        for turn in turns:
            if turn["role"] == "user":
                turn["content"] = f"{instructions}\n\n{turn['content']}"
                break
    params: Dict[str, Any] = {
        "model": model,
        "input": turns,
        "max_output_tokens": settings.max_tokens,
    }
    if instructions and not simulated:
        params["instructions"] = instructions
    tools: List[Dict[str, Any]] = []
    if options.web_search_requested:
        tools.append({"type": WEB_SEARCH_TOOL})
    if options.file_search_context:
        tools.append({"type": FILE_SEARCH_TOOL, "vector_store_ids": [options.file_search_context]})
    if tools:
        params["tools"] = tools
    if is_reasoning_model(model):
        if not simulated:
            params["reasoning"] = {"effort": "high" if options.reasoning_requested else "medium"}
    else:
        params["temperature"] = settings.temperature
    return params


def without_file_search(params: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``params`` with the ``file_search`` tool removed."""
    stripped = dict(params)
    tools = [t for t in params.get("tools", []) if t.get("type") != FILE_SEARCH_TOOL]
    if tools:
        stripped["tools"] = tools
    else:
        stripped.pop("tools", None)
    return stripped


def _failure(message: str, model: str) -> ProviderRequestFailed:
    code = classify_exception(RuntimeError(message))
    return ProviderRequestFailed(code=code, message=message, provider="openai", model=model, retryable=code.retryable)


class ResponsesEventTranslator:
    """Stateful translator for one Responses API stream."""

    def __init__(self, messages: Sequence[CanonicalMessage], model: str) -> None:
        self._query = last_user_text(messages)
        self._model = model
        self._text = ""
        self._search_items: Set[str] = set()
        self._cited: Set[str] = set()

    @property
    def text(self) -> str:
        return self._text

    def __call__(self, event: Any) -> List[ProviderEvent]:
        etype = event.type
        if etype == "response.output_text.delta":
            delta = _get(event, "delta") or ""
            self._text += delta
            return [TextDelta(delta)] if delta else []
        if etype in _SEARCH_STARTED_TYPES:
            item_id = _get(event, "item_id") or etype
            if item_id in self._search_items:
                return []
            self._search_items.add(item_id)
            return [SearchStarted(self._query)]
        if etype == "response.output_text.annotation.added":
            return self._citations([_get(event, "annotation")])
        if etype == "response.completed":
            return self._completed(_get(event, "response"))
        if etype == "response.failed":
            error = _get(_get(event, "response"), "error")
            raise _failure(_get(error, "message") or "response failed", self._model)
        if etype == "error":
            raise _failure(_get(event, "message") or "stream error", self._model)
        # remaining lifecycle events carry nothing to forward
        return []

    def _citations(self, annotations: Sequence[Any]) -> List[ProviderEvent]:
        found: List[SearchResult] = []
        for annotation in annotations:
            if _get(annotation, "type") != "url_citation":
                continue
            url = _get(annotation, "url")
            if not url or url in self._cited:
                continue
            self._cited.add(url)
            start, end = _get(annotation, "start_index"), _get(annotation, "end_index")
            snippet = ""
            if isinstance(start, int) and isinstance(end, int) and 0 <= start < end:
                snippet = self._text[start:end]
            found.append(SearchResult(title=_get(annotation, "title") or url, url=url, snippet=snippet))
        return [SearchResultsFound(self._query, tuple(found))] if found else []

    def _completed(self, response: Any) -> List[ProviderEvent]:
        events: List[ProviderEvent] = []
        for item in _get(response, "output", None) or []:
            if _get(item, "type") != "message":
                continue
            for part in _get(item, "content", None) or []:
                events.extend(self._citations(_get(part, "annotations", None) or []))
        usage = extract_responses_token_usage(response)
        if has_usage(usage):
            events.append(
                UsageReported(input_tokens=usage["prompt"], output_tokens=usage["completion"], total_tokens=usage["total"])
            )
        return events


def response_text(response: Any) -> Optional[str]:
    """Concatenated output text of a non-streaming response."""
    text = _get(response, "output_text")
    if text:
        return str(text)
    chunks: List[str] = []
    for item in _get(response, "output", None) or []:
        for part in _get(item, "content", None) or []:
            if _get(part, "type") == "output_text" and _get(part, "text"):
                chunks.append(_get(part, "text"))
    return "".join(chunks) or None


__all__ = [
    "WEB_SEARCH_TOOL",
    "FILE_SEARCH_TOOL",
    "build_responses_params",
    "without_file_search",
    "ResponsesEventTranslator",
    "response_text",
]
