"""Anthropic request building and stream event translation.

Purpose:
- Build ``messages.create`` parameters: system messages merged into the
  top-level ``system`` field, optional server-side web search tool and
  extended thinking.
- Translate raw Messages API stream events into provider events. The
  translator is stateful: a ``server_tool_use`` block's JSON input arrives in
  fragments and its query is only known at ``content_block_stop``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

from ..base.adapters import conversation_turns, last_user_text, system_text
from ..base.errors import ProviderRequestFailed, classify_exception
from ..base.models import CanonicalMessage, GenerationOptions, SearchResult
from ..base.streaming.provider_events import (
    ProviderEvent,
    SearchResultsFound,
    SearchStarted,
    TextDelta,
    UsageReported,
)
from ..config import RelaySettings
from ..config.defaults import ANTHROPIC_THINKING_BUDGET_TOKENS, ANTHROPIC_WEB_SEARCH_MAX_USES

WEB_SEARCH_TOOL: Dict[str, Any] = {
    "type": "web_search_20250305",
    "name": "web_search",
    "max_uses": ANTHROPIC_WEB_SEARCH_MAX_USES,
}


def _get(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def build_message_params(
    model: str,
    messages: Sequence[CanonicalMessage],
    options: GenerationOptions,
    settings: RelaySettings,
) -> Dict[str, Any]:
    """Streaming ``messages.create`` keyword arguments.

    Extended thinking requires the default temperature, so ``temperature`` is
    only sent without it. Thinking tokens count against ``max_tokens``, which
    must exceed the budget; a configured cap at or below the budget gets the
    budget added on top so the answer keeps its allowance.
    """
    params: Dict[str, Any] = {
        "model": model,
        "max_tokens": settings.max_tokens,
        "messages": [{"role": m.role, "content": m.content} for m in conversation_turns(messages)],
        "stream": True,
    }
    system = system_text(messages)
    if system:
        params["system"] = system
    if options.web_search_requested:
        params["tools"] = [dict(WEB_SEARCH_TOOL)]
    if options.reasoning_requested:
        params["thinking"] = {"type": "enabled", "budget_tokens": ANTHROPIC_THINKING_BUDGET_TOKENS}
        if settings.max_tokens <= ANTHROPIC_THINKING_BUDGET_TOKENS:
            params["max_tokens"] = settings.max_tokens + ANTHROPIC_THINKING_BUDGET_TOKENS
    else:
        params["temperature"] = settings.temperature
    return params


class AnthropicEventTranslator:
    """Stateful translator for one Messages API event stream."""

    def __init__(self, messages: Sequence[CanonicalMessage], model: str) -> None:
        self._model = model
        self._fallback_query = last_user_text(messages)
        self._json_parts: Dict[int, List[str]] = {}
        self._tool_ids: Dict[int, Optional[str]] = {}
        self._initial_inputs: Dict[int, Any] = {}
        self._queries: Dict[str, str] = {}
        self._last_query: Optional[str] = None
        self._cited: set[str] = set()

    def __call__(self, event: Any) -> List[ProviderEvent]:
        etype = event.type
        if etype == "message_start":
            usage = _get(_get(event, "message"), "usage")
            return [UsageReported(input_tokens=_get(usage, "input_tokens"))] if usage is not None else []
        if etype == "content_block_start":
            return self._block_start(event.index, event.content_block)
        if etype == "content_block_delta":
            return self._block_delta(event.index, event.delta)
        if etype == "content_block_stop":
            return self._block_stop(event.index)
        if etype == "message_delta":
            usage = _get(event, "usage")
            if usage is None:
                return []
            return [UsageReported(input_tokens=_get(usage, "input_tokens"), output_tokens=_get(usage, "output_tokens"))]
        if etype == "error":
            message = _get(_get(event, "error"), "message") or "stream error"
            code = classify_exception(RuntimeError(message))
            raise ProviderRequestFailed(
                code=code, message=message, provider="anthropic", model=self._model, retryable=code.retryable
            )
        # message_stop, ping
        return []

    def _block_start(self, index: int, block: Any) -> List[ProviderEvent]:
        btype = _get(block, "type")
        if btype == "text":
            text = _get(block, "text") or ""
            return [TextDelta(text)] if text else []
        if btype == "server_tool_use":
            self._json_parts[index] = []
            self._tool_ids[index] = _get(block, "id")
            self._initial_inputs[index] = _get(block, "input")
            return []
        if btype == "web_search_tool_result":
            query = self._queries.get(_get(block, "tool_use_id") or "", self._last_query or self._fallback_query)
            content = _get(block, "content")
            if not isinstance(content, list):
                # web_search_tool_result_error
                return []
            results = tuple(
                SearchResult(title=_get(item, "title") or _get(item, "url"), url=_get(item, "url"), snippet="")
                for item in content
                if _get(item, "url")
            )
            return [SearchResultsFound(query, results)] if results else []
        return []

    def _block_delta(self, index: int, delta: Any) -> List[ProviderEvent]:
        dtype = _get(delta, "type")
        if dtype == "text_delta":
            text = _get(delta, "text") or ""
            return [TextDelta(text)] if text else []
        if dtype == "input_json_delta":
            self._json_parts.setdefault(index, []).append(_get(delta, "partial_json") or "")
            return []
        if dtype == "citations_delta":
            return self._citation(_get(delta, "citation"))
        # thinking_delta, signature_delta
        return []

    def _block_stop(self, index: int) -> List[ProviderEvent]:
        if index not in self._json_parts:
            return []
        raw = "".join(self._json_parts.pop(index))
        tool_input = json.loads(raw) if raw.strip() else (self._initial_inputs.pop(index, None) or {})
        query = str(_get(tool_input, "query") or self._fallback_query)
        tool_id = self._tool_ids.pop(index, None)
        if tool_id:
            self._queries[tool_id] = query
        self._last_query = query
        return [SearchStarted(query)]

    def _citation(self, citation: Any) -> List[ProviderEvent]:
        if _get(citation, "type") != "web_search_result_location":
            return []
        url = _get(citation, "url")
        if not url or url in self._cited:
            return []
        self._cited.add(url)
        result = SearchResult(
            title=_get(citation, "title") or url,
            url=url,
            snippet=_get(citation, "cited_text") or "",
        )
        return [SearchResultsFound(self._last_query or self._fallback_query, (result,))]


__all__ = ["WEB_SEARCH_TOOL", "build_message_params", "AnthropicEventTranslator"]
