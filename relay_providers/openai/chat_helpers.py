"""Chat Completions request building and chunk translation.

Shared by the OpenAI adapter's default path and the OpenAI-compatible custom
adapter.
"""
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ..base.capabilities import is_reasoning_model
from ..base.models import CanonicalMessage
from ..base.streaming.provider_events import ProviderEvent, TextDelta, UsageReported
from ..base.tokens import extract_openai_token_usage, has_usage
from ..config import RelaySettings


def build_chat_params(model: str, messages: Sequence[CanonicalMessage], settings: RelaySettings) -> Dict[str, Any]:
    """Streaming ``chat.completions.create`` keyword arguments.

    Messages keep their roles and order; usage is requested on the final
    chunk through ``stream_options``. Reasoning-tier models reject
    ``max_tokens`` and any non-default ``temperature``.
    """
    params: Dict[str, Any] = {
        "model": model,
        "messages": [m.to_dict() for m in messages],
        "stream": True,
        "stream_options": {"include_usage": True},
    }
    if is_reasoning_model(model):
        params["max_completion_tokens"] = settings.max_tokens
    else:
        params["max_tokens"] = settings.max_tokens
        params["temperature"] = settings.temperature
    return params


def translate_chat_chunk(chunk: Any) -> List[ProviderEvent]:
    """Map one ``ChatCompletionChunk`` to provider events.

    Raises ``AttributeError`` for objects without ``choices`` so the caller
    counts them as undecodable frames.
    """
    events: List[ProviderEvent] = []
    choices = chunk.choices
    if choices:
        delta = getattr(choices[0], "delta", None)
        content = getattr(delta, "content", None) if delta is not None else None
        if content:
            events.append(TextDelta(content))
    usage = extract_openai_token_usage(chunk)
    if has_usage(usage):
        events.append(
            UsageReported(input_tokens=usage["prompt"], output_tokens=usage["completion"], total_tokens=usage["total"])
        )
    return events


__all__ = ["build_chat_params", "translate_chat_chunk"]
