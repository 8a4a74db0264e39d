"""Replicate prediction helpers.

Purpose:
- Build the transcript prompt and the create-prediction request for a model
  id. ``owner/name:version`` ids go to ``/predictions`` with an explicit
  ``version``; ``owner/name`` ids use the model's own predictions route.
- Read prediction status and output.

External dependencies:
- None here; the adapter performs HTTP through the pooled ``httpx`` client.
"""

from __future__ import annotations

from typing import Any, Dict, Sequence, Tuple

from ..base.adapters import conversation_turns, system_text
from ..base.models import CanonicalMessage

TERMINAL_STATUSES = frozenset({"succeeded", "failed", "canceled"})

_SPEAKERS = {"user": "User", "assistant": "Assistant"}


def build_prompt(messages: Sequence[CanonicalMessage]) -> str:
    """Flatten the conversation into a single transcript prompt.

    System text comes first, each turn is ``"User: ..."`` or
    ``"Assistant: ..."``, and the prompt ends with ``"Assistant:"`` so the
    model continues as the assistant.
    """
    blocks = []
    system = system_text(messages)
    if system:
        blocks.append(system)
    blocks.extend(f"{_SPEAKERS[m.role]}: {m.content}" for m in conversation_turns(messages))
    blocks.append("Assistant:")
    return "\n\n".join(blocks)


def prediction_request(model_id: str, prompt: str, max_tokens: int) -> Tuple[str, Dict[str, Any]]:
    """Return ``(path, json_body)`` for creating a prediction."""
    body: Dict[str, Any] = {"input": {"prompt": prompt, "max_new_tokens": max_tokens}}
    name, sep, version = model_id.partition(":")
    if sep and version:
        body["version"] = version
        return "/predictions", body
    owner, _, model = name.partition("/")
    if not owner or not model:
        raise ValueError(f"Replicate model id must be 'owner/name' or 'owner/name:version', got {model_id!r}")
    return f"/models/{owner}/{model}/predictions", body


def prediction_output_text(prediction: Dict[str, Any]) -> str:
    """Joined output; language models return a list of string fragments."""
    output = prediction.get("output")
    if output is None:
        return ""
    if isinstance(output, list):
        return "".join(str(part) for part in output if part is not None)
    return str(output)


def prediction_url(prediction: Dict[str, Any], name: str) -> str | None:
    urls = prediction.get("urls") or {}
    url = urls.get(name)
    if url:
        return url
    pid = prediction.get("id")
    if not pid:
        return None
    return f"/predictions/{pid}" if name == "get" else f"/predictions/{pid}/cancel"


__all__ = [
    "TERMINAL_STATUSES",
    "build_prompt",
    "prediction_request",
    "prediction_output_text",
    "prediction_url",
]
