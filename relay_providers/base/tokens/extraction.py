"""Token usage extraction helpers.

Converts provider-specific usage shapes into one canonical mapping:

    {"prompt": <int|None>, "completion": <int|None>, "total": <int|None>}

Every extractor accepts either SDK objects (attribute access) or plain
mappings (decoded JSON), and never raises: missing, negative or non-numeric
values become ``None``. ``total`` is derived only when both sides are known.

Providers report usage in different places (stream start, stream end, final
payload); adapters call the matching extractor wherever that happens to be.

``estimate_tokens`` is the fixed 4-characters-per-token heuristic used when a
provider reports nothing.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

CanonicalUsage = Dict[str, Optional[int]]

PLACEHOLDER_USAGE: CanonicalUsage = {"prompt": None, "completion": None, "total": None}

CHARS_PER_TOKEN = 4


def estimate_tokens(char_count: int) -> int:
    """Return ``ceil(char_count / 4)``."""
    if char_count <= 0:
        return 0
    return math.ceil(char_count / CHARS_PER_TOKEN)


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _coerce_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        iv = int(value)
    except (TypeError, ValueError):
        return None
    return iv if iv >= 0 else None


def _finalize_usage(prompt: Optional[int], completion: Optional[int], total: Optional[int]) -> CanonicalUsage:
    if total is None and prompt is not None and completion is not None:
        total = prompt + completion
    return {"prompt": prompt, "completion": completion, "total": total}


def _from_usage(usage: Any, prompt_key: str, completion_key: str, total_key: str = "total_tokens") -> CanonicalUsage:
    if usage is None:
        return PLACEHOLDER_USAGE.copy()
    return _finalize_usage(
        _coerce_int(_field(usage, prompt_key)),
        _coerce_int(_field(usage, completion_key)),
        _coerce_int(_field(usage, total_key)),
    )


def has_usage(usage: CanonicalUsage) -> bool:
    """True when at least one side carries a concrete count."""
    return usage.get("prompt") is not None or usage.get("completion") is not None


def extract_openai_token_usage(raw: Any) -> CanonicalUsage:
    """Chat Completions: ``usage.prompt_tokens`` / ``usage.completion_tokens``.

    With ``stream_options.include_usage`` the usage arrives on the final chunk,
    whose ``choices`` list is empty.
    """
    return _from_usage(_field(raw, "usage"), "prompt_tokens", "completion_tokens")


def extract_responses_token_usage(raw: Any) -> CanonicalUsage:
    """Responses API: ``usage.input_tokens`` / ``usage.output_tokens``."""
    return _from_usage(_field(raw, "usage"), "input_tokens", "output_tokens")


def extract_anthropic_token_usage(raw: Any) -> CanonicalUsage:
    """Messages API usage object (``input_tokens`` / ``output_tokens``).

    Accepts either a message/event carrying ``usage`` or the usage object
    itself.
    """
    usage = _field(raw, "usage")
    return _from_usage(usage if usage is not None else raw, "input_tokens", "output_tokens")


def extract_gemini_token_usage(raw: Any) -> CanonicalUsage:
    """``usage_metadata.prompt_token_count`` / ``candidates_token_count``."""
    return _from_usage(
        _field(raw, "usage_metadata"),
        "prompt_token_count",
        "candidates_token_count",
        "total_token_count",
    )


def extract_replicate_token_usage(prediction: Any) -> CanonicalUsage:
    """Prediction ``metrics.input_token_count`` / ``output_token_count``."""
    return _from_usage(_field(prediction, "metrics"), "input_token_count", "output_token_count", "total_token_count")


__all__ = [
    "CHARS_PER_TOKEN",
    "PLACEHOLDER_USAGE",
    "CanonicalUsage",
    "estimate_tokens",
    "has_usage",
    "extract_openai_token_usage",
    "extract_responses_token_usage",
    "extract_anthropic_token_usage",
    "extract_gemini_token_usage",
    "extract_replicate_token_usage",
]
