"""Capability inference utilities.

Stored configuration flags win; when a configuration carries none, flags are
inferred from the provider family and model-name conventions. The same
naming checks drive the OpenAI adapter's sub-protocol choice, so both live
here.
"""

from __future__ import annotations

from typing import Any, FrozenSet, Iterable, Optional

from ..models import Capability, ProviderKind

_OPENAI_REASONING_PREFIXES = ("o1", "o3", "o4", "gpt-5")
_OPENAI_SIMULATED = ("o1-preview", "o1-mini")
_OPENAI_WEB_SEARCH_PREFIXES = ("gpt-4o", "gpt-4.1", "gpt-5", "o3", "o4")
_ANTHROPIC_WEB_SEARCH_MARKERS = ("claude-3-5", "claude-3.5", "claude-3-7", "claude-3.7", "-4", "claude-4")
_ANTHROPIC_REASONING_MARKERS = ("claude-3-7", "claude-3.7", "-4", "claude-4")


def _bare(model_id: str) -> str:
    """Lower-cased model id without any ``org/`` prefix."""
    return model_id.strip().lower().rsplit("/", 1)[-1]


def is_reasoning_model(model_id: str) -> bool:
    """True for OpenAI reasoning-tier ids (``o1*``, ``o3*``, ``o4*``, ``gpt-5*``)."""
    return _bare(model_id).startswith(_OPENAI_REASONING_PREFIXES)


def is_simulated_reasoning_model(model_id: str) -> bool:
    """True for reasoning variants without native streaming."""
    return _bare(model_id).startswith(_OPENAI_SIMULATED)


def _openai(model: str) -> set[Capability]:
    caps: set[Capability] = set()
    simulated = model.startswith(_OPENAI_SIMULATED)
    if not simulated:
        caps.add(Capability.STREAMING)
        caps.add(Capability.FILE_SEARCH)
    if model.startswith(_OPENAI_WEB_SEARCH_PREFIXES):
        caps.add(Capability.WEB_SEARCH)
    if model.startswith(_OPENAI_REASONING_PREFIXES):
        caps.add(Capability.REASONING)
    return caps


def _anthropic(model: str) -> set[Capability]:
    caps = {Capability.STREAMING}
    if any(m in model for m in _ANTHROPIC_WEB_SEARCH_MARKERS):
        caps.add(Capability.WEB_SEARCH)
    if any(m in model for m in _ANTHROPIC_REASONING_MARKERS):
        caps.add(Capability.REASONING)
    return caps


def _google(model: str) -> set[Capability]:
    caps = {Capability.STREAMING}
    if "gemini" in model:
        caps.add(Capability.WEB_SEARCH)
    if "gemini-2.5" in model:
        caps.add(Capability.REASONING)
    return caps


def infer_capabilities(kind: ProviderKind, model_id: str) -> FrozenSet[Capability]:
    """Infer capability flags from provider family and model id."""
    model = _bare(model_id)
    if kind is ProviderKind.OPENAI:
        return frozenset(_openai(model))
    if kind is ProviderKind.ANTHROPIC:
        return frozenset(_anthropic(model))
    if kind is ProviderKind.GOOGLE:
        return frozenset(_google(model))
    if kind is ProviderKind.CUSTOM:
        return frozenset({Capability.STREAMING})
    return frozenset()


def coerce_capabilities(
    stored: Optional[Any], kind: ProviderKind, model_id: str
) -> FrozenSet[Capability]:
    """Return stored capability flags, or inferred ones when none are stored.

    ``stored`` may be a list of names (``["streaming", "webSearch"]``) or a
    mapping of name to bool (``{"webSearch": true}``). Unknown names are
    ignored.
    """
    if not stored:
        return infer_capabilities(kind, model_id)
    names: Iterable[Any]
    if isinstance(stored, dict):
        names = [k for k, v in stored.items() if v]
    elif isinstance(stored, (list, tuple, set, frozenset)):
        names = stored
    else:
        return infer_capabilities(kind, model_id)
    caps: set[Capability] = set()
    for name in names:
        try:
            caps.add(Capability(str(name)))
        except ValueError:
            continue
    return frozenset(caps)


__all__ = [
    "coerce_capabilities",
    "infer_capabilities",
    "is_reasoning_model",
    "is_simulated_reasoning_model",
]
