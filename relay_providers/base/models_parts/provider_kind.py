"""
Provider families and capability flags.

`ProviderKind` is the closed set of adapter families; adding a member requires
registering an adapter for it (the adapter registry refuses to build
otherwise). `Capability` values use the camelCase names stored with provider
configurations.
"""
from __future__ import annotations

from enum import Enum
from typing import Tuple


class ProviderKind(str, Enum):
    """Provider adapter family."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    REPLICATE = "replicate"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: "str | ProviderKind") -> "ProviderKind":
        """Parse a stored kind string case-insensitively (``gemini`` -> google)."""
        if isinstance(value, ProviderKind):
            return value
        key = str(value).strip().lower()
        if key == "gemini":
            key = "google"
        return cls(key)


class Capability(str, Enum):
    """Optional features a resolved model may support."""

    STREAMING = "streaming"
    WEB_SEARCH = "webSearch"
    FILE_SEARCH = "fileSearch"
    REASONING = "reasoning"


# Tie-break order for "default" selection among equally recent configurations.
PROVIDER_PRIORITY: Tuple[ProviderKind, ...] = (
    ProviderKind.OPENAI,
    ProviderKind.GOOGLE,
    ProviderKind.ANTHROPIC,
    ProviderKind.REPLICATE,
    ProviderKind.CUSTOM,
)


def priority_of(kind: ProviderKind) -> int:
    """Index of ``kind`` in `PROVIDER_PRIORITY` (lower wins)."""
    return PROVIDER_PRIORITY.index(kind)


__all__ = ["ProviderKind", "Capability", "PROVIDER_PRIORITY", "priority_of"]
