"""Raw events yielded by provider adapters.

Adapters decode their provider's wire protocol into these typed values; the
stream normalizer maps them onto canonical events. Lifecycle (start, end,
error) is never an adapter concern.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..models import SearchResult


@dataclass(frozen=True)
class TextDelta:
    """A fragment of answer text, in arrival order."""

    text: str


@dataclass(frozen=True)
class SearchStarted:
    """The provider began a web or file search."""

    query: str


@dataclass(frozen=True)
class SearchResultsFound:
    """Search hits or citations surfaced by the provider."""

    query: str
    results: Tuple[SearchResult, ...]


@dataclass(frozen=True)
class UsageReported:
    """Token usage read from wherever the provider reports it.

    Either side may be ``None``; later reports fill or replace earlier ones
    side by side.
    """

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


ProviderEvent = Union[TextDelta, SearchStarted, SearchResultsFound, UsageReported]

__all__ = [
    "TextDelta",
    "SearchStarted",
    "SearchResultsFound",
    "UsageReported",
    "ProviderEvent",
]
