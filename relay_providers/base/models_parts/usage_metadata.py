"""
Usage and search metadata attached to the terminal ``End`` event.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SearchResult:
    """One web or file search hit, in provider order."""

    title: str
    url: str
    snippet: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


@dataclass(frozen=True)
class UsageMetadata:
    """Final token accounting for one generation.

    ``total_tokens`` always equals ``input_tokens + output_tokens``.
    ``estimated`` is True when at least one side came from the
    4-characters-per-token heuristic instead of provider usage data.
    """

    input_tokens: int
    output_tokens: int
    total_tokens: int
    model: str
    provider_name: str
    response_time_ms: int
    request_id: str
    search_results: Optional[Tuple[SearchResult, ...]] = None
    search_query: Optional[str] = None
    estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """camelCase wire form used by events and persisted messages."""
        data: Dict[str, Any] = {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalTokens": self.total_tokens,
            "model": self.model,
            "providerName": self.provider_name,
            "responseTimeMs": self.response_time_ms,
            "requestId": self.request_id,
            "estimated": self.estimated,
        }
        if self.search_results is not None:
            data["searchResults"] = [r.to_dict() for r in self.search_results]
        if self.search_query is not None:
            data["searchQuery"] = self.search_query
        return data


__all__ = ["SearchResult", "UsageMetadata"]
