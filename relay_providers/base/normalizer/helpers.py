"""Bookkeeping helpers for the stream normalizer."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..models import CanonicalMessage, ProviderDescriptor, SearchResult, UsageMetadata, total_input_chars
from ..streaming.provider_events import SearchResultsFound, UsageReported
from ..tokens import estimate_tokens


@dataclass
class UsageAccumulator:
    """Merges partial usage reports side by side (later non-None wins)."""

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None

    def add(self, report: UsageReported) -> None:
        if report.input_tokens is not None:
            self.input_tokens = report.input_tokens
        if report.output_tokens is not None:
            self.output_tokens = report.output_tokens

    def as_tokens(self) -> Dict[str, Optional[int]]:
        total = None
        if self.input_tokens is not None and self.output_tokens is not None:
            total = self.input_tokens + self.output_tokens
        return {"prompt": self.input_tokens, "completion": self.output_tokens, "total": total}


@dataclass
class SearchAccumulator:
    """Latest search query plus every distinct result url, in arrival order."""

    query: Optional[str] = None
    results: List[SearchResult] = field(default_factory=list)
    _seen: set = field(default_factory=set)

    def started(self, query: str) -> None:
        if query:
            self.query = query

    def found(self, event: SearchResultsFound) -> None:
        if event.query and self.query is None:
            self.query = event.query
        for result in event.results:
            if result.url in self._seen:
                continue
            self._seen.add(result.url)
            self.results.append(result)


def build_usage_metadata(
    *,
    descriptor: ProviderDescriptor,
    messages: Sequence[CanonicalMessage],
    final_text: str,
    usage: UsageAccumulator,
    search: SearchAccumulator,
    response_time_ms: int,
    message_id: str,
) -> UsageMetadata:
    """Final usage: provider values verbatim, estimation for missing sides.

    Estimation is ``ceil(chars / 4)`` over all input message contents and over
    the final text respectively. ``total`` is always input + output.
    """
    estimated = False
    input_tokens = usage.input_tokens
    if input_tokens is None:
        input_tokens = estimate_tokens(total_input_chars(messages))
        estimated = True
    output_tokens = usage.output_tokens
    if output_tokens is None:
        output_tokens = estimate_tokens(len(final_text))
        estimated = True
    return UsageMetadata(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
        model=descriptor.model_id,
        provider_name=descriptor.provider_name,
        response_time_ms=response_time_ms,
        request_id=message_id,
        search_results=tuple(search.results) if search.results else None,
        search_query=search.query,
        estimated=estimated,
    )


__all__ = ["UsageAccumulator", "SearchAccumulator", "build_usage_metadata"]
