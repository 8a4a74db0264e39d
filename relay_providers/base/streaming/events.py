"""Canonical stream events.

Every generation yields, in order: exactly one `StreamStart`, any number of
`SearchStart` / `SearchResults` / `StreamChunk`, then exactly one terminal
`StreamEnd` or `StreamError`. ``message_id`` is assigned at start and stays
fixed for the whole sequence.

``to_dict`` produces the wire shape forwarded by the transport sink.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from ..models import SearchResult, UsageMetadata


@dataclass(frozen=True)
class StreamStart:
    message_id: str
    type = "start"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "messageId": self.message_id}


@dataclass(frozen=True)
class SearchStart:
    query: str
    message_id: Optional[str] = None
    type = "search_start"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "messageId": self.message_id, "query": self.query}


@dataclass(frozen=True)
class SearchResults:
    query: str
    results: Tuple[SearchResult, ...]
    message_id: Optional[str] = None
    type = "search_results"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "messageId": self.message_id,
            "query": self.query,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class StreamChunk:
    message_id: str
    text_delta: str
    type = "chunk"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "messageId": self.message_id, "textDelta": self.text_delta}


@dataclass(frozen=True)
class StreamEnd:
    message_id: str
    metadata: UsageMetadata
    type = "end"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "messageId": self.message_id, "metadata": self.metadata.to_dict()}


@dataclass(frozen=True)
class StreamError:
    error_text: str
    message_id: Optional[str] = None
    type = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "messageId": self.message_id, "errorText": self.error_text}


CanonicalStreamEvent = Union[StreamStart, SearchStart, SearchResults, StreamChunk, StreamEnd, StreamError]

TERMINAL_EVENTS = (StreamEnd, StreamError)


def is_terminal(event: CanonicalStreamEvent) -> bool:
    return isinstance(event, TERMINAL_EVENTS)


def accumulate_text(events: Iterable[CanonicalStreamEvent]) -> str:
    """Concatenate every chunk delta in emission order."""
    return "".join(e.text_delta for e in events if isinstance(e, StreamChunk))


__all__ = [
    "StreamStart",
    "SearchStart",
    "SearchResults",
    "StreamChunk",
    "StreamEnd",
    "StreamError",
    "CanonicalStreamEvent",
    "TERMINAL_EVENTS",
    "is_terminal",
    "accumulate_text",
]
