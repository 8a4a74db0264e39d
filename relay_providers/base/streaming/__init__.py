"""Streaming primitives: canonical events, provider events, metrics, simulation."""

from .events import (
    CanonicalStreamEvent,
    SearchResults,
    SearchStart,
    StreamChunk,
    StreamEnd,
    StreamError,
    StreamStart,
    TERMINAL_EVENTS,
    accumulate_text,
    is_terminal,
)
from .provider_events import ProviderEvent, SearchResultsFound, SearchStarted, TextDelta, UsageReported
from .simulated import simulate_stream, split_word_groups
from .streaming_finalize import finalize_stream
from .streaming_metrics import StreamMetrics, token_usage_dict

__all__ = [
    "CanonicalStreamEvent",
    "SearchResults",
    "SearchStart",
    "StreamChunk",
    "StreamEnd",
    "StreamError",
    "StreamStart",
    "TERMINAL_EVENTS",
    "accumulate_text",
    "is_terminal",
    "ProviderEvent",
    "SearchResultsFound",
    "SearchStarted",
    "TextDelta",
    "UsageReported",
    "simulate_stream",
    "split_word_groups",
    "finalize_stream",
    "StreamMetrics",
    "token_usage_dict",
]
