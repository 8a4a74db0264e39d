"""Stream normalizer and its bookkeeping helpers."""

from .helpers import SearchAccumulator, UsageAccumulator, build_usage_metadata
from .stream_normalizer import EventSink, NormalizedStream, StreamNormalizer

__all__ = [
    "EventSink",
    "NormalizedStream",
    "StreamNormalizer",
    "SearchAccumulator",
    "UsageAccumulator",
    "build_usage_metadata",
]
