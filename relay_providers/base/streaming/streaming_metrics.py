"""Per-generation counters feeding the terminal ``stream.normalizer.*`` log line."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..models import UsageMetadata


@dataclass
class StreamMetrics:
    """Counters collected while one generation streams.

    Times are milliseconds relative to ``started_at`` (a ``perf_counter``
    reading taken just before the adapter is invoked).
    """

    started_at: float = 0.0
    emitted: int = 0
    search_events: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None
    tokens: Optional[Dict[str, Optional[int]]] = field(default=None)

    def record_chunk(self, now: float) -> None:
        self.emitted += 1
        if self.time_to_first_token_ms is None:
            self.time_to_first_token_ms = (now - self.started_at) * 1000.0

    def record_search(self) -> None:
        self.search_events += 1

    def finish(self, now: float) -> float:
        """Stamp the total duration and return elapsed seconds."""
        elapsed = now - self.started_at
        self.total_duration_ms = elapsed * 1000.0
        return elapsed

    def apply_usage(self, metadata: UsageMetadata) -> None:
        self.tokens = token_usage_dict(metadata.input_tokens, metadata.output_tokens, metadata.total_tokens)


def token_usage_dict(
    prompt: Optional[int], completion: Optional[int], total: Optional[int] = None
) -> Dict[str, Optional[int]]:
    """Return ``{prompt, completion, total}``, deriving total when both sides are known."""
    if total is None and prompt is not None and completion is not None:
        total = prompt + completion
    return {"prompt": prompt, "completion": completion, "total": total}


__all__ = ["StreamMetrics", "token_usage_dict"]
