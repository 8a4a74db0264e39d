"""Terminal event construction plus the consolidated end-of-stream log line."""
from __future__ import annotations

import logging
from typing import Optional, Union

from ..logging import LogContext, normalized_log_event
from ..models import UsageMetadata
from .events import StreamEnd, StreamError
from .streaming_metrics import StreamMetrics


def finalize_stream(
    *,
    logger: logging.Logger,
    ctx: LogContext,
    message_id: str,
    metrics: StreamMetrics,
    metadata: Optional[UsageMetadata] = None,
    error: Optional[str] = None,
) -> Union[StreamEnd, StreamError]:
    """Return the terminal event and log ``stream.normalizer.end``/``.error``.

    Exactly one of ``metadata`` (success) or ``error`` (failure text of the
    form ``"<code>: <message>"``) is expected.
    """
    error_code: Optional[str] = None
    if error and ":" in error:
        error_code = error.split(":", 1)[0].strip() or None

    normalized_log_event(
        logger,
        "stream.normalizer.end" if error is None else "stream.normalizer.error",
        ctx,
        phase="finalize",
        attempt=None,
        level=logging.INFO if error is None else logging.WARNING,
        emitted=metrics.emitted > 0,
        tokens=metrics.tokens,
        error_code=error_code,
        emitted_count=metrics.emitted,
        search_events=metrics.search_events or None,
        time_to_first_token_ms=metrics.time_to_first_token_ms,
        total_duration_ms=metrics.total_duration_ms,
        error=error,
    )
    if error is not None or metadata is None:
        return StreamError(error_text=error or "internal: missing usage metadata", message_id=message_id)
    return StreamEnd(message_id=message_id, metadata=metadata)


__all__ = ["finalize_stream"]
