"""Transport sink: forwards canonical events and persists the finished turn.

Purpose
-------
Sit between a transport (NDJSON over HTTP, WebSocket) and the
`StreamNormalizer`. Events pass through unchanged; once the generation has
returned, the turn is written to the ``chat_messages`` collection:

- the user turn, stamped with the time it arrived, unless the client
  disconnected;
- the assistant turn, with its usage metadata, only when generation
  succeeded.

The user turn is written after generation so the context builder never
reads it back as prior history for the same request.

Failure semantics
-----------------
A failed insert is logged and reported as a missing record; it never turns a
successful generation into an error.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from relay_providers.base.cancellation import CancellationToken
from relay_providers.base.context.conversation import MESSAGES
from relay_providers.base.logging import LogContext, get_logger, normalized_log_event
from relay_providers.base.models import GenerationRequest, GenerationResult
from relay_providers.base.normalizer import EventSink, StreamNormalizer
from relay_providers.base.streaming import CanonicalStreamEvent
from relay_providers.persistence.interfaces import IRecordStore

Record = Dict[str, Any]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


@dataclass
class RelayOutcome:
    """Generation result plus whatever was persisted for it."""

    result: GenerationResult
    user_message: Optional[Record] = None
    assistant_message: Optional[Record] = None


class TransportSink:
    """Runs generations for a transport and persists their outcome.

    One sink serves one generation at a time; ``outcome`` holds the most
    recent one.
    """

    def __init__(
        self,
        normalizer: StreamNormalizer,
        store: IRecordStore,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._normalizer = normalizer
        self._store = store
        self._logger = logger or get_logger("transport")
        self.outcome: Optional[RelayOutcome] = None

    def relay(
        self,
        request: GenerationRequest,
        emit: EventSink,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> RelayOutcome:
        """Push every event to ``emit`` (blocking), then persist the turn."""
        arrived_at = _now_iso()
        result = self._normalizer.stream(request, emit, cancellation_token)
        self.outcome = self.persist(request, result, arrived_at)
        return self.outcome

    def iter_events(
        self,
        request: GenerationRequest,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Iterator[CanonicalStreamEvent]:
        """Pull-style variant of :meth:`relay` for streaming HTTP responses.

        Closing the iterator early counts as a client disconnect. The outcome
        is available as ``outcome`` once the iterator is exhausted or closed.
        """
        arrived_at = _now_iso()
        session = self._normalizer.open(request, cancellation_token)
        try:
            yield from session
        finally:
            session.close()
            self.outcome = self.persist(request, session.result, arrived_at)

    def persist(
        self, request: GenerationRequest, result: Optional[GenerationResult], arrived_at: str
    ) -> RelayOutcome:
        """Write the user and assistant turns for a finished generation."""
        if result is None or result.cancelled:
            result = result or GenerationResult(success=False, cancelled=True)
            self._log("transport.persist.skipped", request, result, level=logging.INFO)
            return RelayOutcome(result=result)

        outcome = RelayOutcome(result=result)
        outcome.user_message = self._insert(
            request,
            result,
            {
                "id": str(uuid.uuid4()),
                "sessionId": request.conversation_id,
                "userId": request.owner_id,
                "role": "user",
                "content": request.text,
                "createdAt": arrived_at,
            },
        )
        if result.success:
            outcome.assistant_message = self._insert(
                request,
                result,
                {
                    "id": result.message_id or str(uuid.uuid4()),
                    "sessionId": request.conversation_id,
                    "userId": request.owner_id,
                    "role": "assistant",
                    "content": result.final_text or "",
                    "createdAt": _now_iso(),
                    "metadata": result.metadata.to_dict() if result.metadata else None,
                },
            )
        return outcome

    def _insert(self, request: GenerationRequest, result: GenerationResult, record: Record) -> Optional[Record]:
        stored = self._store.insert(MESSAGES, record)
        if not stored.success:
            self._log(
                "transport.persist.failed",
                request,
                result,
                level=logging.ERROR,
                role=record["role"],
                error=stored.error,
            )
            return None
        return stored.record or record

    def _log(
        self,
        event: str,
        request: GenerationRequest,
        result: GenerationResult,
        *,
        level: int,
        **fields: Any,
    ) -> None:
        normalized_log_event(
            self._logger,
            event,
            LogContext(request_id=result.message_id, conversation_id=request.conversation_id),
            phase="finalize",
            attempt=None,
            level=level,
            emitted=None,
            tokens=None,
            success=result.success,
            cancelled=result.cancelled or None,
            **fields,
        )


__all__ = ["RelayOutcome", "TransportSink"]
