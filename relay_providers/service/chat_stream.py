"""
NDJSON streaming chat route.

Purpose
-------
Expose ``POST /api/chat/stream``: one canonical stream event per line, in
the order the normalizer produces them. Preflight failures (no provider,
unreadable history) produce no event lines; the response then carries a
single ``{"type": "rejected", ...}`` line so the client can tell an empty
stream from a dropped connection.

Cancellation
------------
Each event is pulled from the blocking generation in a worker thread while
the request is polled for a client disconnect. A disconnect (or Starlette
cancelling the response) cancels the generation's token straight away, so
provider polling stops and the transport sink skips persistence.
"""
from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, Iterator, Optional

import anyio
import anyio.to_thread
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from relay_providers.base.cancellation import CancellationToken
from relay_providers.base.models import GenerationRequest
from relay_providers.base.streaming import CanonicalStreamEvent
from relay_providers.di import ProvidersContainer

from .app_parts.app_core import ChatStreamBody, get_container
from .transport import TransportSink

router = APIRouter()

DISCONNECT_POLL_SECONDS = 0.25


def _line(payload: dict) -> bytes:
    return (json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8")


async def _next_event(
    events: Iterator[CanonicalStreamEvent],
    client: Request,
    token: CancellationToken,
    poll_seconds: float,
) -> Optional[CanonicalStreamEvent]:
    """Return the next event (``None`` when exhausted), cancelling ``token`` if the client leaves."""
    state: Dict[str, Any] = {"event": None, "done": False}

    async with anyio.create_task_group() as tg:

        async def pull() -> None:
            state["event"] = await anyio.to_thread.run_sync(next, events, None)
            state["done"] = True
            tg.cancel_scope.cancel()

        async def watch() -> None:
            try:
                while not await client.is_disconnected():
                    await anyio.sleep(poll_seconds)
            finally:
                # also reached when the response itself is cancelled mid-pull
                if not state["done"]:
                    token.cancel("client disconnected")

        tg.start_soon(pull)
        tg.start_soon(watch)
    return state["event"]


async def stream_ndjson(
    sink: TransportSink,
    request: GenerationRequest,
    client: Request,
    token: CancellationToken,
    *,
    poll_seconds: float = DISCONNECT_POLL_SECONDS,
) -> AsyncIterator[bytes]:
    """Yield NDJSON lines for one generation, then a rejection line if it never started."""
    events = sink.iter_events(request, token)
    emitted = 0
    try:
        while True:
            event = await _next_event(events, client, token, poll_seconds)
            if event is None:
                break
            emitted += 1
            yield _line(event.to_dict())
    finally:
        if sink.outcome is None:
            token.cancel("client disconnected")
            with anyio.CancelScope(shield=True):
                await anyio.to_thread.run_sync(events.close)
    outcome = sink.outcome
    if emitted == 0 and outcome is not None:
        yield _line({"type": "rejected", "message": outcome.result.message})


@router.post("/api/chat/stream")
def post_chat_stream(
    body: ChatStreamBody,
    client: Request,
    container: ProvidersContainer = Depends(get_container),
) -> StreamingResponse:
    """Stream one generation as NDJSON."""
    sink = TransportSink(container.normalizer, container.store)
    stream = stream_ndjson(sink, body.to_request(), client, CancellationToken())
    return StreamingResponse(stream, media_type="application/x-ndjson")


__all__ = ["router", "post_chat_stream", "stream_ndjson"]
