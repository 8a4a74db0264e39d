"""
WebSocket chat route.

Protocol
--------
After accepting, the server sends ``{"type": "connection_established"}``.
Each client frame ``{"type": "chat_stream_request", "data": {...}}`` runs one
generation; every canonical event is sent as ``chat_stream_chunk``, followed
by ``chat_stream_complete`` (with the persisted user and assistant messages)
or ``chat_stream_error``. A cancelled generation sends nothing further.

Threading
---------
Generations are blocking, so each runs in the threadpool; events are sent
back on the event loop through ``anyio.from_thread.run``. While one runs, a
watcher task keeps reading the socket: a disconnect cancels the generation
at once (including provider polling or a pending remote prediction), and
frames sent meanwhile are logged and dropped. A send failure also cancels
the generation.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import anyio
import anyio.from_thread
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from relay_providers.base.cancellation import CancellationToken
from relay_providers.base.logging import get_logger, log_event
from relay_providers.base.streaming import CanonicalStreamEvent

from .app_parts.app_core import ChatStreamBody
from .transport import RelayOutcome, TransportSink

router = APIRouter()
_logger = get_logger("service.ws")


def _frame(kind: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": kind, "data": data}


async def _run_generation(websocket: WebSocket, sink: TransportSink, body: ChatStreamBody) -> bool:
    """Run one generation; return False once the client has gone away."""
    token = CancellationToken()
    state = {"finished": False, "gone": False}
    outcome: Optional[RelayOutcome] = None

    def emit(event: CanonicalStreamEvent) -> None:
        anyio.from_thread.run(websocket.send_json, _frame("chat_stream_chunk", event.to_dict()))

    async def watch() -> None:
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    state["gone"] = True
                    return
                log_event(_logger, "ws.frame.dropped", reason="generation in progress")
        finally:
            # reached on disconnect and when the handler itself is cancelled
            if not state["finished"]:
                token.cancel("client disconnected")

    async with anyio.create_task_group() as tg:
        tg.start_soon(watch)
        try:
            outcome = await run_in_threadpool(sink.relay, body.to_request(), emit, token)
        finally:
            state["finished"] = True
            tg.cancel_scope.cancel()

    if state["gone"]:
        return False
    result = outcome.result
    if result.cancelled:
        return True
    if result.success:
        await websocket.send_json(
            _frame(
                "chat_stream_complete",
                {
                    "messageId": result.message_id,
                    "userMessage": outcome.user_message,
                    "assistantMessage": outcome.assistant_message,
                    "metadata": result.metadata.to_dict() if result.metadata else None,
                },
            )
        )
        return True
    await websocket.send_json(
        _frame("chat_stream_error", {"messageId": result.message_id, "message": result.message})
    )
    return True


@router.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket) -> None:
    """Serve chat generations over one WebSocket connection."""
    container = websocket.app.state.container
    sink = TransportSink(container.normalizer, container.store)
    await websocket.accept()
    await websocket.send_json(_frame("connection_established", {}))
    try:
        while True:
            message = await websocket.receive_json()
            if not isinstance(message, dict) or message.get("type") != "chat_stream_request":
                kind = message.get("type") if isinstance(message, dict) else None
                await websocket.send_json(_frame("error", {"message": f"Unknown message type: {kind!r}"}))
                continue
            try:
                body = ChatStreamBody.model_validate(message.get("data") or {})
            except ValidationError as exc:
                await websocket.send_json(
                    _frame("chat_stream_error", {"message": "Invalid chat request", "details": exc.errors()})
                )
                continue
            if not await _run_generation(websocket, sink, body):
                log_event(_logger, "ws.disconnected", during_generation=True)
                return
    except WebSocketDisconnect:
        log_event(_logger, "ws.disconnected")


__all__ = ["router", "chat_socket"]
