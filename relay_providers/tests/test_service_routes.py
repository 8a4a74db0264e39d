"""HTTP and WebSocket routes of the relay service."""
from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from relay_providers.base.context.conversation import MESSAGES
from relay_providers.base.errors import ErrorCode, ProviderRequestFailed
from relay_providers.base.models import ProviderKind
from relay_providers.base.streaming import TextDelta
from relay_providers.di import build_container
from relay_providers.persistence.interfaces import FindQuery
from relay_providers.service.app import create_app


@pytest.fixture()
def make_client(store, vault, scripted_adapter):
    def _make(script):
        adapters = [scripted_adapter(script if k is ProviderKind.OPENAI else (), kind=k) for k in ProviderKind]
        return TestClient(create_app(build_container(store=store, vault=vault, adapters=adapters)))

    return _make


def _lines(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_health(make_client):
    assert make_client([]).get("/api/health").json() == {"ok": True}


def test_ndjson_stream(make_client, add_provider, store):
    add_provider()
    client = make_client([TextDelta("Foxes "), TextDelta("run.")])
    response = client.post("/api/chat/stream", json={"text": "hi", "conversationId": "c1", "ownerId": "u1"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    lines = _lines(response)
    assert [line["type"] for line in lines] == ["start", "chunk", "chunk", "end"]
    assert lines[1]["textDelta"] == "Foxes "
    assert lines[-1]["metadata"]["providerName"] == "openai"
    stored = store.find_many(MESSAGES, FindQuery(where={"sessionId": "c1"})).records
    assert [m["role"] for m in stored] == ["user", "assistant"]


def test_ndjson_rejected_without_provider(make_client):
    response = make_client([TextDelta("never")]).post("/api/chat/stream", json={"text": "Hello", "conversationId": "c1"})
    lines = _lines(response)
    assert len(lines) == 1
    assert lines[0]["type"] == "rejected"
    assert "No active AI provider configured" in lines[0]["message"]


def test_ndjson_body_validation(make_client):
    response = make_client([]).post("/api/chat/stream", json={"text": "", "conversationId": "c1"})
    assert response.status_code == 422


def test_cors_allows_default_dev_origin(make_client):
    response = make_client([]).options(
        "/api/health",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_websocket_generation(make_client, add_provider):
    add_provider()
    client = make_client([TextDelta("Hello!")])
    with client.websocket_connect("/ws/chat") as ws:
        assert ws.receive_json() == {"type": "connection_established", "data": {}}
        ws.send_json({"type": "chat_stream_request", "data": {"text": "hi", "conversationId": "c1"}})
        frames = [ws.receive_json() for _ in range(4)]
    assert [f["type"] for f in frames] == ["chat_stream_chunk"] * 3 + ["chat_stream_complete"]
    assert [f["data"]["type"] for f in frames[:3]] == ["start", "chunk", "end"]
    complete = frames[-1]["data"]
    assert complete["messageId"] == frames[0]["data"]["messageId"]
    assert complete["assistantMessage"]["content"] == "Hello!"
    assert complete["userMessage"]["content"] == "hi"
    assert complete["metadata"]["totalTokens"] == complete["metadata"]["inputTokens"] + complete["metadata"]["outputTokens"]


def test_websocket_provider_failure(make_client, add_provider):
    add_provider()
    failure = ProviderRequestFailed(code=ErrorCode.RATE_LIMIT, message="slow down", provider="openai")
    client = make_client([failure])
    with client.websocket_connect("/ws/chat") as ws:
        ws.receive_json()
        ws.send_json({"type": "chat_stream_request", "data": {"text": "hi", "conversationId": "c1"}})
        frames = [ws.receive_json() for _ in range(3)]
    assert [f["data"].get("type") for f in frames[:2]] == ["start", "error"]
    assert frames[2]["type"] == "chat_stream_error"
    assert frames[2]["data"]["message"] == "rate_limit: slow down"


def test_websocket_rejected_request(make_client):
    with make_client([]).websocket_connect("/ws/chat") as ws:
        ws.receive_json()
        ws.send_json({"type": "chat_stream_request", "data": {"text": "Hello", "conversationId": "c1"}})
        frame = ws.receive_json()
    assert frame["type"] == "chat_stream_error"
    assert frame["data"]["messageId"] is None
    assert "No active AI provider configured" in frame["data"]["message"]


def test_websocket_unknown_and_invalid_frames(make_client):
    with make_client([]).websocket_connect("/ws/chat") as ws:
        ws.receive_json()
        ws.send_json({"type": "ping"})
        unknown = ws.receive_json()
        ws.send_json({"type": "chat_stream_request", "data": {"conversationId": "c1"}})
        invalid = ws.receive_json()
    assert unknown == {"type": "error", "data": {"message": "Unknown message type: 'ping'"}}
    assert invalid["type"] == "chat_stream_error"
    assert invalid["data"]["message"] == "Invalid chat request"
    assert invalid["data"]["details"][0]["loc"] == ["text"]
