"""Replicate adapter: prediction lifecycle over a mocked HTTP transport."""
from __future__ import annotations

import json

import httpx
import pytest

from relay_providers.base.cancellation import CancellationToken, CancelledError
from relay_providers.base.errors import ErrorCode, ProviderRequestFailed
from relay_providers.base.models import CanonicalMessage, GenerationOptions, ProviderDescriptor, ProviderKind
from relay_providers.base.streaming import TextDelta, UsageReported
from relay_providers.config import RelaySettings
from relay_providers.replicate import ReplicateAdapter
from relay_providers.replicate.helpers import build_prompt, prediction_output_text, prediction_request

BASE = "https://api.replicate.test/v1"

MESSAGES = [
    CanonicalMessage("system", "Be kind."),
    CanonicalMessage("user", "hi"),
    CanonicalMessage("assistant", "hello"),
    CanonicalMessage("user", "tell me a fox fact"),
]


def _descriptor(model="meta/meta-llama-3-8b-instruct"):
    return ProviderDescriptor(kind=ProviderKind.REPLICATE, model_id=model, secret="r8_secret")


class Script:
    """MockTransport handler replaying canned responses per (method, path)."""

    def __init__(self, routes, on_request=None):
        self.routes = {k: list(v) for k, v in routes.items()}
        self.requests = []
        self.on_request = on_request

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        key = (request.method, request.url.path)
        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"detail": f"no route for {key}"})
        status, payload = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, json=payload)


@pytest.fixture()
def run(monkeypatch):
    def _run(script, *, model="meta/meta-llama-3-8b-instruct", settings=None, token=None):
        settings = settings or RelaySettings(simulated_chunk_delay_seconds=0.0, replicate_poll_interval_seconds=0.0)
        adapter = ReplicateAdapter(settings=settings)
        client = httpx.Client(transport=httpx.MockTransport(script), base_url=BASE)
        monkeypatch.setattr(adapter, "_client_for", lambda _d: client)
        return list(adapter.generate(_descriptor(model), MESSAGES, GenerationOptions(), token))

    return _run


def test_prompt_and_request_shapes():
    assert build_prompt(MESSAGES) == "Be kind.\n\nUser: hi\n\nAssistant: hello\n\nUser: tell me a fox fact\n\nAssistant:"
    path, body = prediction_request("meta/llama:abc123", "p", 100)
    assert path == "/predictions"
    assert body == {"version": "abc123", "input": {"prompt": "p", "max_new_tokens": 100}}
    assert prediction_request("meta/llama", "p", 5)[0] == "/models/meta/llama/predictions"
    with pytest.raises(ValueError):
        prediction_request("llama", "p", 5)
    assert prediction_output_text({"output": ["Fo", None, "xes"]}) == "Foxes"
    assert prediction_output_text({"output": None}) == ""


def _succeeding_script():
    script = Script(
        {
            ("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [
                (201, {"id": "p1", "status": "starting", "urls": {"get": f"{BASE}/predictions/p1"}})
            ],
            ("GET", "/v1/predictions/p1"): [
                (200, {"id": "p1", "status": "processing"}),
                (
                    200,
                    {
                        "id": "p1",
                        "status": "succeeded",
                        "output": ["Foxes ", "have ", "whiskers ", "on ", "their legs."],
                        "metrics": {"input_token_count": 30, "output_token_count": 6},
                    },
                ),
            ],
        }
    )
    return script


def test_polls_until_succeeded(run):
    script = _succeeding_script()
    events = run(script)
    assert events == [
        TextDelta("Foxes have whiskers on "),
        TextDelta("their legs."),
        UsageReported(30, 6, 36),
    ]
    create = script.requests[0]
    assert create.headers["Authorization"] == "Bearer r8_secret"
    body = json.loads(create.content)
    assert body["input"]["prompt"].endswith("User: tell me a fox fact\n\nAssistant:")
    assert [r.method for r in script.requests] == ["POST", "GET", "GET"]


def test_versioned_model_posts_to_predictions(run):
    script = Script(
        {
            ("POST", "/v1/predictions"): [(201, {"id": "p2", "status": "succeeded", "output": "done"})],
        }
    )
    assert run(script, model="meta/llama:v1") == [TextDelta("done")]
    assert json.loads(script.requests[0].content)["version"] == "v1"


def test_failed_prediction_is_classified(run):
    script = Script(
        {
            ("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [(201, {"id": "p3", "status": "starting"})],
            ("GET", "/v1/predictions/p3"): [(200, {"id": "p3", "status": "failed", "error": "CUDA out of memory"})],
        }
    )
    with pytest.raises(ProviderRequestFailed) as info:
        run(script)
    assert info.value.message == "CUDA out of memory"
    assert info.value.provider == "replicate"


def test_canceled_prediction(run):
    script = Script(
        {("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [(201, {"id": "p4", "status": "canceled"})]}
    )
    with pytest.raises(ProviderRequestFailed) as info:
        run(script)
    assert info.value.code is ErrorCode.CANCELLED


def test_create_rejected_with_auth_error(run):
    script = Script(
        {("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [(401, {"detail": "Invalid token"})]}
    )
    with pytest.raises(ProviderRequestFailed) as info:
        run(script)
    assert info.value.code is ErrorCode.AUTH


def test_empty_output_is_decode_failure(run):
    script = Script(
        {("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [(201, {"id": "p5", "status": "succeeded", "output": []})]}
    )
    with pytest.raises(ProviderRequestFailed) as info:
        run(script)
    assert info.value.code is ErrorCode.DECODE


def test_poll_timeout_cancels_prediction(run):
    script = Script(
        {
            ("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [(201, {"id": "p6", "status": "starting"})],
            ("POST", "/v1/predictions/p6/cancel"): [(200, {"id": "p6", "status": "canceled"})],
        }
    )
    settings = RelaySettings(replicate_poll_interval_seconds=0.0, replicate_poll_timeout_seconds=-1.0)
    with pytest.raises(ProviderRequestFailed) as info:
        run(script, settings=settings)
    assert info.value.code is ErrorCode.TIMEOUT
    assert script.requests[-1].url.path == "/v1/predictions/p6/cancel"


def test_client_cancellation_cancels_prediction(run):
    token = CancellationToken()

    def on_request(request):
        if request.method == "GET":
            token.cancel("client disconnected")

    script = Script(
        {
            ("POST", "/v1/models/meta/meta-llama-3-8b-instruct/predictions"): [(201, {"id": "p7", "status": "starting"})],
            ("GET", "/v1/predictions/p7"): [(200, {"id": "p7", "status": "processing"})],
            ("POST", "/v1/predictions/p7/cancel"): [(200, {"id": "p7", "status": "canceled"})],
        },
        on_request=on_request,
    )
    with pytest.raises(CancelledError):
        run(script, token=token)
    assert [(r.method, r.url.path) for r in script.requests][-1] == ("POST", "/v1/predictions/p7/cancel")
