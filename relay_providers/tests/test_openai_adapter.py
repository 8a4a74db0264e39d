"""OpenAI and OpenAI-compatible adapters against a fake SDK client."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from relay_providers.base.errors import ErrorCode, ProviderRequestFailed
from relay_providers.base.models import (
    Capability,
    CanonicalMessage,
    GenerationOptions,
    ProviderDescriptor,
    ProviderKind,
    SearchResult,
)
from relay_providers.base.streaming import SearchResultsFound, SearchStarted, TextDelta, UsageReported
from relay_providers.custom import CustomAdapter
from relay_providers.openai import OpenAIAdapter

MESSAGES = [
    CanonicalMessage("system", "Be brief."),
    CanonicalMessage("user", "where do foxes live"),
]


class FakeStream:
    def __init__(self, frames):
        self.frames = list(frames)
        self.closed = False

    def __iter__(self):
        return iter(self.frames)

    def close(self):
        self.closed = True


class FakeOpenAI:
    """Records ``create`` kwargs; each call pops the next scripted reply."""

    def __init__(self, chat=(), responses=()):
        self.chat_calls = []
        self.responses_calls = []
        self._chat = list(chat)
        self._responses = list(responses)
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._chat_create))
        self.responses = SimpleNamespace(create=self._responses_create)

    @staticmethod
    def _reply(item):
        if isinstance(item, BaseException):
            raise item
        return item

    def _chat_create(self, **kwargs):
        self.chat_calls.append(kwargs)
        return self._reply(self._chat.pop(0))

    def _responses_create(self, **kwargs):
        self.responses_calls.append(kwargs)
        return self._reply(self._responses.pop(0))


def _descriptor(model, *caps, kind=ProviderKind.OPENAI, endpoint=None):
    return ProviderDescriptor(
        kind=kind, model_id=model, secret="sk-test", endpoint=endpoint, capabilities=frozenset(caps) or frozenset({Capability.STREAMING})
    )


def _chunk(content=None, usage=None):
    choices = [SimpleNamespace(delta=SimpleNamespace(content=content))] if content is not None else []
    return SimpleNamespace(choices=choices, usage=usage)


def _event(etype, **fields):
    return SimpleNamespace(type=etype, **fields)


@pytest.fixture()
def adapter(monkeypatch, relay_settings):
    def _build(fake, cls=OpenAIAdapter):
        instance = cls(settings=relay_settings)
        monkeypatch.setattr(instance, "_make_client", lambda _descriptor: fake)
        return instance

    return _build


def test_chat_completions_stream(adapter):
    stream = FakeStream(
        [
            _chunk("Hel"),
            _chunk("lo"),
            _chunk(None, SimpleNamespace(prompt_tokens=7, completion_tokens=2, total_tokens=9)),
        ]
    )
    fake = FakeOpenAI(chat=[stream])
    events = list(adapter(fake).generate(_descriptor("gpt-4o-mini"), MESSAGES, GenerationOptions()))
    assert events == [TextDelta("Hel"), TextDelta("lo"), UsageReported(7, 2, 9)]
    (params,) = fake.chat_calls
    assert params["model"] == "gpt-4o-mini"
    assert params["messages"] == [m.to_dict() for m in MESSAGES]
    assert params["stream"] is True
    assert params["stream_options"] == {"include_usage": True}
    assert stream.closed
    assert fake.responses_calls == []


def test_responses_stream_with_web_search(adapter):
    stream = FakeStream(
        [
            _event("response.created"),
            _event("response.web_search_call.in_progress", item_id="ws_1"),
            _event("response.web_search_call.searching", item_id="ws_1"),
            _event("response.output_text.delta", delta="Foxes"),
            _event("response.output_text.delta", delta=" roam."),
            _event(
                "response.output_text.annotation.added",
                annotation={"type": "url_citation", "url": "https://ex.org/fox", "title": "Ex", "start_index": 0, "end_index": 5},
            ),
            _event(
                "response.completed",
                response=SimpleNamespace(output=[], usage=SimpleNamespace(input_tokens=11, output_tokens=3, total_tokens=14)),
            ),
        ]
    )
    fake = FakeOpenAI(responses=[stream])
    descriptor = _descriptor("gpt-4o", Capability.STREAMING, Capability.WEB_SEARCH)
    events = list(adapter(fake).generate(descriptor, MESSAGES, GenerationOptions(web_search_requested=True)))
    assert events == [
        SearchStarted("where do foxes live"),
        TextDelta("Foxes"),
        TextDelta(" roam."),
        SearchResultsFound("where do foxes live", (SearchResult("Ex", "https://ex.org/fox", "Foxes"),)),
        UsageReported(11, 3, 14),
    ]
    (params,) = fake.responses_calls
    assert params["tools"] == [{"type": "web_search_preview"}]
    assert params["instructions"] == "Be brief."
    assert params["input"] == [{"role": "user", "content": "where do foxes live"}]
    assert params["stream"] is True
    assert "temperature" in params


def test_reasoning_model_uses_responses_effort(adapter):
    fake = FakeOpenAI(responses=[FakeStream([_event("response.output_text.delta", delta="42")])])
    descriptor = _descriptor("o3-mini", Capability.STREAMING, Capability.REASONING)
    events = list(adapter(fake).generate(descriptor, MESSAGES, GenerationOptions(reasoning_requested=True)))
    assert events == [TextDelta("42")]
    (params,) = fake.responses_calls
    assert params["reasoning"] == {"effort": "high"}
    assert "temperature" not in params


def test_gpt5_takes_reasoning_path_without_temperature(adapter):
    fake = FakeOpenAI(responses=[FakeStream([_event("response.output_text.delta", delta="ok")])])
    events = list(adapter(fake).generate(_descriptor("gpt-5"), MESSAGES, GenerationOptions()))
    assert events == [TextDelta("ok")]
    assert fake.chat_calls == []
    (params,) = fake.responses_calls
    assert params["reasoning"] == {"effort": "medium"}
    assert params["max_output_tokens"] == 2000
    assert "temperature" not in params


def test_reasoning_model_on_compatible_endpoint_uses_completion_token_cap(adapter):
    fake = FakeOpenAI(chat=[FakeStream([_chunk("ok")])])
    descriptor = _descriptor("gpt-5-mini", kind=ProviderKind.CUSTOM, endpoint="http://localhost:8000/v1")
    list(adapter(fake, CustomAdapter).generate(descriptor, MESSAGES, GenerationOptions()))
    (params,) = fake.chat_calls
    assert params["max_completion_tokens"] == 2000
    assert "max_tokens" not in params
    assert "temperature" not in params


def test_simulated_reasoning_model(adapter):
    reply = SimpleNamespace(
        output_text="one two three four five six",
        usage=SimpleNamespace(input_tokens=20, output_tokens=6, total_tokens=26),
    )
    fake = FakeOpenAI(responses=[reply])
    events = list(adapter(fake).generate(_descriptor("o1-mini"), MESSAGES, GenerationOptions()))
    assert events == [TextDelta("one two three four "), TextDelta("five six"), UsageReported(20, 6, 26)]
    (params,) = fake.responses_calls
    assert "stream" not in params
    assert "instructions" not in params
    assert params["input"][0]["content"] == "Be brief.\n\nwhere do foxes live"


def test_simulated_reasoning_model_without_text(adapter):
    fake = FakeOpenAI(responses=[SimpleNamespace(output_text="", output=[])])
    with pytest.raises(ProviderRequestFailed) as info:
        list(adapter(fake).generate(_descriptor("o1-preview"), MESSAGES, GenerationOptions()))
    assert info.value.code is ErrorCode.DECODE


class _StatusError(Exception):
    def __init__(self, status_code, message):
        super().__init__(message)
        self.status_code = status_code


def test_rejected_corpus_is_detached_once(adapter, log_capture):
    fake = FakeOpenAI(
        responses=[
            _StatusError(404, "Vector store vs_gone not found"),
            FakeStream([_event("response.output_text.delta", delta="ok")]),
        ]
    )
    descriptor = _descriptor("gpt-4o", Capability.STREAMING, Capability.FILE_SEARCH)
    events = list(adapter(fake).generate(descriptor, MESSAGES, GenerationOptions(file_search_context="vs_gone")))
    assert events == [TextDelta("ok")]
    first, second = fake.responses_calls
    assert first["tools"] == [{"type": "file_search", "vector_store_ids": ["vs_gone"]}]
    assert "tools" not in second
    assert log_capture.events("stream.file_search.detached")[0]["error_code"] == "not_found"


def test_auth_failure_is_not_retried(adapter):
    fake = FakeOpenAI(responses=[_StatusError(401, "Incorrect API key")])
    descriptor = _descriptor("gpt-4o", Capability.STREAMING, Capability.FILE_SEARCH)
    with pytest.raises(ProviderRequestFailed) as info:
        list(adapter(fake).generate(descriptor, MESSAGES, GenerationOptions(file_search_context="vs_1")))
    assert info.value.code is ErrorCode.AUTH
    assert len(fake.responses_calls) == 1


def test_response_failed_event_raises(adapter):
    stream = FakeStream(
        [
            _event("response.output_text.delta", delta="par"),
            _event("response.failed", response=SimpleNamespace(error=SimpleNamespace(message="rate limit reached"))),
        ]
    )
    fake = FakeOpenAI(responses=[stream])
    gen = adapter(fake).generate(_descriptor("o3"), MESSAGES, GenerationOptions())
    assert next(gen) == TextDelta("par")
    with pytest.raises(ProviderRequestFailed) as info:
        next(gen)
    assert info.value.code is ErrorCode.RATE_LIMIT
    assert stream.closed


def test_custom_adapter_withholds_stored_search_flags(adapter, log_capture):
    fake = FakeOpenAI(chat=[FakeStream([_chunk("hi")])])
    descriptor = _descriptor(
        "llama3",
        Capability.STREAMING,
        Capability.WEB_SEARCH,
        Capability.FILE_SEARCH,
        kind=ProviderKind.CUSTOM,
        endpoint="http://localhost:11434/v1",
    )
    options = GenerationOptions(web_search_requested=True, file_search_context="vs_1")
    events = list(adapter(fake, CustomAdapter).generate(descriptor, MESSAGES, options))
    assert events == [
        TextDelta("_Web search is not available for model llama3; answering without it._\n\n"),
        TextDelta("hi"),
    ]
    assert fake.responses_calls == []
    assert fake.chat_calls[0]["model"] == "llama3"
    assert "tools" not in fake.chat_calls[0]
    withheld = {e["capability"] for e in log_capture.events("stream.capability.unsupported")}
    assert withheld == {"webSearch", "fileSearch"}


def test_real_client_targets_descriptor_endpoint(relay_settings):
    descriptor = _descriptor("llama3", kind=ProviderKind.CUSTOM, endpoint="http://localhost:11434/v1")
    client = CustomAdapter(settings=relay_settings)._make_client(descriptor)
    assert str(client.base_url).rstrip("/") == "http://localhost:11434/v1"
    assert client.max_retries == 0
