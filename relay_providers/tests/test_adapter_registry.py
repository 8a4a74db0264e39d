"""Adapter registry dispatch and shared adapter behavior."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

from relay_providers.base.adapters import AdapterRegistry, conversation_turns, last_user_text, system_text
from relay_providers.base.cancellation import CancellationToken
from relay_providers.base.errors import ErrorCode, ProviderDecodeFailed, ProviderRequestFailed
from relay_providers.base.logging import LogContext
from relay_providers.base.models import (
    Capability,
    CanonicalMessage,
    GenerationOptions,
    ProviderDescriptor,
    ProviderKind,
)
from relay_providers.base.streaming import TextDelta


def _descriptor(kind=ProviderKind.OPENAI, model="gpt-4o-mini", caps=(Capability.STREAMING,)):
    return ProviderDescriptor(kind=kind, model_id=model, secret="sk-test", capabilities=frozenset(caps))


def test_registry_requires_every_kind(scripted_adapter):
    with pytest.raises(ValueError, match="no adapter registered"):
        AdapterRegistry([scripted_adapter(kind=ProviderKind.OPENAI)])
    full = AdapterRegistry([scripted_adapter(kind=k) for k in ProviderKind])
    assert set(full.kinds()) == set(ProviderKind)


def test_registry_rejects_duplicates_and_unknown_lookups(scripted_adapter):
    with pytest.raises(ValueError, match="duplicate"):
        AdapterRegistry([scripted_adapter(), scripted_adapter()], require_all=False)
    partial = AdapterRegistry([scripted_adapter()], require_all=False)
    assert partial.get(ProviderKind.OPENAI).kind is ProviderKind.OPENAI
    with pytest.raises(LookupError):
        partial.get(ProviderKind.REPLICATE)


def test_default_adapters_cover_all_kinds():
    from relay_providers.di import default_adapters

    registry = AdapterRegistry(default_adapters())
    assert {a.kind for a in registry.kinds().values()} == set(ProviderKind)


def test_unsupported_web_search_becomes_notice(scripted_adapter, log_capture):
    adapter = scripted_adapter([TextDelta("answer")])
    events = list(
        adapter.generate(
            _descriptor(model="gpt-3.5-turbo"),
            [CanonicalMessage("user", "hi")],
            GenerationOptions(web_search_requested=True, reasoning_requested=True),
        )
    )
    assert events[0] == TextDelta("_Web search is not available for model gpt-3.5-turbo; answering without it._\n\n")
    assert events[1] == TextDelta("answer")
    _, _, options = adapter.calls[0]
    assert options.web_search_requested is False
    assert options.reasoning_requested is False
    caps = {e["capability"] for e in log_capture.events("stream.capability.unsupported")}
    assert caps == {"webSearch", "reasoning"}


def test_supported_options_pass_through(scripted_adapter):
    adapter = scripted_adapter([])
    caps = (Capability.STREAMING, Capability.WEB_SEARCH, Capability.FILE_SEARCH)
    list(adapter.generate(_descriptor(caps=caps), [], GenerationOptions(web_search_requested=True, file_search_context="vs_1")))
    _, _, options = adapter.calls[0]
    assert options.web_search_requested is True
    assert options.file_search_context == "vs_1"


def test_foreign_exceptions_are_wrapped(scripted_adapter):
    adapter = scripted_adapter([TextDelta("a"), ConnectionError("connection reset by peer")])
    gen = adapter.generate(_descriptor(), [], GenerationOptions())
    assert next(gen) == TextDelta("a")
    with pytest.raises(ProviderRequestFailed) as info:
        next(gen)
    assert info.value.code is ErrorCode.TRANSIENT
    assert info.value.provider == "openai"


class _Stream:
    def __init__(self, frames):
        self.frames = frames
        self.closed = False

    def __iter__(self):
        return iter(self.frames)

    def close(self):
        self.closed = True


def _translate(frame):
    if frame.kind == "bad":
        raise KeyError("missing")
    return [TextDelta(frame.text)]


def test_decode_stream_skips_bad_frames_and_closes(scripted_adapter, log_capture):
    adapter = scripted_adapter()
    stream = _Stream([SimpleNamespace(kind="bad", type="ping"), SimpleNamespace(kind="ok", text="hi")])
    events = list(adapter._decode_stream(stream, _translate, LogContext(provider="openai"), CancellationToken()))
    assert events == [TextDelta("hi")]
    assert stream.closed
    assert log_capture.events("stream.frame.skipped")[0]["frame_type"] == "ping"


def test_decode_stream_with_only_bad_frames_fails(scripted_adapter):
    adapter = scripted_adapter()
    stream = _Stream([SimpleNamespace(kind="bad"), SimpleNamespace(kind="bad")])
    with pytest.raises(ProviderDecodeFailed, match="2 frames skipped"):
        list(adapter._decode_stream(stream, _translate, LogContext(provider="openai"), CancellationToken()))
    assert stream.closed


def test_message_helpers():
    messages = [
        CanonicalMessage("system", "rules"),
        CanonicalMessage("user", "one"),
        CanonicalMessage("assistant", "two"),
        CanonicalMessage("user", "three"),
    ]
    assert system_text(messages) == "rules"
    assert [m.content for m in conversation_turns(messages)] == ["one", "two", "three"]
    assert last_user_text(messages) == "three"
    assert last_user_text([]) == ""
