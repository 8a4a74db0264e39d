"""Shared fixtures for the relay test suite.

Provides a deterministic ``perf_counter``, capture of the structured log
stream, an in-memory store/vault pair with a helper for seeding provider
configurations, and a scripted adapter for normalizer contract tests.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import pytest

from relay_providers.base.adapters import AdapterRegistry, ProviderAdapter
from relay_providers.base.context import ConversationContextBuilder
from relay_providers.base.logging import BASE_LOGGER_NAME, get_logger
from relay_providers.base.models import ProviderKind
from relay_providers.base.normalizer import StreamNormalizer
from relay_providers.base.repositories import PROVIDER_CONFIGS, ProviderCredentialResolver
import relay_providers.config as config_mod
from relay_providers.config import ENV_FIELD_MAP, RelaySettings
from relay_providers.config.env import ENV_ALIASES
from relay_providers.persistence.memory import InMemoryRecordStore, StaticCredentialVault


@pytest.fixture()
def fake_clock(monkeypatch):
    """Provide a deterministic perf_counter sequence.

    Usage: fake_clock.advance(ms) to move time forward.
    """
    state = {"t": 0.0}

    def perf_counter():
        return state["t"]

    def advance(ms: float):
        state["t"] += ms / 1000.0

    monkeypatch.setattr(time, "perf_counter", perf_counter)
    return type("Clock", (), {"advance": staticmethod(advance)})


class LogCapture(list):
    """Captured log records with helpers for the JSON payloads."""

    def payloads(self) -> List[Dict[str, Any]]:
        out = []
        for record in self:
            try:
                payload = json.loads(record.getMessage())
            except ValueError:
                continue
            if isinstance(payload, dict):
                out.append(payload)
        return out

    def events(self, name: str) -> List[Dict[str, Any]]:
        return [p for p in self.payloads() if p.get("event") == name]

    def text(self) -> str:
        return "\n".join(r.getMessage() for r in self)


@pytest.fixture()
def log_capture(monkeypatch):
    """Attach a collecting handler to the shared ``relay`` logger at DEBUG."""
    monkeypatch.setenv("RELAY_LOG_LEVEL", "DEBUG")
    base = get_logger(BASE_LOGGER_NAME)
    records = LogCapture()
    handler = logging.Handler(level=logging.DEBUG)
    handler.emit = records.append  # type: ignore[method-assign]
    base.addHandler(handler)
    try:
        yield records
    finally:
        base.removeHandler(handler)


@pytest.fixture()
def clean_provider_env(monkeypatch):
    """Hide provider variables, config files and .env from the config layer."""
    monkeypatch.setattr(config_mod, "_DOTENV_LOADED", True)
    monkeypatch.delenv("PROVIDERS_CONFIG_FILE", raising=False)
    config_mod.reset_config_cache()
    names = {alias for aliases in ENV_ALIASES.values() for alias in aliases}
    for kind in ProviderKind:
        names.update(f"{kind.value.upper()}_{suffix}" for suffix in ENV_FIELD_MAP.values())
    for name in names:
        monkeypatch.delenv(name, raising=False)
    yield
    config_mod.reset_config_cache()


@pytest.fixture()
def relay_settings() -> RelaySettings:
    """Settings with simulated delays and poll intervals disabled."""
    return RelaySettings(simulated_chunk_delay_seconds=0.0, replicate_poll_interval_seconds=0.0)


@pytest.fixture()
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def vault() -> StaticCredentialVault:
    return StaticCredentialVault()


@pytest.fixture()
def add_provider(store, vault) -> Callable[..., Dict[str, Any]]:
    """Insert an active provider configuration and store its secret."""

    def _add(
        config_id: str = "cfg-openai",
        *,
        kind: str = "openai",
        model: str = "gpt-4o-mini",
        secret: Optional[str] = "sk-live-0001",
        activated_at: Any = "2024-05-01T10:00:00+00:00",
        **fields: Any,
    ) -> Dict[str, Any]:
        record = {
            "id": config_id,
            "kind": kind,
            "modelId": model,
            "keyId": f"key-{config_id}",
            "isActive": True,
            "activatedAt": activated_at,
        }
        record.update(fields)
        if secret is not None:
            vault.put(record["keyId"], secret)
        store.insert(PROVIDER_CONFIGS, record)
        return record

    return _add


class ScriptedAdapter(ProviderAdapter):
    """Adapter that replays a fixed script of provider events.

    Exceptions in the script are raised at their position. ``calls`` records
    ``(descriptor, messages, options)`` for every generation.
    """

    kind = ProviderKind.OPENAI

    def __init__(
        self,
        script: Iterable[Any] = (),
        *,
        kind: ProviderKind = ProviderKind.OPENAI,
        settings: Optional[RelaySettings] = None,
        on_event: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.kind = kind
        super().__init__(settings=settings)
        self.script = list(script)
        self.on_event = on_event
        self.calls: List[tuple] = []
        self.closed = False

    def _generate(self, descriptor, messages, options, token, ctx) -> Iterator[Any]:
        self.calls.append((descriptor, list(messages), options))
        try:
            for index, item in enumerate(self.script):
                if isinstance(item, BaseException):
                    raise item
                yield item
                if self.on_event is not None:
                    self.on_event(index)
        finally:
            self.closed = True


@pytest.fixture()
def make_normalizer(store, vault):
    """Build a `StreamNormalizer` over the shared store/vault and given adapters."""

    def _make(*adapters: ProviderAdapter, corpus=None, settings: Optional[RelaySettings] = None) -> StreamNormalizer:
        return StreamNormalizer(
            resolver=ProviderCredentialResolver(store, vault, settings=settings or RelaySettings()),
            context_builder=ConversationContextBuilder(store),
            adapters=AdapterRegistry(adapters, require_all=False),
            corpus_provider=corpus,
        )

    return _make


@pytest.fixture()
def scripted_adapter():
    """The `ScriptedAdapter` class, for tests that build their own instances."""
    return ScriptedAdapter
