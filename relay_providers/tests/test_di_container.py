"""Composition root wiring."""
from __future__ import annotations

import pytest

from relay_providers.base.models import GenerationRequest, ProviderKind
from relay_providers.base.streaming import TextDelta
from relay_providers.di import build_container
from relay_providers.di.container import SQLITE_PATH_ENV
from relay_providers.google import GoogleAdapter
from relay_providers.persistence.memory import InMemoryRecordStore, NullSearchCorpusProvider
from relay_providers.persistence.sqlite import SqliteRecordStore


def test_defaults_are_in_memory(monkeypatch):
    monkeypatch.delenv(SQLITE_PATH_ENV, raising=False)
    container = build_container()
    assert isinstance(container.store, InMemoryRecordStore)
    assert isinstance(container.corpus, NullSearchCorpusProvider)
    assert isinstance(container.adapters.get(ProviderKind.GOOGLE), GoogleAdapter)
    assert set(container.adapters.kinds()) == set(ProviderKind)


def test_sqlite_store_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(SQLITE_PATH_ENV, str(tmp_path / "relay.db"))
    container = build_container()
    try:
        assert isinstance(container.store, SqliteRecordStore)
    finally:
        container.store.close()


def test_adapters_must_cover_every_kind(scripted_adapter):
    with pytest.raises(ValueError):
        build_container(adapters=[scripted_adapter()])


def test_wired_graph_shares_store(store, vault, add_provider, scripted_adapter):
    add_provider()
    adapters = [scripted_adapter([TextDelta("wired")] if k is ProviderKind.OPENAI else (), kind=k) for k in ProviderKind]
    container = build_container(store=store, vault=vault, adapters=adapters)
    assert container.store is store and container.vault is vault
    events = []
    result = container.normalizer.stream(GenerationRequest(text="hi", conversation_id="c1"), events.append)
    assert result.final_text == "wired"
