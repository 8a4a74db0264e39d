"""Composition root for the relay.

Goals:
- Build every collaborator explicitly and hand it to its consumers; nothing
  in the package reaches for a module-level singleton.
- Let tests swap the record store, vault, corpus provider, settings or any
  adapter without patching imports.

Stores:
- With ``RELAY_SQLITE_PATH`` set, records live in that SQLite file;
  otherwise an in-memory store is used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, Optional

from ..anthropic import AnthropicAdapter
from ..base.adapters import AdapterRegistry, ProviderAdapter
from ..base.context import ConversationContextBuilder
from ..base.normalizer import StreamNormalizer
from ..base.repositories import ProviderCredentialResolver
from ..config import RelaySettings
from ..custom import CustomAdapter
from ..google import GoogleAdapter
from ..openai import OpenAIAdapter
from ..persistence.interfaces import ICredentialVault, IRecordStore, ISearchCorpusProvider
from ..persistence.memory import InMemoryRecordStore, NullSearchCorpusProvider, StaticCredentialVault
from ..persistence.sqlite import SqliteRecordStore
from ..replicate import ReplicateAdapter

SQLITE_PATH_ENV = "RELAY_SQLITE_PATH"


@dataclass
class ProvidersContainer:
    """The wired object graph for one process (or one test)."""

    store: IRecordStore
    vault: ICredentialVault
    corpus: ISearchCorpusProvider
    adapters: AdapterRegistry
    resolver: ProviderCredentialResolver
    context_builder: ConversationContextBuilder
    normalizer: StreamNormalizer


def default_adapters(settings: Optional[RelaySettings] = None) -> list[ProviderAdapter]:
    """One adapter per provider kind."""
    return [
        OpenAIAdapter(settings=settings),
        AnthropicAdapter(settings=settings),
        GoogleAdapter(settings=settings),
        ReplicateAdapter(settings=settings),
        CustomAdapter(settings=settings),
    ]


def _default_store() -> IRecordStore:
    path = os.getenv(SQLITE_PATH_ENV)
    if path and path.strip():
        return SqliteRecordStore(path.strip())
    return InMemoryRecordStore()


def build_container(
    *,
    store: Optional[IRecordStore] = None,
    vault: Optional[ICredentialVault] = None,
    corpus: Optional[ISearchCorpusProvider] = None,
    settings: Optional[RelaySettings] = None,
    adapters: Optional[Iterable[ProviderAdapter]] = None,
) -> ProvidersContainer:
    """Construct the relay object graph.

    Args:
        store: Record store; defaults to SQLite (``RELAY_SQLITE_PATH``) or memory.
        vault: Credential vault; defaults to an empty in-memory vault.
        corpus: Search-corpus provider; defaults to one that never has a corpus.
        settings: Fixed settings; ``None`` reads ``get_relay_settings()`` lazily.
        adapters: Replacement adapters; every provider kind must be covered.
    """
    store = store if store is not None else _default_store()
    vault = vault if vault is not None else StaticCredentialVault()
    corpus = corpus if corpus is not None else NullSearchCorpusProvider()
    registry = AdapterRegistry(adapters if adapters is not None else default_adapters(settings))
    resolver = ProviderCredentialResolver(store, vault, settings=settings)
    context_builder = ConversationContextBuilder(store)
    normalizer = StreamNormalizer(
        resolver=resolver,
        context_builder=context_builder,
        adapters=registry,
        corpus_provider=corpus,
    )
    return ProvidersContainer(
        store=store,
        vault=vault,
        corpus=corpus,
        adapters=registry,
        resolver=resolver,
        context_builder=context_builder,
        normalizer=normalizer,
    )


__all__ = ["SQLITE_PATH_ENV", "ProvidersContainer", "build_container", "default_adapters"]
