"""ProviderCredentialResolver selection rules."""
from __future__ import annotations

import pytest

from relay_providers.base.errors import NoProviderConfigured
from relay_providers.base.models import Capability, ProviderKind
from relay_providers.base.repositories import PROVIDER_CONFIGS, ProviderCredentialResolver
from relay_providers.config import RelaySettings


@pytest.fixture()
def resolver(store, vault, clean_provider_env):
    return ProviderCredentialResolver(store, vault, settings=RelaySettings())


def test_explicit_selector_resolves_decrypted_descriptor(resolver, add_provider):
    add_provider("cfg-a", kind="anthropic", model="claude-3-7-sonnet-latest", secret="sk-ant-1")
    descriptor = resolver.resolve("cfg-a")
    assert descriptor.kind is ProviderKind.ANTHROPIC
    assert descriptor.model_id == "claude-3-7-sonnet-latest"
    assert descriptor.secret == "sk-ant-1"
    assert descriptor.endpoint == "https://api.anthropic.com"
    assert descriptor.supports(Capability.REASONING)
    assert descriptor.config_id == "cfg-a"


@pytest.mark.parametrize(
    "fields",
    [{"isActive": False}, {"isEnabled": False}],
)
def test_explicit_selector_must_be_active_and_enabled(resolver, add_provider, fields):
    add_provider("cfg-a", **fields)
    with pytest.raises(NoProviderConfigured):
        resolver.resolve("cfg-a")


def test_explicit_selector_with_undecryptable_key(resolver, add_provider):
    add_provider("cfg-a", secret=None)
    with pytest.raises(NoProviderConfigured, match="decrypted"):
        resolver.resolve("cfg-a")


def test_unknown_selector(resolver):
    with pytest.raises(NoProviderConfigured):
        resolver.resolve("nope")


def test_default_prefers_most_recent_activation(resolver, add_provider):
    add_provider("cfg-openai", kind="openai", activated_at="2024-05-01T10:00:00+00:00")
    add_provider("cfg-google", kind="google", model="gemini-1.5-pro", activated_at="2024-06-01T10:00:00+00:00")
    assert resolver.resolve().config_id == "cfg-google"
    assert resolver.resolve("default").config_id == "cfg-google"


def test_default_ties_break_by_family_priority(resolver, add_provider):
    same = "2024-05-01T10:00:00+00:00"
    add_provider("cfg-replicate", kind="replicate", model="meta/llama", activated_at=same)
    add_provider("cfg-anthropic", kind="anthropic", model="claude-3-5-haiku-latest", activated_at=same)
    add_provider("cfg-google", kind="google", model="gemini-1.5-pro", activated_at=same)
    assert resolver.resolve().config_id == "cfg-google"


def test_epoch_activation_times_compare_with_iso(resolver, add_provider):
    add_provider("cfg-old", kind="openai", activated_at="2020-01-01T00:00:00+00:00")
    add_provider("cfg-new", kind="anthropic", model="claude-3-5-haiku-latest", activated_at=1893456000)  # 2030
    assert resolver.resolve().config_id == "cfg-new"


def test_default_skips_undecryptable_configs(resolver, add_provider, log_capture):
    add_provider("cfg-broken", kind="openai", secret=None, activated_at="2024-07-01T00:00:00+00:00")
    add_provider("cfg-ok", kind="google", model="gemini-1.5-pro", activated_at="2024-01-01T00:00:00+00:00")
    assert resolver.resolve().config_id == "cfg-ok"
    assert log_capture.events("credentials.resolve.skip")[0]["config_id"] == "cfg-broken"


def test_default_with_nothing_active(resolver, add_provider):
    add_provider("cfg-a", isActive=False)
    with pytest.raises(NoProviderConfigured, match="No active AI provider configured"):
        resolver.resolve()


def test_custom_kind_requires_endpoint(resolver, add_provider):
    add_provider("cfg-custom", kind="custom", model="llama3")
    with pytest.raises(NoProviderConfigured, match="endpoint"):
        resolver.resolve("cfg-custom")
    add_provider("cfg-custom-2", kind="custom", model="llama3", endpoint="http://localhost:11434/v1")
    assert resolver.resolve("cfg-custom-2").endpoint == "http://localhost:11434/v1"


def test_stored_capabilities_override_inference(resolver, add_provider):
    add_provider("cfg-a", kind="openai", model="gpt-4o", capabilities=["streaming"])
    assert resolver.resolve("cfg-a").capabilities == frozenset({Capability.STREAMING})


def test_store_failure_is_no_provider(resolver, store, add_provider):
    add_provider("cfg-a")
    store.fail_collections.add(PROVIDER_CONFIGS)
    with pytest.raises(NoProviderConfigured):
        resolver.resolve("cfg-a")
    with pytest.raises(NoProviderConfigured):
        resolver.resolve()


def test_env_fallback_in_priority_order(store, vault, monkeypatch, clean_provider_env):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-env")
    resolver = ProviderCredentialResolver(store, vault, settings=RelaySettings(providers_from_env=True))
    descriptor = resolver.resolve()
    assert descriptor.kind is ProviderKind.GOOGLE
    assert descriptor.secret == "AIza-env"
    assert descriptor.config_id is None


def test_secret_never_logged(resolver, add_provider, log_capture):
    add_provider("cfg-a", secret="sk-super-secret-value")
    descriptor = resolver.resolve("cfg-a")
    assert "sk-super-secret-value" not in repr(descriptor)
    assert "sk-super-secret-value" not in log_capture.text()
    assert log_capture.events("credentials.resolve.success")[0]["descriptor"]["model"] == "gpt-4o-mini"
