"""
Provider credential resolver.

Purpose
- Turn a model selector (an explicit configuration id, or ``"default"``)
  into a fully resolved `ProviderDescriptor` with a decrypted secret.
- Be the single place that calls ``ICredentialVault.decrypt``.

Selection
- Explicit id: the configuration must exist, be active and enabled, and its
  credential must decrypt; otherwise `NoProviderConfigured`.
- ``"default"`` (or no selector): active, enabled configurations ordered by
  ``activatedAt`` descending, ties broken by `PROVIDER_PRIORITY`. The first
  whose credential decrypts wins; undecryptable ones are skipped.
- Optional environment fallback (``RELAY_PROVIDERS_FROM_ENV=1``): when no
  stored configuration qualifies, the first provider family (same priority
  order) with an API key in the environment is used.

Stored record shape (collection ``provider_configs``)
- ``id``, ``kind``, ``modelId``, ``keyId``, ``endpoint``, ``isActive``,
  ``isEnabled``, ``activatedAt``, ``capabilities``, ``name``

Secrets never reach a log line; descriptors are logged via ``to_safe_dict``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...config import RelaySettings, get_provider_config, get_relay_settings
from ...persistence.interfaces import FindQuery, ICredentialVault, IRecordStore
from ..capabilities import coerce_capabilities
from ..errors import NoProviderConfigured
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import PROVIDER_PRIORITY, ProviderDescriptor, ProviderKind, priority_of

PROVIDER_CONFIGS = "provider_configs"
DEFAULT_SELECTOR = "default"


class _Skip(Exception):
    """A stored configuration cannot be used; the reason is logged."""


class ProviderCredentialResolver:
    """Resolves model selectors against stored provider configurations."""

    def __init__(
        self,
        store: IRecordStore,
        vault: ICredentialVault,
        *,
        settings: Optional[RelaySettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._vault = vault
        self._settings = settings
        self._logger = logger or get_logger("credentials")

    def resolve(self, selector: Optional[str] = None) -> ProviderDescriptor:
        """Return the descriptor for ``selector`` or raise `NoProviderConfigured`."""
        selector = (selector or DEFAULT_SELECTOR).strip() or DEFAULT_SELECTOR
        if selector == DEFAULT_SELECTOR:
            descriptor = self._resolve_default()
        else:
            descriptor = self._resolve_explicit(selector)
        self._log("credentials.resolve.success", descriptor=descriptor.to_safe_dict(), selector=selector)
        return descriptor

    def _resolve_explicit(self, config_id: str) -> ProviderDescriptor:
        result = self._store.find_one(PROVIDER_CONFIGS, FindQuery(where={"id": config_id}))
        if not result.success:
            self._log("credentials.resolve.failed", level=logging.WARNING, selector=config_id, error=result.error)
            raise NoProviderConfigured(config_id, "configuration store unavailable")
        record = result.record
        if record is None or not _usable(record):
            self._log("credentials.resolve.failed", level=logging.WARNING, selector=config_id, reason="inactive_or_missing")
            raise NoProviderConfigured(config_id)
        try:
            return self._descriptor(record)
        except _Skip as skip:
            self._log("credentials.resolve.failed", level=logging.WARNING, selector=config_id, reason=str(skip))
            raise NoProviderConfigured(config_id, str(skip)) from None

    def _resolve_default(self) -> ProviderDescriptor:
        result = self._store.find_many(PROVIDER_CONFIGS, FindQuery(where={"isActive": True}))
        candidates: List[Dict[str, Any]] = []
        if result.success:
            candidates = _ordered([r for r in result.records if _usable(r)])
        else:
            self._log("credentials.resolve.failed", level=logging.WARNING, selector=DEFAULT_SELECTOR, error=result.error)
        for record in candidates:
            try:
                return self._descriptor(record)
            except _Skip as skip:
                self._log(
                    "credentials.resolve.skip",
                    level=logging.WARNING,
                    config_id=record.get("id"),
                    reason=str(skip),
                )
        settings = self._settings or get_relay_settings()
        if settings.providers_from_env:
            descriptor = self._from_env()
            if descriptor is not None:
                return descriptor
        self._log("credentials.resolve.failed", level=logging.WARNING, selector=DEFAULT_SELECTOR, reason="none_active")
        raise NoProviderConfigured(DEFAULT_SELECTOR)

    def _descriptor(self, record: Dict[str, Any]) -> ProviderDescriptor:
        try:
            kind = ProviderKind.parse(record.get("kind", ""))
        except ValueError:
            raise _Skip(f"unknown provider kind {record.get('kind')!r}") from None
        key_id = record.get("keyId")
        secret = self._vault.decrypt(str(key_id)) if key_id else None
        if not secret:
            raise _Skip("credential could not be decrypted")
        defaults = get_provider_config(kind.value)
        model_id = record.get("modelId") or defaults.get("model")
        endpoint = record.get("endpoint") or defaults.get("base_url")
        if not model_id:
            raise _Skip("no model configured")
        if kind is ProviderKind.CUSTOM and not endpoint:
            raise _Skip("custom provider requires an endpoint")
        return ProviderDescriptor(
            kind=kind,
            model_id=str(model_id),
            secret=secret,
            endpoint=endpoint,
            capabilities=coerce_capabilities(record.get("capabilities"), kind, str(model_id)),
            config_id=record.get("id"),
            display_name=record.get("name"),
        )

    def _from_env(self) -> Optional[ProviderDescriptor]:
        for kind in PROVIDER_PRIORITY:
            cfg = get_provider_config(kind.value)
            secret = cfg.get("api_key")
            model_id = cfg.get("model")
            endpoint = cfg.get("base_url")
            if not secret or not model_id:
                continue
            if kind is ProviderKind.CUSTOM and not endpoint:
                continue
            return ProviderDescriptor(
                kind=kind,
                model_id=str(model_id),
                secret=secret,
                endpoint=endpoint,
                capabilities=coerce_capabilities(None, kind, str(model_id)),
                display_name=kind.value,
            )
        return None

    def _log(self, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
        normalized_log_event(
            self._logger,
            event,
            LogContext(),
            phase="resolve",
            attempt=None,
            level=level,
            emitted=False,
            tokens=None,
            **fields,
        )


def _usable(record: Dict[str, Any]) -> bool:
    return bool(record.get("isActive")) and record.get("isEnabled", True) is not False


def _kind_rank(record: Dict[str, Any]) -> int:
    try:
        return priority_of(ProviderKind.parse(record.get("kind", "")))
    except ValueError:
        return len(PROVIDER_PRIORITY)


def _activation_key(value: Any) -> str:
    """ISO-8601 text for ordering; epoch seconds are converted first."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _ordered(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most recently activated first; family priority breaks ties."""
    by_priority = sorted(records, key=_kind_rank)
    stamped = [r for r in by_priority if r.get("activatedAt") is not None]
    unstamped = [r for r in by_priority if r.get("activatedAt") is None]
    stamped.sort(key=lambda r: _activation_key(r["activatedAt"]), reverse=True)
    return stamped + unstamped


__all__ = ["PROVIDER_CONFIGS", "DEFAULT_SELECTOR", "ProviderCredentialResolver"]
