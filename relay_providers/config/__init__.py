"""Unified configuration layer for the relay.

Merge order for ``get_provider_config`` (later wins):
    1. Built-in defaults (``config.defaults``)
    2. Optional external file named by ``PROVIDERS_CONFIG_FILE`` (JSON, or
       YAML through PyYAML)
    3. Environment variables ``<PROVIDER>_MODEL``, ``<PROVIDER>_API_KEY``,
       ``<PROVIDER>_BASE_URL`` (plus the aliases in ``config.env``)
    4. Explicit overrides

A ``.env`` file (``DOTENV_FILE``, default ``.env``) is loaded once before the
environment is read. Existing variables are kept unless they hold a
placeholder value.

External file example::

    openai:
      model: gpt-4o
    replicate:
      model: meta/meta-llama-3-70b-instruct
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import defaults
from .env import is_placeholder, resolve_provider_key
from .settings import RelaySettings, get_relay_settings

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "openai": {"model": defaults.OPENAI_DEFAULT_MODEL, "base_url": defaults.OPENAI_DEFAULT_BASE_URL},
    "anthropic": {"model": defaults.ANTHROPIC_DEFAULT_MODEL, "base_url": defaults.ANTHROPIC_DEFAULT_BASE_URL},
    "google": {"model": defaults.GOOGLE_DEFAULT_MODEL, "base_url": defaults.GOOGLE_DEFAULT_BASE_URL},
    "replicate": {"model": defaults.REPLICATE_DEFAULT_MODEL, "base_url": defaults.REPLICATE_DEFAULT_BASE_URL},
    "custom": {},
}

ENV_FIELD_MAP = {
    "model": "MODEL",
    "api_key": "API_KEY",  # pragma: allowlist secret - env suffix name, not a secret
    "base_url": "BASE_URL",
}

_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def load_dotenv_once() -> None:
    """Parse ``KEY=VALUE`` lines from the dotenv file into ``os.environ`` once."""
    global _DOTENV_LOADED  # noqa: PLW0603
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE  # noqa: PLW0603
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv("PROVIDERS_CONFIG_FILE")
    if not path or not Path(path).exists():
        _FILE_CACHE = {}
        return _FILE_CACHE
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError:
            data = {}
    _FILE_CACHE = data if isinstance(data, dict) else {}
    return _FILE_CACHE


def reset_config_cache() -> None:
    """Forget the parsed external file so the next lookup re-reads it."""
    global _FILE_CACHE  # noqa: PLW0603
    _FILE_CACHE = None


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    prefix = provider.upper()
    for field, suffix in ENV_FIELD_MAP.items():
        val = os.getenv(f"{prefix}_{suffix}")
        if val and not is_placeholder(val):
            out[field] = val
    if "api_key" not in out:
        key, _ = resolve_provider_key(provider)
        if key:
            out["api_key"] = key
    return out


def get_provider_config(provider: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for ``provider`` (``gemini`` maps to ``google``)."""
    load_dotenv_once()
    name = (provider or "").lower().strip()
    if name == "gemini":
        name = "google"
    cfg: Dict[str, Any] = {}
    cfg |= DEFAULTS.get(name, {})
    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= file_cfg
    cfg |= _env_overrides(name)
    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    return cfg


def get_model(provider: str) -> Optional[str]:
    return get_provider_config(provider).get("model")


__all__ = [
    "DEFAULTS",
    "RelaySettings",
    "get_model",
    "get_provider_config",
    "get_relay_settings",
    "load_dotenv_once",
    "reset_config_cache",
]
