"""Process-wide relay settings.

``RelaySettings`` gathers the generation knobs shared by every adapter.
Values come from ``RELAY_*`` environment variables (after the ``.env`` file
is loaded) and are cached; the cache refreshes when any of those variables
changes so tests can use ``monkeypatch.setenv``.

Variables
---------
RELAY_MAX_TOKENS, RELAY_TEMPERATURE, RELAY_SIMULATED_CHUNK_WORDS,
RELAY_SIMULATED_CHUNK_DELAY_SECONDS, RELAY_REPLICATE_POLL_INTERVAL_SECONDS,
RELAY_REPLICATE_POLL_TIMEOUT_SECONDS, RELAY_PROVIDERS_FROM_ENV
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from . import defaults


@dataclass(frozen=True)
class RelaySettings:
    max_tokens: int = defaults.DEFAULT_MAX_TOKENS
    temperature: float = defaults.DEFAULT_TEMPERATURE
    simulated_chunk_words: int = defaults.SIMULATED_CHUNK_WORDS
    simulated_chunk_delay_seconds: float = defaults.SIMULATED_CHUNK_DELAY_SECONDS
    replicate_poll_interval_seconds: float = defaults.REPLICATE_POLL_INTERVAL_SECONDS
    replicate_poll_timeout_seconds: float = defaults.REPLICATE_POLL_TIMEOUT_SECONDS
    providers_from_env: bool = False


_ENV_PREFIX = "RELAY_"
_CACHED: Optional[RelaySettings] = None
_ENV_GUARD: Optional[str] = None


def _env_guard() -> str:
    return "|".join(f"{k}={v}" for k, v in sorted(os.environ.items()) if k.startswith(_ENV_PREFIX))


def _float(name: str, default: float, *, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val >= minimum else default


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        val = int(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def _flag(name: str) -> bool:
    return os.getenv(name, "0").strip().lower() in {"1", "true", "yes", "on"}


def get_relay_settings() -> RelaySettings:
    """Return the cached `RelaySettings`, rebuilding it when ``RELAY_*`` changes."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - module cache
    from . import load_dotenv_once

    load_dotenv_once()
    guard = _env_guard()
    if _CACHED is not None and guard == _ENV_GUARD:
        return _CACHED
    _CACHED = RelaySettings(
        max_tokens=_int("RELAY_MAX_TOKENS", defaults.DEFAULT_MAX_TOKENS),
        temperature=_float("RELAY_TEMPERATURE", defaults.DEFAULT_TEMPERATURE),
        simulated_chunk_words=_int("RELAY_SIMULATED_CHUNK_WORDS", defaults.SIMULATED_CHUNK_WORDS),
        simulated_chunk_delay_seconds=_float(
            "RELAY_SIMULATED_CHUNK_DELAY_SECONDS", defaults.SIMULATED_CHUNK_DELAY_SECONDS
        ),
        replicate_poll_interval_seconds=_float(
            "RELAY_REPLICATE_POLL_INTERVAL_SECONDS", defaults.REPLICATE_POLL_INTERVAL_SECONDS
        ),
        replicate_poll_timeout_seconds=_float(
            "RELAY_REPLICATE_POLL_TIMEOUT_SECONDS", defaults.REPLICATE_POLL_TIMEOUT_SECONDS, minimum=1.0
        ),
        providers_from_env=_flag("RELAY_PROVIDERS_FROM_ENV"),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["RelaySettings", "get_relay_settings"]
