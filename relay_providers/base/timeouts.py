"""Timeout configuration shared by provider adapters.

Timeouts are owned by the underlying HTTP clients; this module is the single
place their values come from. Adapters pass ``http_timeout_seconds`` to SDK
clients and the pooled ``httpx`` clients, and a timeout surfaces as an
ordinary provider request failure.

Environment variables (all optional, positive floats):
    PT_TIMEOUT_START_SECONDS     connection / first-byte budget
    PT_TIMEOUT_STREAM_SECONDS    idle budget between streamed frames
    PT_TIMEOUT_HTTP_SECONDS      whole-request budget for non-streaming calls
    PT_TIMEOUT_OVERALL_SECONDS   optional end-to-end cap (Replicate polling)
"""
from __future__ import annotations

from dataclasses import dataclass
import os

import httpx


@dataclass(frozen=True)
class TimeoutConfig:
    """Normalized timeout values (seconds)."""

    start_timeout_seconds: float = 30.0
    stream_timeout_seconds: float = 60.0
    http_timeout_seconds: float = 60.0
    overall_timeout_seconds: float | None = None

    def as_httpx(self) -> httpx.Timeout:
        """Return an ``httpx.Timeout`` with connect/read budgets split out."""
        return httpx.Timeout(
            self.http_timeout_seconds,
            connect=self.start_timeout_seconds,
            read=self.stream_timeout_seconds,
        )


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None
_ENV_NAMES = (
    "PT_TIMEOUT_START_SECONDS",
    "PT_TIMEOUT_STREAM_SECONDS",
    "PT_TIMEOUT_HTTP_SECONDS",
    "PT_TIMEOUT_OVERALL_SECONDS",
)


def _parse_env_float(name: str, default: float | None) -> float | None:
    """Read ``name`` as a positive float, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig`.

    The cache is rebuilt when any ``PT_TIMEOUT_*`` variable changes so tests
    can adjust values with ``monkeypatch.setenv``.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - module cache
    guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED

    overall = _parse_env_float("PT_TIMEOUT_OVERALL_SECONDS", None)
    _CACHED = TimeoutConfig(
        start_timeout_seconds=float(_parse_env_float("PT_TIMEOUT_START_SECONDS", 30.0)),
        stream_timeout_seconds=float(_parse_env_float("PT_TIMEOUT_STREAM_SECONDS", 60.0)),
        http_timeout_seconds=float(_parse_env_float("PT_TIMEOUT_HTTP_SECONDS", 60.0)),
        overall_timeout_seconds=float(overall) if overall is not None else None,
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]
