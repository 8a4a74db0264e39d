"""Shared HTTP client pool.

Purpose:
    Reuse ``httpx.Client`` instances across generations instead of opening a
    connection pool per request. Used by adapters that speak raw HTTP
    (Replicate); SDK-backed adapters manage their own transports.

External dependencies:
    - ``httpx`` for the synchronous client.

Timeout strategy:
    - Each client is created with ``get_timeout_config().as_httpx()``; a
      timeout raises ``httpx.TimeoutException`` which the adapters classify
      as ``ErrorCode.TIMEOUT``.

Lifecycle:
    - Clients are keyed by ``(base_url, purpose)`` and closed at interpreter
      exit, or explicitly through :func:`close_all_clients`.
"""

from __future__ import annotations

import atexit
import threading
from contextlib import suppress
from typing import Dict, Optional, Tuple

import httpx

from ..timeouts import get_timeout_config

_CLIENTS: Dict[Tuple[Optional[str], str], httpx.Client] = {}
_LOCK = threading.RLock()


def get_httpx_client(base_url: Optional[str], purpose: str) -> httpx.Client:
    """Return the pooled client for ``base_url``/``purpose``, creating it once.

    Safe for concurrent use; creation is guarded by a re-entrant lock.
    Credentials are never stored on pooled clients; callers pass auth headers
    per request.
    """
    key = (base_url, purpose)
    client = _CLIENTS.get(key)
    if client is not None and not client.is_closed:
        return client

    with _LOCK:
        client = _CLIENTS.get(key)
        if client is not None and not client.is_closed:
            return client
        timeout = get_timeout_config().as_httpx()
        client = httpx.Client(base_url=base_url, timeout=timeout) if base_url else httpx.Client(timeout=timeout)
        _CLIENTS[key] = client
        return client


def close_all_clients() -> None:
    """Close and forget every pooled client."""
    with _LOCK:
        for c in _CLIENTS.values():
            with suppress(Exception):  # nosec B110 - shutdown path
                c.close()
        _CLIENTS.clear()


atexit.register(close_all_clients)

__all__ = ["get_httpx_client", "close_all_clients"]
