"""Cooperative cancellation token.

One token is created per generation by the transport layer and cancelled when
the client disconnects. The normalizer polls it between events, and
simulated-streaming delays and polling loops sleep on it through
:meth:`CancellationToken.wait` so a disconnect interrupts them immediately.
"""

from __future__ import annotations

from threading import Lock
from typing import List, Optional

from .cancelled_error import CancelledError
from .state import State

_DEFAULT_REASON = "operation cancelled"


class CancellationToken:
    """Thread-safe disconnect signal; cancelling a token also cancels its children."""

    def __init__(self) -> None:
        self._state = State()
        self._lock = Lock()
        self._children: List[CancellationToken] = []

    @property
    def cancelled(self) -> bool:
        return self._state.cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._state.reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Mark cancelled, wake sleepers in :meth:`wait`, then cascade. First reason wins."""
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            pending, self._children = self._children, []
        self._state.event.set()
        for child in pending:
            child.cancel(reason)

    def child(self) -> "CancellationToken":
        """Return a new token cancelled together with this one."""
        token = CancellationToken()
        with self._lock:
            if not self._state.cancelled:
                self._children.append(token)
                return token
            reason = self._state.reason
        token.cancel(reason)
        return token

    def raise_if_cancelled(self) -> None:
        if self._state.cancelled:
            raise CancelledError(self._state.reason or _DEFAULT_REASON)

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True as soon as the token is cancelled."""
        if seconds <= 0:
            return self._state.cancelled
        return self._state.event.wait(seconds)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"CancellationToken(cancelled={self._state.cancelled}, reason={self._state.reason!r})"


__all__ = ["CancellationToken"]
