"""Cancellation error type."""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when a generation observes a cancellation request.

    Kept distinct from provider failures: a cancelled generation is never
    persisted and never counted as a provider error.
    """


__all__ = ["CancelledError"]
