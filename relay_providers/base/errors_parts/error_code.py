"""
Normalized provider error codes.

`ErrorCode` values prefix every terminal error text emitted by the stream
normalizer (``"<code>: <message>"``) and appear as ``error_code`` in
structured logs. Values are lowercase snake_case and stable.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Failure categories shared by every provider adapter."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    TRANSIENT = "transient"
    UNSUPPORTED = "unsupported"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVER_ERROR = "server_error"
    DECODE = "decode"
    INTERNAL = "internal"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        """Whether a caller-side retry policy may reasonably try again."""
        return self in (ErrorCode.TRANSIENT, ErrorCode.RATE_LIMIT, ErrorCode.TIMEOUT)


__all__ = ["ErrorCode"]
