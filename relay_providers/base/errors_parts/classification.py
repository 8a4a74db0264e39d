"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

Covers the exception shapes raised by the SDKs and clients used by the
adapters (``openai``, ``anthropic``, ``google-generativeai``, ``httpx``):
HTTP status extraction, status-to-code mapping, and message heuristics as a
last resort. `wrap_provider_exception` turns any of them into a
`ProviderRequestFailed` so the stream normalizer has a single failure type to
handle.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional, Tuple

import httpx

from .error_code import ErrorCode
from .provider_error import ProviderError, ProviderRequestFailed


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from a provider exception.

    Checked in order: ``exc.status_code``, ``exc.status``, ``exc.code`` (the
    google-api-core shape), then ``exc.response.status_code``.
    """
    for attr in ("status_code", "status", "code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH,
    403: ErrorCode.AUTH,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.TRANSIENT,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
    529: ErrorCode.UNAVAILABLE,
}


_MESSAGE_HINTS: Tuple[Tuple[ErrorCode, Tuple[str, ...]], ...] = (
    # first match wins, so "invalid api key" lands on AUTH before VALIDATION
    (ErrorCode.RATE_LIMIT, ("rate limit", "rate_limit", "too many requests", "quota")),
    (ErrorCode.TIMEOUT, ("timeout", "timed out", "deadline exceeded")),
    (ErrorCode.AUTH, ("api key", "api_key", "unauthorized", "forbidden", "permission denied", "auth")),
    (ErrorCode.UNSUPPORTED, ("unsupported", "not supported")),
    (ErrorCode.NOT_FOUND, ("not found", "does not exist", "model_not_found")),
    (ErrorCode.CONFLICT, ("conflict",)),
    (ErrorCode.UNAVAILABLE, ("unavailable", "overloaded")),
    (ErrorCode.TRANSIENT, ("connection", "reset by peer")),
    (ErrorCode.VALIDATION, ("validation", "invalid", "malformed", "context length", "safety")),
    (ErrorCode.SERVER_ERROR, ("server error", "internal error")),
)


def _heuristic_from_message(msg: str) -> Optional[ErrorCode]:
    """Keyword lookup for exceptions that carry no HTTP status."""
    return next((code for code, hints in _MESSAGE_HINTS if any(h in msg for h in hints)), None)


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ProviderError passthrough.
        2. Timeout exceptions (builtin, asyncio, httpx).
        3. HTTP status mapping.
        4. Substring heuristics.
        5. ``UNKNOWN`` fallback.
    """
    if isinstance(exc, ProviderError):
        return exc.code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
        return ErrorCode.TIMEOUT
    status = _extract_status(exc)
    if status is not None and status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    if status is not None and status >= 500:
        return ErrorCode.SERVER_ERROR
    code = _heuristic_from_message(str(exc).lower())
    return code if code is not None else ErrorCode.UNKNOWN


def wrap_provider_exception(
    exc: BaseException, *, provider: str, model: Optional[str]
) -> ProviderError:
    """Return ``exc`` as a `ProviderError`, wrapping foreign exceptions.

    Existing `ProviderError` instances pass through untouched. Anything else
    becomes a `ProviderRequestFailed` whose message is the exception text or,
    when empty, its class name.
    """
    if isinstance(exc, ProviderError):
        return exc
    code = classify_exception(exc)
    return ProviderRequestFailed(
        code=code,
        message=str(exc) or exc.__class__.__name__,
        provider=provider,
        model=model,
        retryable=code.retryable,
        raw=exc if isinstance(exc, Exception) else None,
    )


__all__ = [
    "classify_exception",
    "wrap_provider_exception",
    "_extract_status",
    "_HTTP_STATUS_MAP",
]
