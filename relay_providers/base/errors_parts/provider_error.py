"""
Structured provider error exception types.

`ProviderError` carries a normalized `ErrorCode` plus provider/model context.
Two refinements mark the core-path failures of a generation:

* `ProviderRequestFailed` - the provider call failed (network, non-2xx,
  timeout, provider-reported failure mid-stream).
* `ProviderDecodeFailed` - the provider answered but no content could be
  decoded from any frame. Treated exactly like a request failure upstream.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode


@dataclass
class ProviderError(Exception):
    """Represents a structured provider error with a normalized error code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message; never contains credentials.
        provider: Provider kind or display name (e.g. ``"anthropic"``).
        model: Optional model identifier associated with the failure.
        retryable: Hint for caller-side retry policies (not acted on here).
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: str
    model: Optional[str] = None
    retryable: bool = False
    raw: Optional[Exception] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.provider}:{self.model or '-'} {self.code.value}: {self.message}"

    def error_text(self, limit: int = 260) -> str:
        """Return the client-facing ``"<code>: <message>"`` form, truncated."""
        return f"{self.code.value}: {self.message[:limit]}"


class ProviderRequestFailed(ProviderError):
    """Calling the provider failed; terminates the generation."""


class ProviderDecodeFailed(ProviderRequestFailed):
    """The provider stream produced no decodable content at all."""


__all__ = ["ProviderError", "ProviderRequestFailed", "ProviderDecodeFailed"]
