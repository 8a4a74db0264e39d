"""relay_providers package

Multi-provider chat relay: one chat turn in, one canonical event stream out,
whichever LLM provider is configured.

Public API (re-exported):
    - Version: ``__version__``
    - Orchestration: :class:`StreamNormalizer`, :class:`GenerationRequest`,
      :class:`GenerationResult`
    - Events: ``StreamStart``, ``SearchStart``, ``SearchResults``,
      ``StreamChunk``, ``StreamEnd``, ``StreamError``
    - Errors: :class:`ProviderError`, :class:`ErrorCode`,
      :class:`NoProviderConfigured`, :class:`ContextUnavailable`
    - Construction: ``relay_providers.di.build_container``
"""

from .base import (
    CancellationToken,
    ContextUnavailable,
    ErrorCode,
    GenerationRequest,
    GenerationResult,
    NoProviderConfigured,
    ProviderError,
    SearchResults,
    SearchStart,
    StreamChunk,
    StreamEnd,
    StreamError,
    StreamNormalizer,
    StreamStart,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CancellationToken",
    "ContextUnavailable",
    "ErrorCode",
    "GenerationRequest",
    "GenerationResult",
    "NoProviderConfigured",
    "ProviderError",
    "SearchResults",
    "SearchStart",
    "StreamChunk",
    "StreamEnd",
    "StreamError",
    "StreamNormalizer",
    "StreamStart",
]
