"""Error taxonomy public surface.

Re-exports the implementations under ``relay_providers.base.errors_parts``:

* provider failures: `ErrorCode`, `ProviderError`, `ProviderRequestFailed`,
  `ProviderDecodeFailed`, `classify_exception`, `wrap_provider_exception`
* generation failures raised before ``Start``: `NoProviderConfigured`,
  `ContextUnavailable`
* graceful degradation: `UnsupportedCapability`
"""

from .errors_parts import (
    ErrorCode,
    ProviderError,
    ProviderRequestFailed,
    ProviderDecodeFailed,
    NO_PROVIDER_MESSAGE,
    NoProviderConfigured,
    ContextUnavailable,
    UnsupportedCapability,
    classify_exception,
    wrap_provider_exception,
)

__all__ = [
    "ErrorCode",
    "ProviderError",
    "ProviderRequestFailed",
    "ProviderDecodeFailed",
    "NO_PROVIDER_MESSAGE",
    "NoProviderConfigured",
    "ContextUnavailable",
    "UnsupportedCapability",
    "classify_exception",
    "wrap_provider_exception",
]
