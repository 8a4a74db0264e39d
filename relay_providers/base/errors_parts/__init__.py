"""Errors parts package public surface.

Prefer importing from `relay_providers.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError, ProviderRequestFailed, ProviderDecodeFailed
from .generation_errors import (
    NO_PROVIDER_MESSAGE,
    NoProviderConfigured,
    ContextUnavailable,
    UnsupportedCapability,
)
from .classification import classify_exception, wrap_provider_exception

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
