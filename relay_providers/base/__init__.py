"""
Relay Base Package

Provider-agnostic building blocks shared by every adapter and by the service
layer:

- Models: canonical messages, provider descriptors, usage metadata, DTOs
- Errors and structured logging
- Streaming: canonical events, provider events, simulated streaming
- Adapters: the `ProviderAdapter` base and the closed `AdapterRegistry`
- Context and credentials: `ConversationContextBuilder`,
  `ProviderCredentialResolver`
- Orchestration: `StreamNormalizer`
"""

from .cancellation import CancellationToken, CancelledError
from .errors import (
    ContextUnavailable,
    ErrorCode,
    NoProviderConfigured,
    ProviderDecodeFailed,
    ProviderError,
    ProviderRequestFailed,
    UnsupportedCapability,
)
from .models import (
    CanonicalMessage,
    Capability,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
    ProviderDescriptor,
    ProviderKind,
    SearchResult,
    UsageMetadata,
)
from .timeouts import TimeoutConfig, get_timeout_config
from .streaming import (
    CanonicalStreamEvent,
    SearchResults,
    SearchStart,
    StreamChunk,
    StreamEnd,
    StreamError,
    StreamStart,
)
from .adapters import AdapterRegistry, ProviderAdapter
from .context import ConversationContextBuilder
from .repositories import ProviderCredentialResolver
from .normalizer import NormalizedStream, StreamNormalizer

__all__ = [
    "CancellationToken",
    "CancelledError",
    "ContextUnavailable",
    "ErrorCode",
    "NoProviderConfigured",
    "ProviderDecodeFailed",
    "ProviderError",
    "ProviderRequestFailed",
    "UnsupportedCapability",
    "CanonicalMessage",
    "Capability",
    "GenerationOptions",
    "GenerationRequest",
    "GenerationResult",
    "ProviderDescriptor",
    "ProviderKind",
    "SearchResult",
    "UsageMetadata",
    "TimeoutConfig",
    "get_timeout_config",
    "CanonicalStreamEvent",
    "SearchResults",
    "SearchStart",
    "StreamChunk",
    "StreamEnd",
    "StreamError",
    "StreamStart",
    "AdapterRegistry",
    "ProviderAdapter",
    "ConversationContextBuilder",
    "ProviderCredentialResolver",
    "NormalizedStream",
    "StreamNormalizer",
]
