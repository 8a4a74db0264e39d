"""
Provider-agnostic domain models (public surface).

Re-exports the one-class-per-file implementations under
``relay_providers.base.models_parts``.
"""

from .models_parts.message import CanonicalMessage, Role, total_input_chars
from .models_parts.provider_kind import Capability, PROVIDER_PRIORITY, ProviderKind, priority_of
from .models_parts.provider_descriptor import ProviderDescriptor
from .models_parts.usage_metadata import SearchResult, UsageMetadata
from .models_parts.generation import GenerationOptions, GenerationRequest, GenerationResult

__all__ = [
    "CanonicalMessage",
    "Role",
    "total_input_chars",
    "Capability",
    "PROVIDER_PRIORITY",
    "ProviderKind",
    "priority_of",
    "ProviderDescriptor",
    "SearchResult",
    "UsageMetadata",
    "GenerationOptions",
    "GenerationRequest",
    "GenerationResult",
]
