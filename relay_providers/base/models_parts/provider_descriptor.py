"""
Resolved provider descriptor.

Built fresh for every generation by the credential resolver and discarded
afterwards. ``secret`` holds the decrypted credential; it is excluded from
``repr`` and from :meth:`ProviderDescriptor.to_safe_dict`, which is the only
form that may be logged.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from .provider_kind import Capability, ProviderKind


@dataclass(frozen=True)
class ProviderDescriptor:
    """Everything an adapter needs to call one provider model.

    Attributes:
        kind: Adapter family.
        model_id: Provider model identifier (e.g. ``"gpt-4o-mini"``).
        secret: Decrypted API credential. Never logged.
        endpoint: Base URL for the provider API.
        capabilities: Capability flags for this model.
        config_id: Identifier of the stored configuration, when any.
        display_name: Human label reported as ``providerName``.
    """

    kind: ProviderKind
    model_id: str
    secret: str = field(repr=False)
    endpoint: Optional[str] = None
    capabilities: FrozenSet[Capability] = frozenset()
    config_id: Optional[str] = None
    display_name: Optional[str] = None

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def provider_name(self) -> str:
        return self.display_name or self.kind.value

    def to_safe_dict(self) -> Dict[str, Any]:
        """Loggable view without the secret."""
        return {
            "kind": self.kind.value,
            "model": self.model_id,
            "endpoint": self.endpoint,
            "capabilities": sorted(c.value for c in self.capabilities),
            "config_id": self.config_id,
        }


__all__ = ["ProviderDescriptor"]
