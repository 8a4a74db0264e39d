"""
Generation-level errors raised before any provider is contacted.

These are not provider failures, so they do not carry an `ErrorCode`:

* `NoProviderConfigured` - no usable provider configuration matches the
  selector. Surfaced to the caller before any ``Start`` event.
* `ContextUnavailable` - prior conversation turns could not be read.
* `UnsupportedCapability` - a requested capability is missing for the
  selected model. Never fatal; its text becomes an in-band notice.
"""
from __future__ import annotations

from typing import Optional

NO_PROVIDER_MESSAGE = "No active AI provider configured"


class NoProviderConfigured(LookupError):
    """Raised when no active, enabled provider configuration can be resolved."""

    def __init__(self, selector: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.selector = selector
        self.detail = detail
        text = NO_PROVIDER_MESSAGE
        if selector and selector != "default":
            text = f"{text} for selector {selector!r}"
        if detail:
            text = f"{text} ({detail})"
        super().__init__(text)


class ContextUnavailable(RuntimeError):
    """Raised when the conversation history cannot be read."""

    def __init__(self, conversation_id: str, reason: str) -> None:
        self.conversation_id = conversation_id
        self.reason = reason
        super().__init__(f"Conversation history unavailable for {conversation_id}: {reason}")


class UnsupportedCapability(Exception):
    """A requested capability is not supported by the selected model."""

    LABELS = {
        "webSearch": "Web search",
        "fileSearch": "File search",
        "reasoning": "Extended reasoning",
    }

    def __init__(self, capability: str, model: str) -> None:
        self.capability = capability
        self.model = model
        label = self.LABELS.get(capability, capability)
        super().__init__(f"{label} is not available for model {model}; answering without it.")

    def notice(self) -> str:
        """Return the informational text spliced into the answer stream."""
        return f"_{self.args[0]}_\n\n"


__all__ = [
    "NO_PROVIDER_MESSAGE",
    "NoProviderConfigured",
    "ContextUnavailable",
    "UnsupportedCapability",
]
