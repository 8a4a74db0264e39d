"""
Generation request/result DTOs exchanged with the transport layer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .usage_metadata import UsageMetadata


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call options handed to an adapter.

    ``file_search_context`` is the search corpus id for the conversation, when
    one could be obtained.
    """

    web_search_requested: bool = False
    reasoning_requested: bool = False
    file_search_context: Optional[str] = None


@dataclass(frozen=True)
class GenerationRequest:
    """One chat turn submitted for generation.

    Attributes:
        text: The new user message.
        conversation_id: Chat session whose history provides context.
        owner_id: User that owns the conversation.
        model_selector: Provider configuration id, or ``None``/``"default"``
            for the active default.
        web_search_requested: Ask for search-augmented generation.
        reasoning_requested: Ask for extended reasoning where available.
        attachment_refs: File references; their presence enables file search.
        personality_id: Optional personality whose prompt joins the system text.
    """

    text: str
    conversation_id: str
    owner_id: Optional[str] = None
    model_selector: Optional[str] = None
    web_search_requested: bool = False
    reasoning_requested: bool = False
    attachment_refs: Tuple[str, ...] = ()
    personality_id: Optional[str] = None


@dataclass
class GenerationResult:
    """Outcome returned to the transport sink.

    ``message`` carries the user-visible failure text; ``cancelled`` marks a
    run stopped by the client so the sink skips persistence.
    """

    success: bool
    final_text: Optional[str] = None
    metadata: Optional[UsageMetadata] = None
    message: Optional[str] = None
    message_id: Optional[str] = None
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "finalText": self.final_text,
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "message": self.message,
            "messageId": self.message_id,
            "cancelled": self.cancelled,
        }


__all__ = ["GenerationOptions", "GenerationRequest", "GenerationResult"]
