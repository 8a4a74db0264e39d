"""Provider adapter base class and registry."""

from .base_adapter import (
    FrameTranslator,
    ProviderAdapter,
    conversation_turns,
    last_user_text,
    register_stream_cleanup,
    system_text,
)
from .registry import AdapterRegistry

__all__ = [
    "AdapterRegistry",
    "FrameTranslator",
    "ProviderAdapter",
    "conversation_turns",
    "last_user_text",
    "register_stream_cleanup",
    "system_text",
]
