"""Conversation context assembly."""

from .conversation import ConversationContextBuilder

__all__ = ["ConversationContextBuilder"]
