"""OpenAI-compatible custom endpoint package."""

from .adapter import CustomAdapter

__all__ = ["CustomAdapter"]
