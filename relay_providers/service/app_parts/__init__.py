"""Request models and dependencies shared by the service routes."""

from .app_core import ChatStreamBody, get_container

__all__ = ["ChatStreamBody", "get_container"]
