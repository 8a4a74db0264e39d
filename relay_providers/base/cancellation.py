"""Cooperative cancellation primitives (public facade).

``CancellationToken`` signals a client disconnect to a running generation;
``CancelledError`` is raised by code that observes it.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
