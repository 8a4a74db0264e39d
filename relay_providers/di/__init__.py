"""Explicit construction of the relay object graph."""
from __future__ import annotations

from .container import ProvidersContainer, build_container, default_adapters

__all__ = ["ProvidersContainer", "build_container", "default_adapters"]
