"""Internal state holder for cancellation tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Event
from typing import Optional


@dataclass
class State:
    """Cancellation flag, reason, and the event sleepers wait on."""

    cancelled: bool = False
    reason: Optional[str] = None
    event: Event = field(default_factory=Event)


__all__ = ["State"]
