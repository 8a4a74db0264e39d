"""
Canonical chat message used across providers.

A conversation is an ordered sequence of `CanonicalMessage` values built by
the conversation context builder. Ordering is creation time and adapters must
preserve it exactly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Literal, Sequence

Role = Literal["system", "user", "assistant"]

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class CanonicalMessage:
    """A single immutable conversation turn.

    Attributes:
        role: ``"system"``, ``"user"`` or ``"assistant"``.
        content: Plain text content.
    """

    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"unsupported message role: {self.role!r}")

    def to_dict(self) -> Dict[str, str]:
        """Return the ``{"role", "content"}`` mapping most chat APIs accept."""
        return {"role": self.role, "content": self.content}


def total_input_chars(messages: Sequence[CanonicalMessage]) -> int:
    """Total character count across every message's content."""
    return sum(len(m.content) for m in messages)


__all__ = ["CanonicalMessage", "Role", "ROLES", "total_input_chars"]
