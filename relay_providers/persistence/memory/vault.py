"""Static credential vault."""

from __future__ import annotations

from typing import Dict, Optional


class StaticCredentialVault:
    """Maps key ids to secrets held in memory.

    Unknown ids decrypt to ``None``, the same answer a real vault gives for a
    credential it cannot read.
    """

    def __init__(self, secrets: Optional[Dict[str, str]] = None) -> None:
        self._secrets = dict(secrets or {})

    def put(self, key_id: str, secret: str) -> None:
        self._secrets[key_id] = secret

    def decrypt(self, key_id: str) -> Optional[str]:
        return self._secrets.get(key_id) or None

    def __repr__(self) -> str:
        return f"StaticCredentialVault(keys={len(self._secrets)})"


__all__ = ["StaticCredentialVault"]
