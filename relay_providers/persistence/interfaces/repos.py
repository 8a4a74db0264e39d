"""Collaborator protocols consumed by the relay core.

The core treats storage purely as a record store over named collections and
performs no query translation of its own: ``where`` is an equality filter,
``order_by`` a list of ``(field, "asc"|"desc")`` pairs.

Failure semantics:
- Store operations report failure through ``StoreResult.success`` and
  ``StoreResult.error`` instead of raising for ordinary backend errors.
  Callers decide whether a failure is fatal (conversation history) or
  degradable (workspace/personality context).
- ``ICredentialVault.decrypt`` returns ``None`` for unknown or unreadable
  key ids.
- ``ISearchCorpusProvider.get_or_create_corpus`` returns ``None`` when no
  corpus is available; absence never aborts a generation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

Record = Dict[str, Any]


@dataclass
class StoreResult:
    """Outcome of one record-store operation.

    Attributes
    ----------
    success: Whether the backend completed the operation.
    affected: Number of records inserted, matched, updated or deleted.
    records: Returned records (copies; mutating them does not write back).
    error: Backend error text when ``success`` is False.
    """

    success: bool
    affected: int = 0
    records: List[Record] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def record(self) -> Optional[Record]:
        return self.records[0] if self.records else None


@dataclass
class FindQuery:
    where: Dict[str, Any] = field(default_factory=dict)
    order_by: Sequence[Tuple[str, str]] = ()
    limit: Optional[int] = None
    offset: int = 0


class IRecordStore(Protocol):
    def insert(self, collection: str, record: Record) -> StoreResult: ...

    def find_one(self, collection: str, query: Optional[FindQuery] = None) -> StoreResult: ...

    def find_many(self, collection: str, query: Optional[FindQuery] = None) -> StoreResult: ...

    def update(self, collection: str, record_id: str, patch: Record) -> StoreResult: ...

    def delete(self, collection: str, record_id: str) -> StoreResult: ...

    def count(self, collection: str, where: Optional[Dict[str, Any]] = None) -> StoreResult: ...


class ICredentialVault(Protocol):
    def decrypt(self, key_id: str) -> Optional[str]: ...


class ISearchCorpusProvider(Protocol):
    def get_or_create_corpus(self, conversation_id: str, owner_id: Optional[str]) -> Optional[str]: ...


__all__ = [
    "Record",
    "StoreResult",
    "FindQuery",
    "IRecordStore",
    "ICredentialVault",
    "ISearchCorpusProvider",
]
