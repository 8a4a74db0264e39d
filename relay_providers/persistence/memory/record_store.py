"""Thread-safe in-memory `IRecordStore`."""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Any, Dict, List, Optional

from ..interfaces.repos import FindQuery, Record, StoreResult
from ..query import apply_query, matches


class InMemoryRecordStore:
    """Dict-of-lists record store keyed by collection name.

    Records are deep-copied on the way in and out. ``fail_collections`` makes
    every operation on the named collections report failure, which lets
    tests exercise degraded paths.
    """

    def __init__(self, seed: Optional[Dict[str, List[Record]]] = None) -> None:
        self._lock = threading.RLock()
        self._data: Dict[str, List[Record]] = {}
        self.fail_collections: set[str] = set()
        for name, records in (seed or {}).items():
            for record in records:
                self.insert(name, record)

    def _failed(self, collection: str) -> Optional[StoreResult]:
        if collection in self.fail_collections:
            return StoreResult(success=False, error=f"collection {collection!r} unavailable")
        return None

    def insert(self, collection: str, record: Record) -> StoreResult:
        if failed := self._failed(collection):
            return failed
        item = copy.deepcopy(record)
        item.setdefault("id", str(uuid.uuid4()))
        with self._lock:
            self._data.setdefault(collection, []).append(item)
        return StoreResult(success=True, affected=1, records=[copy.deepcopy(item)])

    def find_one(self, collection: str, query: Optional[FindQuery] = None) -> StoreResult:
        query = query or FindQuery()
        one = FindQuery(where=query.where, order_by=query.order_by, limit=1, offset=query.offset)
        return self.find_many(collection, one)

    def find_many(self, collection: str, query: Optional[FindQuery] = None) -> StoreResult:
        if failed := self._failed(collection):
            return failed
        with self._lock:
            records = apply_query(self._data.get(collection, []), query)
        return StoreResult(success=True, affected=len(records), records=records)

    def update(self, collection: str, record_id: str, patch: Record) -> StoreResult:
        if failed := self._failed(collection):
            return failed
        with self._lock:
            for item in self._data.get(collection, []):
                if item.get("id") == record_id:
                    item.update(copy.deepcopy({k: v for k, v in patch.items() if k != "id"}))
                    return StoreResult(success=True, affected=1, records=[copy.deepcopy(item)])
        return StoreResult(success=True, affected=0)

    def delete(self, collection: str, record_id: str) -> StoreResult:
        if failed := self._failed(collection):
            return failed
        with self._lock:
            items = self._data.get(collection, [])
            kept = [r for r in items if r.get("id") != record_id]
            removed = len(items) - len(kept)
            self._data[collection] = kept
        return StoreResult(success=True, affected=removed)

    def count(self, collection: str, where: Optional[Dict[str, Any]] = None) -> StoreResult:
        if failed := self._failed(collection):
            return failed
        with self._lock:
            n = sum(1 for r in self._data.get(collection, []) if matches(r, where))
        return StoreResult(success=True, affected=n)


__all__ = ["InMemoryRecordStore"]
