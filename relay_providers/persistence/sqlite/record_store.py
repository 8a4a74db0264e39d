"""SQLite-backed `IRecordStore`.

Records are stored as JSON documents per collection; filtering and ordering
run in process through the same query evaluation as the in-memory store, so
both backends answer identically. Every write commits immediately and any
``sqlite3.Error`` is reported as a failed `StoreResult`.
"""

from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..interfaces.repos import FindQuery, Record, StoreResult
from ..query import apply_query, matches
from .engine import MEMORY_DB, create_connection, init_schema


class SqliteRecordStore:
    """Record store over a single SQLite table."""

    def __init__(self, db_path: Union[str, Path] = MEMORY_DB, *, conn: Optional[sqlite3.Connection] = None) -> None:
        self._conn = conn or create_connection(db_path)
        self._lock = threading.RLock()
        init_schema(self._conn)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _load(self, collection: str) -> List[Record]:
        cur = self._conn.execute(
            "SELECT data_json FROM records WHERE collection = ? ORDER BY seq",
            (collection,),
        )
        return [json.loads(row["data_json"]) for row in cur.fetchall()]

    def insert(self, collection: str, record: Record) -> StoreResult:
        item = dict(record)
        item.setdefault("id", str(uuid.uuid4()))
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO records(collection, record_id, data_json) VALUES(?, ?, ?)",
                    (collection, str(item["id"]), json.dumps(item, ensure_ascii=False, default=str)),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, affected=1, records=[item])

    def find_one(self, collection: str, query: Optional[FindQuery] = None) -> StoreResult:
        query = query or FindQuery()
        return self.find_many(
            collection, FindQuery(where=query.where, order_by=query.order_by, limit=1, offset=query.offset)
        )

    def find_many(self, collection: str, query: Optional[FindQuery] = None) -> StoreResult:
        try:
            with self._lock:
                records = apply_query(self._load(collection), query)
        except sqlite3.Error as exc:
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, affected=len(records), records=records)

    def update(self, collection: str, record_id: str, patch: Record) -> StoreResult:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT data_json FROM records WHERE collection = ? AND record_id = ?",
                    (collection, str(record_id)),
                ).fetchone()
                if row is None:
                    return StoreResult(success=True, affected=0)
                item = json.loads(row["data_json"])
                item.update({k: v for k, v in patch.items() if k != "id"})
                self._conn.execute(
                    "UPDATE records SET data_json = ? WHERE collection = ? AND record_id = ?",
                    (json.dumps(item, ensure_ascii=False, default=str), collection, str(record_id)),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, affected=1, records=[item])

    def delete(self, collection: str, record_id: str) -> StoreResult:
        try:
            with self._lock:
                cur = self._conn.execute(
                    "DELETE FROM records WHERE collection = ? AND record_id = ?",
                    (collection, str(record_id)),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, affected=cur.rowcount)

    def count(self, collection: str, where: Optional[Dict[str, Any]] = None) -> StoreResult:
        try:
            with self._lock:
                n = sum(1 for r in self._load(collection) if matches(r, where))
        except sqlite3.Error as exc:
            return StoreResult(success=False, error=str(exc))
        return StoreResult(success=True, affected=n)


__all__ = ["SqliteRecordStore"]
