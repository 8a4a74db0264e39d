"""SQLite engine helpers.

Purpose
-------
Open SQLite connections with the relay's PRAGMA settings and create the
single ``records`` table used by `SqliteRecordStore`.

External dependencies
---------------------
- Standard library only (``sqlite3``). No side effects at import time.

Timeout and reliability strategy
--------------------------------
- ``busy_timeout`` from ``relay_providers.config.defaults`` mitigates lock
  contention; WAL journaling with NORMAL synchronous mode.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Union

from ...config.defaults import (
    SQLITE_BUSY_TIMEOUT_MS,
    SQLITE_JOURNAL_MODE,
    SQLITE_SYNCHRONOUS,
)

MEMORY_DB = ":memory:"


def create_connection(db_path: Union[str, Path] = MEMORY_DB) -> sqlite3.Connection:
    """Open a connection usable from worker threads, with PRAGMAs applied.

    ``check_same_thread`` is disabled because generations run in a thread
    pool; callers serialize access with their own lock.
    """
    target = str(db_path)
    if target != MEMORY_DB:
        path = Path(target).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        target = str(path)
    conn = sqlite3.connect(target, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if target != MEMORY_DB:
        conn.execute(f"PRAGMA journal_mode={SQLITE_JOURNAL_MODE};")
    conn.execute(f"PRAGMA synchronous={SQLITE_SYNCHRONOUS};")
    conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the ``records`` table if missing, then commit.

    Each row stores one record of one collection as JSON; ``seq`` keeps
    insertion order for ties when no ordering is requested.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS records (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            collection TEXT NOT NULL,
            record_id TEXT NOT NULL,
            data_json TEXT NOT NULL,
            UNIQUE (collection, record_id)
        );
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_records_collection ON records(collection);")
    conn.commit()


__all__ = ["MEMORY_DB", "create_connection", "init_schema"]
