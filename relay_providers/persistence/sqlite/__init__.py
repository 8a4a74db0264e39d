"""SQLite-backed record store for single-process local deployments."""

from .engine import create_connection, init_schema
from .record_store import SqliteRecordStore

__all__ = ["SqliteRecordStore", "create_connection", "init_schema"]
