"""In-memory collaborators for tests and local development."""

from .record_store import InMemoryRecordStore
from .vault import StaticCredentialVault
from .corpus import NullSearchCorpusProvider, StaticSearchCorpusProvider

__all__ = [
    "InMemoryRecordStore",
    "StaticCredentialVault",
    "NullSearchCorpusProvider",
    "StaticSearchCorpusProvider",
]
