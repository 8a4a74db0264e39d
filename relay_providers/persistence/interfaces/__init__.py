"""Persistence protocol definitions."""

from .repos import FindQuery, ICredentialVault, IRecordStore, ISearchCorpusProvider, StoreResult

__all__ = ["FindQuery", "ICredentialVault", "IRecordStore", "ISearchCorpusProvider", "StoreResult"]
