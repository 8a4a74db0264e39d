"""Search-corpus providers without a vector store behind them."""

from __future__ import annotations

from typing import Dict, Optional


class NullSearchCorpusProvider:
    """Never has a corpus; file search is simply not attached."""

    def get_or_create_corpus(self, conversation_id: str, owner_id: Optional[str]) -> Optional[str]:
        return None


class StaticSearchCorpusProvider:
    """Returns pre-provisioned corpus ids by conversation."""

    def __init__(self, corpora: Optional[Dict[str, str]] = None) -> None:
        self._corpora = dict(corpora or {})

    def get_or_create_corpus(self, conversation_id: str, owner_id: Optional[str]) -> Optional[str]:
        return self._corpora.get(conversation_id)


__all__ = ["NullSearchCorpusProvider", "StaticSearchCorpusProvider"]
