"""Conversation context builder.

Produces the ordered message list for one generation:

1. at most one leading ``system`` message combining workspace rules and the
   personality prompt (``"Workspace Context: ..."`` and ``"Personality: ..."``
   joined by a blank line), omitted when both are empty;
2. every prior ``user``/``assistant`` turn of the conversation in
   creation-time order.

Reading the optional system context never fails the caller: errors are
logged as ``context.system.error`` and the system message is dropped.
Reading prior turns is core content and raises `ContextUnavailable`.

Collections read: ``chat_sessions`` (``id``, ``workspaceId``,
``personalityId``), ``workspaces`` (``id``, ``workspaceRules``),
``personalities`` (``id``, ``userId``, ``prompt``), ``chat_messages``
(``sessionId``, ``role``, ``content``, ``createdAt``).
"""
from __future__ import annotations

import logging
from typing import List, Optional

from ...persistence.interfaces import FindQuery, IRecordStore
from ..errors import ContextUnavailable
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import CanonicalMessage

SESSIONS = "chat_sessions"
WORKSPACES = "workspaces"
PERSONALITIES = "personalities"
MESSAGES = "chat_messages"

_HISTORY_ROLES = ("user", "assistant")


class ConversationContextBuilder:
    """Builds canonical message lists from the record store (read-only)."""

    def __init__(self, store: IRecordStore, *, logger: Optional[logging.Logger] = None) -> None:
        self._store = store
        self._logger = logger or get_logger("context")

    def build(
        self,
        conversation_id: str,
        personality_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> List[CanonicalMessage]:
        """Return the system message (if any) followed by prior turns."""
        messages: List[CanonicalMessage] = []
        system = self._system_message(conversation_id, personality_id, user_id)
        if system:
            messages.append(CanonicalMessage(role="system", content=system))
        messages.extend(self._history(conversation_id))
        return messages

    def _system_message(
        self, conversation_id: str, personality_id: Optional[str], user_id: Optional[str]
    ) -> str:
        try:
            session = self._store.find_one(SESSIONS, FindQuery(where={"id": conversation_id})).record or {}
            parts: List[str] = []
            rules = self._workspace_rules(session.get("workspaceId"))
            if rules:
                parts.append(f"Workspace Context: {rules}")
            prompt = self._personality_prompt(personality_id or session.get("personalityId"), user_id)
            if prompt:
                parts.append(f"Personality: {prompt}")
            return "\n\n".join(parts)
        except Exception as exc:  # noqa: BLE001 - optional context degrades
            normalized_log_event(
                self._logger,
                "context.system.error",
                LogContext(conversation_id=conversation_id),
                phase="context",
                attempt=None,
                level=logging.WARNING,
                emitted=False,
                tokens=None,
                failure_class=exc.__class__.__name__,
                error=str(exc),
            )
            return ""

    def _workspace_rules(self, workspace_id: Optional[str]) -> str:
        if not workspace_id:
            return ""
        result = self._store.find_one(WORKSPACES, FindQuery(where={"id": workspace_id}))
        if not result.success:
            raise RuntimeError(result.error or "workspace lookup failed")
        return str((result.record or {}).get("workspaceRules") or "").strip()

    def _personality_prompt(self, personality_id: Optional[str], user_id: Optional[str]) -> str:
        if not personality_id:
            return ""
        where = {"id": personality_id}
        if user_id:
            where["userId"] = user_id
        result = self._store.find_one(PERSONALITIES, FindQuery(where=where))
        if not result.success:
            raise RuntimeError(result.error or "personality lookup failed")
        return str((result.record or {}).get("prompt") or "").strip()

    def _history(self, conversation_id: str) -> List[CanonicalMessage]:
        query = FindQuery(where={"sessionId": conversation_id}, order_by=[("createdAt", "asc")])
        try:
            result = self._store.find_many(MESSAGES, query)
        except Exception as exc:
            raise ContextUnavailable(conversation_id, str(exc) or exc.__class__.__name__) from exc
        if not result.success:
            raise ContextUnavailable(conversation_id, result.error or "history read failed")
        return [
            CanonicalMessage(role=r["role"], content=str(r.get("content") or ""))
            for r in result.records
            if r.get("role") in _HISTORY_ROLES
        ]


__all__ = ["ConversationContextBuilder", "SESSIONS", "WORKSPACES", "PERSONALITIES", "MESSAGES"]
