from __future__ import annotations

from typing import List, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from relay_providers.base.models import GenerationRequest
from relay_providers.di import ProvidersContainer


class ChatStreamBody(BaseModel):
    """One chat turn as submitted by the browser client.

    Fields arrive in camelCase (``conversationId``, ``webSearchRequested``);
    snake_case names are accepted as well.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: str = Field(min_length=1)
    conversation_id: str = Field(min_length=1)
    owner_id: Optional[str] = None
    model_selector: Optional[str] = None
    web_search_requested: bool = False
    reasoning_requested: bool = False
    attachment_refs: List[str] = Field(default_factory=list)
    personality_id: Optional[str] = None

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            text=self.text,
            conversation_id=self.conversation_id,
            owner_id=self.owner_id,
            model_selector=self.model_selector,
            web_search_requested=self.web_search_requested,
            reasoning_requested=self.reasoning_requested,
            attachment_refs=tuple(self.attachment_refs),
            personality_id=self.personality_id,
        )


def get_container(request: Request) -> ProvidersContainer:
    """FastAPI dependency returning the container the app was built with."""
    return request.app.state.container


__all__ = ["ChatStreamBody", "get_container"]
