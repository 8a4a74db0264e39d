"""Google Gemini provider adapter (``google-generativeai`` SDK).

Gemini is called once with ``generate_content`` and the answer delivered as
simulated word-group chunks, preceded by any Google Search grounding events.

``genai.configure`` sets process-global credentials, so configuring and
calling the model happen under one module-level lock; concurrent Google
generations with different keys never observe each other's key.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urlparse

import google.generativeai as genai

from ..base.adapters import ProviderAdapter, last_user_text, system_text
from ..base.cancellation import CancellationToken
from ..base.errors import ErrorCode, ProviderDecodeFailed
from ..base.logging import LogContext
from ..base.models import CanonicalMessage, GenerationOptions, ProviderDescriptor, ProviderKind
from ..base.streaming.provider_events import ProviderEvent, UsageReported
from ..base.tokens import extract_gemini_token_usage, has_usage
from ..config.defaults import GOOGLE_DEFAULT_BASE_URL
from .helpers import (
    GOOGLE_SEARCH_TOOL,
    build_contents,
    ensure_not_blocked,
    generation_config,
    grounding_events,
    response_text,
)

_CONFIGURE_LOCK = threading.Lock()


def _client_options(endpoint: Optional[str]) -> Optional[Dict[str, str]]:
    if not endpoint or endpoint.rstrip("/") == GOOGLE_DEFAULT_BASE_URL:
        return None
    host = urlparse(endpoint).netloc or endpoint
    return {"api_endpoint": host}


class GoogleAdapter(ProviderAdapter):
    """Adapter for Gemini models."""

    kind = ProviderKind.GOOGLE

    def _call_model(self, descriptor: ProviderDescriptor, request: Dict[str, Any]) -> Any:
        """Configure the SDK and run one ``generate_content`` call."""
        with _CONFIGURE_LOCK:
            genai.configure(api_key=descriptor.secret, client_options=_client_options(descriptor.endpoint))
            model = genai.GenerativeModel(
                descriptor.model_id,
                system_instruction=request.get("system_instruction"),
                generation_config=request["generation_config"],
                tools=request.get("tools"),
            )
            return model.generate_content(request["contents"])

    def _generate(
        self,
        descriptor: ProviderDescriptor,
        messages: List[CanonicalMessage],
        options: GenerationOptions,
        token: CancellationToken,
        ctx: LogContext,
    ) -> Iterator[ProviderEvent]:
        request: Dict[str, Any] = {
            "contents": build_contents(messages),
            "generation_config": generation_config(self.settings),
            "system_instruction": system_text(messages) or None,
        }
        if options.web_search_requested:
            request["tools"] = GOOGLE_SEARCH_TOOL
        token.raise_if_cancelled()
        response = self._call_model(descriptor, request)
        token.raise_if_cancelled()
        ensure_not_blocked(response, descriptor.model_id)

        yield from grounding_events(response, last_user_text(messages))
        text = response_text(response)
        if not text:
            raise ProviderDecodeFailed(
                code=ErrorCode.DECODE,
                message="response contained no text",
                provider=self.kind.value,
                model=descriptor.model_id,
            )
        yield from self._simulate(text, token)
        usage = extract_gemini_token_usage(response)
        if has_usage(usage):
            yield UsageReported(input_tokens=usage["prompt"], output_tokens=usage["completion"], total_tokens=usage["total"])


__all__ = ["GoogleAdapter"]
