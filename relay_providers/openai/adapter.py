"""OpenAI provider adapter.

Two sub-protocols, chosen from the model id and the requested tools:

- Chat Completions streaming (default).
- Responses API for reasoning-tier models (``o1``/``o3``/``o4`` prefixes) and
  whenever web search or file search is attached. ``o1-preview`` and
  ``o1-mini`` cannot stream; they are called once and delivered through
  simulated word-group chunks.

A file-search corpus rejected at request start (not-found or validation
class) is detached and the request re-issued once without it.

Clients are built per generation from the descriptor's secret with SDK
retries disabled; timeouts come from ``get_timeout_config()``.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List

from openai import OpenAI

from ..base.adapters import ProviderAdapter
from ..base.cancellation import CancellationToken
from ..base.capabilities import is_reasoning_model, is_simulated_reasoning_model
from ..base.errors import ErrorCode, ProviderDecodeFailed, classify_exception
from ..base.logging import LogContext, normalized_log_event
from ..base.models import CanonicalMessage, GenerationOptions, ProviderDescriptor, ProviderKind
from ..base.streaming.provider_events import ProviderEvent, UsageReported
from ..base.timeouts import get_timeout_config
from ..base.tokens import extract_responses_token_usage, has_usage
from .chat_helpers import build_chat_params, translate_chat_chunk
from .responses_helpers import (
    ResponsesEventTranslator,
    build_responses_params,
    response_text,
    without_file_search,
)

_DETACHABLE = (ErrorCode.NOT_FOUND, ErrorCode.VALIDATION)


class OpenAIAdapter(ProviderAdapter):
    """Adapter for the OpenAI API (official ``openai`` SDK)."""

    kind = ProviderKind.OPENAI

    def _make_client(self, descriptor: ProviderDescriptor) -> OpenAI:
        return OpenAI(
            api_key=descriptor.secret,
            base_url=descriptor.endpoint or None,
            max_retries=0,
            timeout=get_timeout_config().as_httpx(),
        )

    def _use_responses(self, model: str, options: GenerationOptions) -> bool:
        return bool(is_reasoning_model(model) or options.web_search_requested or options.file_search_context)

    def _generate(
        self,
        descriptor: ProviderDescriptor,
        messages: List[CanonicalMessage],
        options: GenerationOptions,
        token: CancellationToken,
        ctx: LogContext,
    ) -> Iterator[ProviderEvent]:
        client = self._make_client(descriptor)
        model = descriptor.model_id
        token.raise_if_cancelled()
        if not self._use_responses(model, options):
            stream = client.chat.completions.create(**build_chat_params(model, messages, self.settings))
            yield from self._decode_stream(stream, translate_chat_chunk, ctx, token)
            return

        params = build_responses_params(model, messages, options, self.settings)
        if is_simulated_reasoning_model(model):
            yield from self._generate_simulated(client, params, token, ctx)
            return
        stream = self._start_responses_stream(client, params, ctx)
        yield from self._decode_stream(stream, ResponsesEventTranslator(messages, model), ctx, token)

    def _start_responses_stream(self, client: OpenAI, params: Dict[str, Any], ctx: LogContext) -> Any:
        try:
            return client.responses.create(**params, stream=True)
        except Exception as exc:
            stripped = without_file_search(params)
            if stripped == params or classify_exception(exc) not in _DETACHABLE:
                raise
            normalized_log_event(
                self._logger,
                "stream.file_search.detached",
                ctx,
                phase="start",
                attempt=1,
                level=logging.WARNING,
                error_code=classify_exception(exc).value,
                emitted=False,
                tokens=None,
                failure_class=exc.__class__.__name__,
            )
            return client.responses.create(**stripped, stream=True)

    def _generate_simulated(
        self, client: OpenAI, params: Dict[str, Any], token: CancellationToken, ctx: LogContext
    ) -> Iterator[ProviderEvent]:
        response = client.responses.create(**params)
        text = response_text(response)
        if not text:
            raise ProviderDecodeFailed(
                code=ErrorCode.DECODE,
                message="response contained no output text",
                provider=self.kind.value,
                model=ctx.model,
            )
        yield from self._simulate(text, token)
        usage = extract_responses_token_usage(response)
        if has_usage(usage):
            yield UsageReported(input_tokens=usage["prompt"], output_tokens=usage["completion"], total_tokens=usage["total"])


__all__ = ["OpenAIAdapter"]
