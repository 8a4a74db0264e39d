"""Anthropic provider adapter (official ``anthropic`` SDK).

Streams ``messages.create(stream=True)`` and decodes raw events with
`AnthropicEventTranslator`. Input tokens arrive with ``message_start`` and the
cumulative output count with ``message_delta``. SDK retries are disabled;
timeouts come from ``get_timeout_config()``.
"""
from __future__ import annotations

from typing import Iterator, List

from anthropic import Anthropic

from ..base.adapters import ProviderAdapter
from ..base.cancellation import CancellationToken
from ..base.logging import LogContext
from ..base.models import CanonicalMessage, GenerationOptions, ProviderDescriptor, ProviderKind
from ..base.streaming.provider_events import ProviderEvent
from ..base.timeouts import get_timeout_config
from .stream_helpers import AnthropicEventTranslator, build_message_params


class AnthropicAdapter(ProviderAdapter):
    """Adapter for the Anthropic Messages API."""

    kind = ProviderKind.ANTHROPIC

    def _make_client(self, descriptor: ProviderDescriptor) -> Anthropic:
        return Anthropic(
            api_key=descriptor.secret,
            base_url=descriptor.endpoint or None,
            max_retries=0,
            timeout=get_timeout_config().as_httpx(),
        )

    def _generate(
        self,
        descriptor: ProviderDescriptor,
        messages: List[CanonicalMessage],
        options: GenerationOptions,
        token: CancellationToken,
        ctx: LogContext,
    ) -> Iterator[ProviderEvent]:
        client = self._make_client(descriptor)
        token.raise_if_cancelled()
        params = build_message_params(descriptor.model_id, messages, options, self.settings)
        stream = client.messages.create(**params)
        yield from self._decode_stream(stream, AnthropicEventTranslator(messages, descriptor.model_id), ctx, token)


__all__ = ["AnthropicAdapter"]
