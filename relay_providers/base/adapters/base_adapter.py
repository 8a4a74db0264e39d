"""Provider adapter base class.

Purpose:
    One subclass per `ProviderKind` turns canonical messages into a provider
    request and decodes the provider's response into `ProviderEvent` values.
    This base owns the behavior every adapter shares:

    * capability degradation: unsupported web search becomes an in-band
      notice and generation continues without it;
    * permissive frame decoding with native stream cleanup (`_decode_stream`);
    * simulated streaming for providers without incremental output
      (`_simulate`);
    * wrapping SDK/HTTP exceptions into `ProviderRequestFailed`.

Timeout:
    Timeouts belong to the SDK or ``httpx`` client each adapter builds from
    `get_timeout_config()`; they surface as ordinary request failures.

Cancellation:
    Adapters check the token between frames and sleep on it during
    simulated delays and polling. Closing the returned generator closes the
    native stream.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import ExitStack, suppress
from dataclasses import replace
from typing import Any, Callable, ClassVar, Iterable, Iterator, List, Optional, Sequence

from ...config import RelaySettings, get_relay_settings
from ..cancellation import CancellationToken, CancelledError
from ..errors import (
    ErrorCode,
    ProviderDecodeFailed,
    ProviderError,
    UnsupportedCapability,
    wrap_provider_exception,
)
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import Capability, CanonicalMessage, GenerationOptions, ProviderDescriptor, ProviderKind
from ..streaming.provider_events import ProviderEvent, TextDelta
from ..streaming.simulated import simulate_stream

FrameTranslator = Callable[[Any], Optional[Iterable[ProviderEvent]]]


def register_stream_cleanup(stream: Any, stack: ExitStack) -> None:
    """Register a best-effort ``close()`` of the native stream on ``stack``."""
    close_fn = getattr(stream, "close", None)
    if callable(close_fn):
        def _safe_close() -> None:
            with suppress(Exception):
                close_fn()
        stack.callback(_safe_close)


class ProviderAdapter(ABC):
    """Base class for every provider adapter."""

    kind: ClassVar[ProviderKind]
    # never offered by this adapter, whatever the stored configuration claims
    withheld_capabilities: ClassVar[frozenset] = frozenset()

    def __init__(self, *, settings: Optional[RelaySettings] = None, logger: Optional[logging.Logger] = None) -> None:
        self._settings = settings
        self._logger = logger or get_logger(f"adapters.{self.kind.value}")

    @property
    def settings(self) -> RelaySettings:
        return self._settings or get_relay_settings()

    def generate(
        self,
        descriptor: ProviderDescriptor,
        messages: Sequence[CanonicalMessage],
        options: GenerationOptions,
        token: Optional[CancellationToken] = None,
    ) -> Iterator[ProviderEvent]:
        """Run one generation and yield provider events in arrival order.

        The returned generator is finite and not restartable. Failures raise
        `ProviderRequestFailed` (or `ProviderDecodeFailed`); cancellation
        raises `CancelledError`.
        """
        token = token or CancellationToken()
        ctx = LogContext(provider=descriptor.kind.value, model=descriptor.model_id)
        options, notices = self._degrade(descriptor, options, ctx)
        for notice in notices:
            yield TextDelta(notice)
        try:
            yield from self._generate(descriptor, list(messages), options, token, ctx)
        except (ProviderError, CancelledError):
            raise
        except Exception as exc:
            raise wrap_provider_exception(exc, provider=descriptor.kind.value, model=descriptor.model_id) from exc

    @abstractmethod
    def _generate(
        self,
        descriptor: ProviderDescriptor,
        messages: List[CanonicalMessage],
        options: GenerationOptions,
        token: CancellationToken,
        ctx: LogContext,
    ) -> Iterator[ProviderEvent]:
        """Provider-specific request and decode loop."""

    def _degrade(
        self, descriptor: ProviderDescriptor, options: GenerationOptions, ctx: LogContext
    ) -> tuple[GenerationOptions, List[str]]:
        notices: List[str] = []
        if options.web_search_requested and not self._offers(descriptor, Capability.WEB_SEARCH):
            notice = UnsupportedCapability(Capability.WEB_SEARCH.value, descriptor.model_id)
            self._log_unsupported(ctx, Capability.WEB_SEARCH)
            notices.append(notice.notice())
            options = replace(options, web_search_requested=False)
        if options.reasoning_requested and not self._offers(descriptor, Capability.REASONING):
            self._log_unsupported(ctx, Capability.REASONING)
            options = replace(options, reasoning_requested=False)
        if options.file_search_context and not self._offers(descriptor, Capability.FILE_SEARCH):
            self._log_unsupported(ctx, Capability.FILE_SEARCH)
            options = replace(options, file_search_context=None)
        return options, notices

    def _offers(self, descriptor: ProviderDescriptor, capability: Capability) -> bool:
        return capability not in self.withheld_capabilities and descriptor.supports(capability)

    def _log_unsupported(self, ctx: LogContext, capability: Capability) -> None:
        normalized_log_event(
            self._logger,
            "stream.capability.unsupported",
            ctx,
            phase="start",
            attempt=None,
            emitted=False,
            tokens=None,
            capability=capability.value,
        )

    def _decode_stream(
        self,
        stream: Any,
        translator: FrameTranslator,
        ctx: LogContext,
        token: CancellationToken,
    ) -> Iterator[ProviderEvent]:
        """Translate native stream frames into provider events.

        A frame whose translator raises anything other than `ProviderError`
        is skipped and logged. If frames were skipped and no text was decoded
        at all, the stream is a `ProviderDecodeFailed`.
        """
        produced_text = False
        skipped = 0
        with ExitStack() as stack:
            register_stream_cleanup(stream, stack)
            for frame in stream:
                token.raise_if_cancelled()
                try:
                    events = list(translator(frame) or ())
                except ProviderError:
                    raise
                except Exception as exc:  # noqa: BLE001 - unrecognized frame
                    skipped += 1
                    normalized_log_event(
                        self._logger,
                        "stream.frame.skipped",
                        ctx,
                        phase="mid_stream",
                        attempt=None,
                        level=logging.DEBUG,
                        emitted=produced_text,
                        tokens=None,
                        failure_class=exc.__class__.__name__,
                        frame_type=getattr(frame, "type", None),
                    )
                    continue
                for event in events:
                    if isinstance(event, TextDelta) and event.text:
                        produced_text = True
                    yield event
        if skipped and not produced_text:
            raise ProviderDecodeFailed(
                code=ErrorCode.DECODE,
                message=f"no decodable content ({skipped} frames skipped)",
                provider=ctx.provider or self.kind.value,
                model=ctx.model,
            )

    def _simulate(self, text: str, token: CancellationToken) -> Iterator[TextDelta]:
        """Deliver ``text`` as word-group chunks with a cancellable delay."""
        settings = self.settings
        return simulate_stream(
            text,
            token,
            words_per_chunk=settings.simulated_chunk_words,
            delay_seconds=settings.simulated_chunk_delay_seconds,
        )


def system_text(messages: Sequence[CanonicalMessage]) -> str:
    """All system message contents merged with a blank line."""
    return "\n\n".join(m.content for m in messages if m.role == "system" and m.content)


def conversation_turns(messages: Sequence[CanonicalMessage]) -> List[CanonicalMessage]:
    """Non-system messages in their original order."""
    return [m for m in messages if m.role != "system"]


def last_user_text(messages: Sequence[CanonicalMessage]) -> str:
    for m in reversed(messages):
        if m.role == "user":
            return m.content
    return ""


__all__ = [
    "FrameTranslator",
    "ProviderAdapter",
    "conversation_turns",
    "last_user_text",
    "register_stream_cleanup",
    "system_text",
]
