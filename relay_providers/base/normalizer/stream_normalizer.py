"""Stream normalizer: one canonical event sequence for any provider.

Purpose:
    Orchestrate one generation end to end: resolve the provider, build the
    conversation context, dispatch to the matching adapter, and map its
    provider events onto canonical events with a fixed lifecycle::

        Start -> (SearchStart | SearchResults | Chunk)* -> End | Error

Preflight:
    Provider resolution, context building and corpus lookup run before
    ``Start``. `NoProviderConfigured` and `ContextUnavailable` end the run with
    zero events and a failed result carrying the user-visible message.

Failure:
    Any adapter failure after ``Start`` becomes one terminal ``Error`` whose
    text is ``"<code>: <message>"``; accumulated text is discarded. Nothing is
    retried here.

Cancellation:
    The token is checked between events. When it fires (or the consumer
    closes the stream) the adapter generator is closed, which releases the
    native stream; a terminal ``Error`` with ``"cancelled: ..."`` is produced
    and the result is marked ``cancelled`` so nothing gets persisted.

Usage:
    Provider-reported counts are used verbatim; missing sides are estimated
    at four characters per token. ``responseTimeMs`` is measured with
    ``time.perf_counter`` around the adapter call.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Iterator, List, Optional

from ...persistence.interfaces import ISearchCorpusProvider
from ..adapters import AdapterRegistry
from ..cancellation import CancellationToken, CancelledError
from ..context import ConversationContextBuilder
from ..errors import (
    ContextUnavailable,
    ErrorCode,
    NoProviderConfigured,
    ProviderError,
    wrap_provider_exception,
)
from ..logging import LogContext, get_logger, normalized_log_event
from ..models import (
    Capability,
    CanonicalMessage,
    GenerationOptions,
    GenerationRequest,
    GenerationResult,
    ProviderDescriptor,
)
from ..repositories import ProviderCredentialResolver
from ..streaming import (
    CanonicalStreamEvent,
    SearchResults,
    SearchResultsFound,
    SearchStart,
    SearchStarted,
    StreamChunk,
    StreamMetrics,
    StreamStart,
    TextDelta,
    UsageReported,
    finalize_stream,
)
from .helpers import SearchAccumulator, UsageAccumulator, build_usage_metadata

EventSink = Callable[[CanonicalStreamEvent], None]


class NormalizedStream:
    """Iterator over the canonical events of one generation.

    ``result`` is populated before the terminal event is yielded, or by
    :meth:`close` when the consumer stops early.
    """

    def __init__(self, normalizer: "StreamNormalizer", request: GenerationRequest, token: CancellationToken) -> None:
        self.result: Optional[GenerationResult] = None
        self.token = token
        self._events = normalizer._run(self, request, token)

    def __iter__(self) -> "NormalizedStream":
        return self

    def __next__(self) -> CanonicalStreamEvent:
        return next(self._events)

    def close(self, reason: str = "client disconnected") -> None:
        """Stop the generation; idempotent."""
        if self.result is None:
            self.token.cancel(reason)
        self._events.close()
        if self.result is None:
            self.result = GenerationResult(
                success=False, cancelled=True, message=f"{ErrorCode.CANCELLED.value}: {reason}"
            )


class StreamNormalizer:
    """Orchestrates generations across provider adapters."""

    def __init__(
        self,
        *,
        resolver: ProviderCredentialResolver,
        context_builder: ConversationContextBuilder,
        adapters: AdapterRegistry,
        corpus_provider: Optional[ISearchCorpusProvider] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._resolver = resolver
        self._context = context_builder
        self._adapters = adapters
        self._corpus = corpus_provider
        self._logger = logger or get_logger("normalizer")

    def open(self, request: GenerationRequest, cancellation_token: Optional[CancellationToken] = None) -> NormalizedStream:
        """Return a lazy event stream; nothing runs until it is iterated."""
        return NormalizedStream(self, request, cancellation_token or CancellationToken())

    def stream(
        self,
        request: GenerationRequest,
        emit: EventSink,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> GenerationResult:
        """Run one generation, pushing each canonical event to ``emit``.

        An exception raised by ``emit`` is treated as a disconnect: the
        generation is cancelled and the result reports ``cancelled``.
        """
        session = self.open(request, cancellation_token)
        try:
            for event in session:
                try:
                    emit(event)
                except Exception as exc:  # noqa: BLE001 - sink failure means the client is gone
                    normalized_log_event(
                        self._logger,
                        "stream.emit.failed",
                        LogContext(conversation_id=request.conversation_id),
                        phase="mid_stream",
                        attempt=None,
                        level=logging.WARNING,
                        emitted=True,
                        tokens=None,
                        failure_class=exc.__class__.__name__,
                    )
                    session.close("event sink failed")
                    break
        finally:
            session.close()
        if session.result is None:
            raise RuntimeError("generation finished without a result")
        return session.result

    def _run(
        self, session: NormalizedStream, request: GenerationRequest, token: CancellationToken
    ) -> Iterator[CanonicalStreamEvent]:
        ctx = LogContext(conversation_id=request.conversation_id)
        try:
            descriptor = self._resolver.resolve(request.model_selector)
            history = self._context.build(request.conversation_id, request.personality_id, request.owner_id)
            adapter = self._adapters.get(descriptor.kind)
        except (NoProviderConfigured, ContextUnavailable, LookupError) as exc:
            self._log_rejected(ctx, exc)
            session.result = GenerationResult(success=False, message=str(exc))
            return

        messages: List[CanonicalMessage] = [*history, CanonicalMessage(role="user", content=request.text)]
        options = GenerationOptions(
            web_search_requested=request.web_search_requested,
            reasoning_requested=request.reasoning_requested,
            file_search_context=self._corpus_for(request, descriptor, ctx),
        )
        message_id = str(uuid.uuid4())
        ctx = LogContext(
            provider=descriptor.kind.value,
            model=descriptor.model_id,
            request_id=message_id,
            conversation_id=request.conversation_id,
        )
        if token.cancelled:
            session.result = GenerationResult(
                success=False, cancelled=True, message=f"{ErrorCode.CANCELLED.value}: {token.reason or 'operation cancelled'}"
            )
            return

        normalized_log_event(
            self._logger,
            "stream.start",
            ctx,
            phase="start",
            attempt=None,
            emitted=False,
            tokens=None,
            web_search=options.web_search_requested or None,
            file_search=bool(options.file_search_context) or None,
            reasoning=options.reasoning_requested or None,
        )
        yield StreamStart(message_id=message_id)

        metrics = StreamMetrics(started_at=time.perf_counter())
        parts: List[str] = []
        usage = UsageAccumulator()
        search = SearchAccumulator()
        error_text: Optional[str] = None
        cancelled_reason: Optional[str] = None
        provider_events = adapter.generate(descriptor, messages, options, token)
        try:
            for event in provider_events:
                if token.cancelled:
                    break
                if isinstance(event, TextDelta):
                    if not event.text:
                        continue
                    parts.append(event.text)
                    metrics.record_chunk(time.perf_counter())
                    yield StreamChunk(message_id=message_id, text_delta=event.text)
                elif isinstance(event, SearchStarted):
                    search.started(event.query)
                    metrics.record_search()
                    self._log_search(ctx, event.query)
                    yield SearchStart(query=event.query, message_id=message_id)
                elif isinstance(event, SearchResultsFound):
                    search.found(event)
                    yield SearchResults(
                        query=event.query or search.query or "",
                        results=tuple(event.results),
                        message_id=message_id,
                    )
                elif isinstance(event, UsageReported):
                    usage.add(event)
            if token.cancelled:
                cancelled_reason = token.reason or "operation cancelled"
        except CancelledError as exc:
            cancelled_reason = token.reason or str(exc) or "operation cancelled"
        except ProviderError as exc:
            error_text = exc.error_text()
        except Exception as exc:  # noqa: BLE001 - adapters should wrap; normalize anyway
            error_text = wrap_provider_exception(
                exc, provider=descriptor.kind.value, model=descriptor.model_id
            ).error_text()
        finally:
            provider_events.close()
        elapsed = metrics.finish(time.perf_counter())

        if cancelled_reason is not None:
            text = f"{ErrorCode.CANCELLED.value}: {cancelled_reason}"
            session.result = GenerationResult(success=False, cancelled=True, message=text, message_id=message_id)
            yield finalize_stream(logger=self._logger, ctx=ctx, message_id=message_id, metrics=metrics, error=text)
            return
        if error_text is not None:
            session.result = GenerationResult(success=False, message=error_text, message_id=message_id)
            yield finalize_stream(logger=self._logger, ctx=ctx, message_id=message_id, metrics=metrics, error=error_text)
            return

        final_text = "".join(parts)
        metadata = build_usage_metadata(
            descriptor=descriptor,
            messages=messages,
            final_text=final_text,
            usage=usage,
            search=search,
            response_time_ms=int(round(elapsed * 1000.0)),
            message_id=message_id,
        )
        metrics.apply_usage(metadata)
        session.result = GenerationResult(
            success=True, final_text=final_text, metadata=metadata, message_id=message_id
        )
        yield finalize_stream(logger=self._logger, ctx=ctx, message_id=message_id, metrics=metrics, metadata=metadata)

    def _corpus_for(
        self, request: GenerationRequest, descriptor: ProviderDescriptor, ctx: LogContext
    ) -> Optional[str]:
        if self._corpus is None or not request.attachment_refs:
            return None
        if not descriptor.supports(Capability.FILE_SEARCH):
            return None
        try:
            return self._corpus.get_or_create_corpus(request.conversation_id, request.owner_id)
        except Exception as exc:  # noqa: BLE001 - file search is optional
            normalized_log_event(
                self._logger,
                "stream.file_search.unavailable",
                ctx,
                phase="start",
                attempt=None,
                level=logging.WARNING,
                emitted=False,
                tokens=None,
                failure_class=exc.__class__.__name__,
            )
            return None

    def _log_search(self, ctx: LogContext, query: str) -> None:
        normalized_log_event(
            self._logger,
            "stream.search.start",
            ctx,
            phase="mid_stream",
            attempt=None,
            emitted=None,
            tokens=None,
            query_chars=len(query),
        )

    def _log_rejected(self, ctx: LogContext, exc: Exception) -> None:
        normalized_log_event(
            self._logger,
            "stream.normalizer.error",
            ctx,
            phase="preflight",
            attempt=None,
            level=logging.WARNING,
            emitted=False,
            tokens=None,
            failure_class=exc.__class__.__name__,
            error=str(exc),
        )


__all__ = ["EventSink", "NormalizedStream", "StreamNormalizer"]
