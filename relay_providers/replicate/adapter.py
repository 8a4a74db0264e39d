"""Replicate provider adapter.

Purpose:
    Create a prediction, poll it to a terminal status, and deliver the joined
    output as simulated word-group chunks.

External dependencies:
    - ``httpx`` through the shared pool (`get_httpx_client`); the API token is
      sent per request as a bearer header and never stored on the client.

Timeout:
    Each HTTP call uses the pooled client's timeouts. Polling stops after
    ``RelaySettings.replicate_poll_timeout_seconds`` with a ``timeout``
    failure.

Cancellation:
    The poll interval sleeps on the cancellation token. A cancelled
    generation asks Replicate to cancel the prediction (best effort) before
    raising `CancelledError`.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Iterator, List

import httpx

from ..base.adapters import ProviderAdapter
from ..base.cancellation import CancellationToken, CancelledError
from ..base.errors import ErrorCode, ProviderDecodeFailed, ProviderRequestFailed, classify_exception
from ..base.http import get_httpx_client
from ..base.logging import LogContext, normalized_log_event
from ..base.models import CanonicalMessage, GenerationOptions, ProviderDescriptor, ProviderKind
from ..base.streaming.provider_events import ProviderEvent, UsageReported
from ..base.tokens import extract_replicate_token_usage, has_usage
from ..config.defaults import REPLICATE_DEFAULT_BASE_URL
from .helpers import (
    TERMINAL_STATUSES,
    build_prompt,
    prediction_output_text,
    prediction_request,
    prediction_url,
)


class ReplicateAdapter(ProviderAdapter):
    """Adapter for Replicate-hosted language models."""

    kind = ProviderKind.REPLICATE

    def _client_for(self, descriptor: ProviderDescriptor) -> httpx.Client:
        return get_httpx_client(descriptor.endpoint or REPLICATE_DEFAULT_BASE_URL, "replicate")

    def _generate(
        self,
        descriptor: ProviderDescriptor,
        messages: List[CanonicalMessage],
        options: GenerationOptions,
        token: CancellationToken,
        ctx: LogContext,
    ) -> Iterator[ProviderEvent]:
        client = self._client_for(descriptor)
        headers = {"Authorization": f"Bearer {descriptor.secret}", "Content-Type": "application/json"}
        path, body = prediction_request(descriptor.model_id, build_prompt(messages), self.settings.max_tokens)
        token.raise_if_cancelled()

        resp = client.post(path, json=body, headers=headers)
        resp.raise_for_status()
        prediction = resp.json()
        normalized_log_event(
            self._logger,
            "stream.prediction.created",
            ctx,
            phase="start",
            attempt=1,
            emitted=False,
            tokens=None,
            prediction_id=prediction.get("id"),
            status=prediction.get("status"),
        )
        prediction = self._await_prediction(client, prediction, headers, token, ctx)

        text = prediction_output_text(prediction)
        if not text:
            raise ProviderDecodeFailed(
                code=ErrorCode.DECODE,
                message="prediction produced no output",
                provider=self.kind.value,
                model=descriptor.model_id,
            )
        yield from self._simulate(text, token)
        usage = extract_replicate_token_usage(prediction)
        if has_usage(usage):
            yield UsageReported(input_tokens=usage["prompt"], output_tokens=usage["completion"], total_tokens=usage["total"])

    def _await_prediction(
        self,
        client: httpx.Client,
        prediction: Dict[str, Any],
        headers: Dict[str, str],
        token: CancellationToken,
        ctx: LogContext,
    ) -> Dict[str, Any]:
        """Poll until the prediction reaches a terminal status.

        Returns the succeeded prediction; ``failed`` and ``canceled`` raise
        `ProviderRequestFailed`.
        """
        settings = self.settings
        deadline = time.monotonic() + settings.replicate_poll_timeout_seconds
        while prediction.get("status") not in TERMINAL_STATUSES:
            if token.wait(settings.replicate_poll_interval_seconds):
                self._cancel_prediction(client, prediction, headers, ctx)
                raise CancelledError(token.reason or "operation cancelled")
            if time.monotonic() > deadline:
                self._cancel_prediction(client, prediction, headers, ctx)
                raise ProviderRequestFailed(
                    code=ErrorCode.TIMEOUT,
                    message=f"prediction did not finish within {settings.replicate_poll_timeout_seconds:g}s",
                    provider=self.kind.value,
                    model=ctx.model,
                    retryable=True,
                )
            url = prediction_url(prediction, "get")
            if url is None:
                raise ProviderRequestFailed(
                    code=ErrorCode.DECODE,
                    message="prediction response carried no id or polling URL",
                    provider=self.kind.value,
                    model=ctx.model,
                )
            resp = client.get(url, headers=headers)
            resp.raise_for_status()
            prediction = resp.json()

        status = prediction.get("status")
        if status == "failed":
            message = str(prediction.get("error") or "prediction failed")
            code = classify_exception(RuntimeError(message))
            raise ProviderRequestFailed(
                code=code, message=message, provider=self.kind.value, model=ctx.model, retryable=code.retryable
            )
        if status == "canceled":
            raise ProviderRequestFailed(
                code=ErrorCode.CANCELLED,
                message="prediction was canceled",
                provider=self.kind.value,
                model=ctx.model,
            )
        return prediction

    def _cancel_prediction(
        self, client: httpx.Client, prediction: Dict[str, Any], headers: Dict[str, str], ctx: LogContext
    ) -> None:
        url = prediction_url(prediction, "cancel")
        if url is None:
            return
        try:
            client.post(url, headers=headers)
        except httpx.HTTPError as exc:
            normalized_log_event(
                self._logger,
                "stream.prediction.cancel_failed",
                ctx,
                phase="finalize",
                attempt=None,
                level=logging.WARNING,
                error_code=classify_exception(exc).value,
                emitted=None,
                tokens=None,
                failure_class=exc.__class__.__name__,
            )


__all__ = ["ReplicateAdapter"]
