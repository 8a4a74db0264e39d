"""Adapter for OpenAI-compatible endpoints.

Speaks Chat Completions streaming against ``descriptor.endpoint`` through the
``openai`` SDK. Tools are not attached: compatible servers rarely implement
the Responses API, so web and file search are withheld even when a stored
configuration claims them, and a web search request becomes the usual
in-band notice.
"""
from __future__ import annotations

from ..base.models import Capability, GenerationOptions, ProviderKind
from ..openai.adapter import OpenAIAdapter


class CustomAdapter(OpenAIAdapter):
    kind = ProviderKind.CUSTOM
    withheld_capabilities = frozenset({Capability.WEB_SEARCH, Capability.FILE_SEARCH})

    def _use_responses(self, model: str, options: GenerationOptions) -> bool:
        return False


__all__ = ["CustomAdapter"]
