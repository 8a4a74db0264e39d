"""Token usage helpers package."""

from .extraction import (
    CHARS_PER_TOKEN,
    PLACEHOLDER_USAGE,
    estimate_tokens,
    extract_anthropic_token_usage,
    extract_gemini_token_usage,
    extract_openai_token_usage,
    extract_replicate_token_usage,
    extract_responses_token_usage,
    has_usage,
)

__all__ = [
    "CHARS_PER_TOKEN",
    "PLACEHOLDER_USAGE",
    "estimate_tokens",
    "extract_anthropic_token_usage",
    "extract_gemini_token_usage",
    "extract_openai_token_usage",
    "extract_replicate_token_usage",
    "extract_responses_token_usage",
    "has_usage",
]
