"""Simulated streaming for providers without incremental output.

The final text is split into word groups whose concatenation reproduces the
original exactly (whitespace included) and delivered one group at a time,
sleeping on the cancellation token between groups so a disconnect interrupts
the delay immediately.
"""
from __future__ import annotations

import re
from typing import Iterator, List

from ..cancellation import CancellationToken, CancelledError
from .provider_events import TextDelta

MIN_WORDS_PER_CHUNK = 3
MAX_WORDS_PER_CHUNK = 5

_WORD_RE = re.compile(r"\S+\s*")


def clamp_words_per_chunk(words: int) -> int:
    return max(MIN_WORDS_PER_CHUNK, min(MAX_WORDS_PER_CHUNK, int(words)))


def split_word_groups(text: str, words_per_chunk: int = 4) -> List[str]:
    """Split ``text`` into groups of ``words_per_chunk`` words.

    Leading whitespace sticks to the first group and trailing whitespace to
    the word before it, so ``"".join(result) == text``.
    """
    if not text:
        return []
    size = clamp_words_per_chunk(words_per_chunk)
    words = _WORD_RE.findall(text)
    if not words:
        return [text]
    lead = text[: len(text) - len(text.lstrip())]
    words[0] = lead + words[0]
    return ["".join(words[i : i + size]) for i in range(0, len(words), size)]


def simulate_stream(
    text: str,
    token: CancellationToken,
    *,
    words_per_chunk: int = 4,
    delay_seconds: float = 0.03,
) -> Iterator[TextDelta]:
    """Yield ``text`` as word-group deltas with a cancellable delay between them."""
    for index, group in enumerate(split_word_groups(text, words_per_chunk)):
        if index and delay_seconds > 0 and token.wait(delay_seconds):
            raise CancelledError(token.reason or "operation cancelled")
        token.raise_if_cancelled()
        yield TextDelta(group)


__all__ = [
    "MIN_WORDS_PER_CHUNK",
    "MAX_WORDS_PER_CHUNK",
    "clamp_words_per_chunk",
    "split_word_groups",
    "simulate_stream",
]
