"""Sentence-bounded splitting of texts that exceed the per-item byte limit.

Sentence boundaries come from pysbd (rule-based, handles "Dr.", "e.g.",
decimals and friends).  pysbd only decides *where* to cut: every sentence
returned here is sliced from the original string, so

    "".join(split_text(text, n)) == text

holds for any text and any n.
"""

from __future__ import annotations
import logging
from functools import lru_cache

import pysbd

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


def utf8_len(text: str) -> int:
    """Size of text in UTF-8 bytes (not characters)."""
    return len(text.encode("utf-8"))


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut text to at most max_bytes UTF-8 bytes without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


@lru_cache(maxsize=None)
def _segmenter(language: str) -> pysbd.Segmenter:
    try:
        return pysbd.Segmenter(language=language, clean=False)
    except ValueError:
        logger.debug("No sentence rules for language %r, using %r", language, DEFAULT_LANGUAGE)
        return pysbd.Segmenter(language=DEFAULT_LANGUAGE, clean=False)


def _base_language(language: str | None) -> str:
    # "zh-TW" → "zh", "auto"/None → default
    if not language or language == "auto":
        return DEFAULT_LANGUAGE
    return language.split("-")[0].lower()


def split_sentences(text: str, language: str | None = DEFAULT_LANGUAGE) -> list[str]:
    """Split text into sentences that concatenate back to text exactly.

    Whitespace between two sentences stays with the earlier one.
    """
    if not text:
        return []

    bounds = [0]
    cursor = 0
    aligned_any = False
    for sentence in _segmenter(_base_language(language)).segment(text):
        sentence = sentence.strip()
        if not sentence:
            continue
        start = text.find(sentence, cursor)
        if start == -1:
            # Can't align; it stays part of the previous sentence.
            continue
        if aligned_any and start > bounds[-1]:
            bounds.append(start)
        aligned_any = True
        cursor = start + len(sentence)
    bounds.append(len(text))

    return [text[a:b] for a, b in zip(bounds, bounds[1:])]


def split_text(text: str, max_bytes: int, language: str | None = DEFAULT_LANGUAGE) -> list[str]:
    """Split text into sentence-bounded chunks of less than max_bytes each.

    Sentences are packed greedily; a chunk is closed as soon as the next
    sentence would bring it to max_bytes or beyond.  A single sentence larger
    than max_bytes can't be split here: it becomes a chunk of its own and is
    logged, never truncated or dropped.
    """
    if max_bytes < 1:
        raise ValueError(f"max_bytes must be >= 1, got {max_bytes}")

    chunks: list[str] = []
    current: list[str] = []
    current_bytes = 0

    for sentence in split_sentences(text, language):
        size = utf8_len(sentence)
        if size > max_bytes:
            logger.warning(
                "Sentence of %d bytes exceeds max %d bytes, unsplittable: %.80r",
                size, max_bytes, sentence,
            )
        if current and current_bytes + size >= max_bytes:
            chunks.append("".join(current))
            current = []
            current_bytes = 0
        current.append(sentence)
        current_bytes += size

    if current:
        chunks.append("".join(current))

    logger.debug(
        "Split %d bytes into %d chunks (max %d bytes): %s",
        utf8_len(text), len(chunks), max_bytes, [utf8_len(c) for c in chunks],
    )
    return chunks
