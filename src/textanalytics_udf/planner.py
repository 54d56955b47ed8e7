"""Batch planning — group rows into capability-sized batches.

Rows are scanned left to right.  The open multi-row batch is closed when it
is full or (optionally) when the language changes; the row that triggered
the close starts the next batch.  Rows over the byte limit are either
truncated in place (lossy, fine when only the leading text matters) or
split into sentence chunks and emitted as a batch of their own.
"""

from __future__ import annotations
import logging
from typing import Sequence

from .splitter import split_text, truncate_utf8, utf8_len
from .types import BatchDescriptor, BatchKind, Row

logger = logging.getLogger(__name__)


def plan_batches(
    rows: Sequence[Row],
    max_batch_size: int,
    max_text_bytes: int,
    *,
    split_long_text: bool,
    group_by_language: bool = False,
) -> list[BatchDescriptor]:
    """Partition rows into an ordered list of batches covering each row once.

    A row is oversized when its UTF-8 length is strictly greater than
    max_text_bytes.  Truncated texts live only in the returned descriptors;
    the caller's rows are not touched.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")
    if max_text_bytes < 1:
        raise ValueError(f"max_text_bytes must be >= 1, got {max_text_bytes}")

    batches: list[BatchDescriptor] = []
    open_texts: list[str] = []
    start = 0
    language: str | None = None

    for i, row in enumerate(rows):
        # --- count / language trigger ---
        language_changed = (
            group_by_language and open_texts and row.language_code != language
        )
        if len(open_texts) >= max_batch_size or language_changed:
            batches.append(_multi_row(open_texts, start, i, language))
            open_texts = []
        if not open_texts:
            start = i
            language = row.language_code if group_by_language else None

        # --- overflow trigger ---
        text = row.text
        size = utf8_len(text)
        if size > max_text_bytes:
            if split_long_text:
                if open_texts:
                    batches.append(_multi_row(open_texts, start, i, language))
                    open_texts = []
                chunks = split_text(text, max_text_bytes, row.language_code)
                logger.debug(
                    "Row %d: split long text (%d bytes) into %d chunks under %d bytes",
                    i, size, len(chunks), max_text_bytes,
                )
                batches.append(BatchDescriptor(
                    kind=BatchKind.TEXT_SPLIT,
                    texts=chunks,
                    row_start=i,
                    row_end=i + 1,
                    language_code=row.language_code,
                ))
                continue
            logger.debug(
                "Row %d: truncating long text (%d bytes) to %d bytes", i, size, max_text_bytes,
            )
            text = truncate_utf8(text, max_text_bytes)

        open_texts.append(text)

    if open_texts:
        batches.append(_multi_row(open_texts, start, len(rows), language))
    return batches


def chunk_batches(items: Sequence[str], max_batch_size: int) -> list[BatchDescriptor]:
    """Count-only batching, used for the chunks of one split row.

    Row ranges in the result index into ``items``.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")
    return [
        _multi_row(list(items[i:i + max_batch_size]), i, min(i + max_batch_size, len(items)), None)
        for i in range(0, len(items), max_batch_size)
    ]


def _multi_row(texts: list[str], start: int, end: int, language: str | None) -> BatchDescriptor:
    return BatchDescriptor(
        kind=BatchKind.MULTI_ROW,
        texts=texts,
        row_start=start,
        row_end=end,
        language_code=language,
    )
