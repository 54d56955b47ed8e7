"""Reassemble the chunk results of a split row into one row result."""

from __future__ import annotations
from typing import Sequence

from .errors import PlanningInvariantError
from .types import Span


def offset_table(chunks: Sequence[str]) -> list[int]:
    """Starting offset of each chunk within the original (unsplit) text."""
    offsets: list[int] = []
    pos = 0
    for chunk in chunks:
        offsets.append(pos)
        pos += len(chunk)
    return offsets


def merge_text(chunk_results: Sequence[str]) -> str:
    """Concatenate rewritten chunks (e.g. translations) in order."""
    return "".join(chunk_results)


def merge_spans(chunk_spans: Sequence[Sequence[Span]], offsets: Sequence[int]) -> list[Span]:
    """Shift every chunk's spans by that chunk's offset and join them in order.

    Chunks come in text order and each chunk's spans are already in order,
    so the merged list is ordered against the original text.
    """
    if len(chunk_spans) != len(offsets):
        raise PlanningInvariantError(
            f"cannot merge {len(chunk_spans)} chunk results with {len(offsets)} offsets"
        )
    merged: list[Span] = []
    for spans, offset in zip(chunk_spans, offsets):
        merged.extend(span.shifted(offset) for span in spans)
    return merged
