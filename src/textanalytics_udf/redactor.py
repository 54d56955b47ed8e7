"""Redactor — replace detected spans with a ``[TYPE]`` placeholder.

Usage:
    from textanalytics_udf.redactor import redact_spans

    spans = [Span("NAME", 0, 3), Span("LOCATION", 13, 18)]
    redact_spans("Bob lives in Paris", spans, "ALL")
    # "[NAME] lives in [LOCATION]"

Replacements are applied left to right.  Each one changes the string's
length, so a running drift is added to the offsets of every later span.
"""

from __future__ import annotations
import logging
import re
from typing import Sequence

from .types import Span

logger = logging.getLogger(__name__)

ALL_TYPES = "ALL"

_SEPARATORS = re.compile(r"[\s,]+")


def parse_redact_types(value: str | None) -> frozenset[str]:
    """Parse a filter like ``"NAME, ADDRESS"`` or ``"ALL"`` into a set of labels."""
    if not value:
        return frozenset()
    return frozenset(t for t in _SEPARATORS.split(value.strip()) if t)


def _matches(span_type: str | None, redact_types: frozenset[str]) -> bool:
    if span_type is None:
        return False
    return ALL_TYPES in redact_types or span_type in redact_types


def redact_spans(
    text: str,
    spans: Sequence[Span],
    redact_types: str | frozenset[str] | None,
) -> str:
    """Return text with every span whose type passes the filter replaced.

    Offsets in ``spans`` refer to the unmodified text.
    """
    if isinstance(redact_types, str) or redact_types is None:
        redact_types = parse_redact_types(redact_types)
    if not redact_types or not spans:
        return text

    result = text
    drift = 0
    redacted_until = 0          # end of last replacement, original coordinates
    for span in sorted(spans, key=lambda s: s.begin_offset):
        if not _matches(span.type, redact_types):
            continue
        if span.begin_offset < redacted_until:
            logger.debug(
                "Skipping %s span %d..%d overlapping a previous redaction",
                span.type, span.begin_offset, span.end_offset,
            )
            continue
        start = span.begin_offset + drift
        end = span.end_offset + drift
        placeholder = f"[{span.type}]"
        result = result[:start] + placeholder + result[end:]
        drift += len(placeholder) - (end - start)
        redacted_until = span.end_offset

    return result


def extract_typed_values(text: str, spans: Sequence[Span]) -> list[list[str]]:
    """Return ``[type, value]`` pairs, value sliced from text by each span."""
    return [
        [span.type or "", text[span.begin_offset:span.end_offset]]
        for span in spans
    ]


def extract_values(text: str, spans: Sequence[Span]) -> list[str]:
    """Return the text covered by each span (used for key phrases)."""
    return [text[span.begin_offset:span.end_offset] for span in spans]
