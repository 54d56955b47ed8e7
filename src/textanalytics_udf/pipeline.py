"""Row analytics pipeline — the main API.

Usage:
    from textanalytics_udf import TextAnalyticsPipeline, ComprehendCapability

    pipeline = TextAnalyticsPipeline(ComprehendCapability.create())
    pipeline.detect_sentiment(["I am happy", "ce n'est pas bon"], ["en", "fr"])
    # ["POSITIVE", "NEGATIVE"]

    pipeline.redact_pii_entities(["I am Bob"], ["en"], ["ALL"])
    # ["I am [NAME]"]

Every operation takes parallel input columns and returns exactly one result
per row, in row order, however the rows were batched or split on the way.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from .capability import TextAnalyticsCapability
from .errors import CapabilityBatchError, CapabilityCallError, PlanningInvariantError
from .merger import merge_spans, merge_text, offset_table
from .operations import (
    DetectDominantLanguage,
    DetectEntities,
    DetectKeyPhrases,
    DetectPiiEntities,
    DetectSentiment,
    Operation,
    RedactEntities,
    RedactPiiEntities,
    TranslateText,
)
from .planner import chunk_batches, plan_batches
from .redactor import extract_typed_values, extract_values, redact_spans
from .splitter import utf8_len
from .types import BatchDescriptor, BatchKind, BatchResponse, Row, Span

logger = logging.getLogger(__name__)

T = TypeVar("T")

# detect(texts, language_code, batch_index) → one span list per text
SpanDetector = Callable[[Sequence[str], "str | None", int], list[list[Span]]]
# render(row, row_text, spans) → row result
SpanRenderer = Callable[[Row, str, list[Span]], Any]


@dataclass
class PipelineConfig:
    """Limits imposed by the remote capability."""
    max_text_bytes: int = 5000      # per item, UTF-8 bytes
    max_batch_size: int = 25        # items per batch call


class TextAnalyticsPipeline:
    """Batches rows around the capability's limits and reassembles per-row results.

    The capability is injected; its construction, retries and timeouts are
    its own business.  Config changes apply to the next call.
    """

    def __init__(
        self,
        capability: TextAnalyticsCapability,
        config: PipelineConfig | None = None,
    ) -> None:
        self.capability = capability
        self.config = config or PipelineConfig()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def run(self, operation: Operation) -> list[Any]:
        """Run any operation variant."""
        try:
            handler = _DISPATCH[type(operation)]
        except KeyError:
            raise TypeError(f"not an operation: {operation!r}") from None
        return handler(self, operation)

    # ------------------------------------------------------------------
    # Language / sentiment (truncate, never split)
    # ------------------------------------------------------------------

    def detect_dominant_language(self, texts: Sequence[str], *, full: bool = False) -> list[Any]:
        """Language code of each text, or all candidates with scores when ``full``."""
        operation = "detect_dominant_language"
        rows = _build_rows(operation, texts)
        results: list[Any] = [None] * len(rows)

        for n, batch in enumerate(self._plan(rows, split_long_text=False, group_by_language=False)):
            _expect_multi_row(operation, batch)
            self._log_batch(operation, n, batch)
            items = self._call_batch(
                operation, n, batch.texts, self.capability.detect_dominant_language,
            )
            for row, languages in zip(range(batch.row_start, batch.row_end), items):
                if full:
                    results[row] = [lang.to_dict() for lang in languages]
                else:
                    results[row] = languages[0].language_code if languages else None
        return results

    def detect_sentiment(
        self,
        texts: Sequence[str],
        language_codes: Sequence[str],
        *,
        full: bool = False,
    ) -> list[Any]:
        """Sentiment label of each text, or label plus scores when ``full``."""
        operation = "detect_sentiment"
        rows = _build_rows(operation, texts, language_codes)
        results: list[Any] = [None] * len(rows)

        for n, batch in enumerate(self._plan(rows, split_long_text=False, group_by_language=True)):
            _expect_multi_row(operation, batch)
            self._log_batch(operation, n, batch)
            language = batch.language_code
            items = self._call_batch(
                operation, n, batch.texts,
                lambda t: self.capability.detect_sentiment(t, language),
            )
            for row, sentiment in zip(range(batch.row_start, batch.row_end), items):
                results[row] = sentiment.to_dict() if full else sentiment.sentiment
        return results

    # ------------------------------------------------------------------
    # Span operations (split long rows, merge with offsets)
    # ------------------------------------------------------------------

    def detect_entities(
        self,
        texts: Sequence[str],
        language_codes: Sequence[str],
        *,
        full: bool = False,
    ) -> list[Any]:
        """``[type, value]`` pairs per text, or full span dicts when ``full``."""
        rows = _build_rows("detect_entities", texts, language_codes)
        return self._span_rows(
            "detect_entities", rows, self._batch_entities, _render_full if full else _render_typed,
        )

    def redact_entities(
        self,
        texts: Sequence[str],
        language_codes: Sequence[str],
        redact_types: Sequence[str],
    ) -> list[str]:
        """Each text with the entity types named in its row's filter redacted."""
        rows = _build_rows("redact_entities", texts, language_codes, redact_types)
        return self._span_rows("redact_entities", rows, self._batch_entities, _render_redacted)

    def detect_pii_entities(
        self,
        texts: Sequence[str],
        language_codes: Sequence[str],
        *,
        full: bool = False,
    ) -> list[Any]:
        """``[type, value]`` PII pairs per text, or full span dicts when ``full``."""
        rows = _build_rows("detect_pii_entities", texts, language_codes)
        return self._span_rows(
            "detect_pii_entities", rows, self._each_pii, _render_full if full else _render_typed,
        )

    def redact_pii_entities(
        self,
        texts: Sequence[str],
        language_codes: Sequence[str],
        redact_types: Sequence[str],
    ) -> list[str]:
        """Each text with the PII types named in its row's filter redacted."""
        rows = _build_rows("redact_pii_entities", texts, language_codes, redact_types)
        return self._span_rows("redact_pii_entities", rows, self._each_pii, _render_redacted)

    def detect_key_phrases(
        self,
        texts: Sequence[str],
        language_codes: Sequence[str],
        *,
        full: bool = False,
    ) -> list[Any]:
        """Key phrase strings per text, or full span dicts when ``full``."""
        rows = _build_rows("detect_key_phrases", texts, language_codes)
        return self._span_rows(
            "detect_key_phrases", rows, self._batch_key_phrases,
            _render_full if full else _render_values,
        )

    def _span_rows(
        self,
        operation: str,
        rows: list[Row],
        detect: SpanDetector,
        render: SpanRenderer,
    ) -> list[Any]:
        results: list[Any] = [None] * len(rows)

        for n, batch in enumerate(self._plan(rows, split_long_text=True, group_by_language=True)):
            self._log_batch(operation, n, batch)

            if batch.kind is BatchKind.MULTI_ROW:
                row_spans = detect(batch.texts, batch.language_code, n)
                for i, (text, spans) in enumerate(zip(batch.texts, row_spans)):
                    row = batch.row_start + i
                    results[row] = render(rows[row], text, spans)
                continue

            # TEXT_SPLIT: one logical row spread over several chunks
            chunk_spans: list[list[Span]] = []
            for sub in chunk_batches(batch.texts, self.config.max_batch_size):
                chunk_spans.extend(detect(sub.texts, batch.language_code, n))
            spans = merge_spans(chunk_spans, offset_table(batch.texts))
            row = batch.row_start
            results[row] = render(rows[row], merge_text(batch.texts), spans)

        return results

    def _batch_entities(self, texts: Sequence[str], language: str | None, n: int) -> list[list[Span]]:
        return self._call_batch(
            "detect_entities", n, texts,
            lambda t: self.capability.detect_entities(t, language),
        )

    def _batch_key_phrases(self, texts: Sequence[str], language: str | None, n: int) -> list[list[Span]]:
        return self._call_batch(
            "detect_key_phrases", n, texts,
            lambda t: self.capability.detect_key_phrases(t, language),
        )

    def _each_pii(self, texts: Sequence[str], language: str | None, n: int) -> list[list[Span]]:
        # No multi-document PII call: one request per text.
        return [self.capability.detect_pii_entities(text, language) for text in texts]

    # ------------------------------------------------------------------
    # Translation (best effort per item)
    # ------------------------------------------------------------------

    def translate_text(
        self,
        texts: Sequence[str],
        source_language_codes: Sequence[str],
        target_language_codes: Sequence[str],
        terminology_names: Sequence[str | None] | None = None,
    ) -> list[str]:
        """Translate each text.  A failed item comes back untranslated."""
        operation = "translate_text"
        if terminology_names is None:
            terminology_names = [None] * len(texts)
        _check_columns(
            operation, texts, source_language_codes, target_language_codes, terminology_names,
        )
        # Source language only steers sentence splitting; batching ignores it.
        rows = _build_rows(operation, texts, source_language_codes)
        results: list[Any] = [None] * len(rows)

        for n, batch in enumerate(self._plan(rows, split_long_text=True, group_by_language=False)):
            self._log_batch(operation, n, batch)
            if batch.kind is BatchKind.MULTI_ROW:
                for i, text in enumerate(batch.texts):
                    row = batch.row_start + i
                    results[row] = self._translate_one(
                        text,
                        source_language_codes[row],
                        target_language_codes[row],
                        terminology_names[row],
                    )
            else:
                row = batch.row_start
                results[row] = merge_text([
                    self._translate_one(
                        chunk,
                        source_language_codes[row],
                        target_language_codes[row],
                        terminology_names[row],
                    )
                    for chunk in batch.texts
                ])
        return results

    def _translate_one(
        self,
        text: str,
        source: str,
        target: str,
        terminology: str | None,
    ) -> str:
        if terminology in ("", "null"):
            terminology = None
        try:
            return self.capability.translate_text(text, source, target, terminology)
        except CapabilityCallError as e:
            logger.warning(
                "Translate failed for %d-byte input, returning it untranslated: %s",
                utf8_len(text), e,
            )
            return text

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _plan(
        self,
        rows: list[Row],
        *,
        split_long_text: bool,
        group_by_language: bool,
    ) -> list[BatchDescriptor]:
        return plan_batches(
            rows,
            self.config.max_batch_size,
            self.config.max_text_bytes,
            split_long_text=split_long_text,
            group_by_language=group_by_language,
        )

    @staticmethod
    def _call_batch(
        operation: str,
        batch_index: int,
        texts: Sequence[str],
        call: Callable[[list[str]], BatchResponse[T]],
    ) -> list[T]:
        response = call(list(texts))
        if response.errors:
            raise CapabilityBatchError(operation, batch_index, response.errors)
        if len(response.results) != len(texts):
            raise CapabilityBatchError(
                operation, batch_index,
                detail=f"sent {len(texts)} texts, got {len(response.results)} results",
            )
        return response.results

    @staticmethod
    def _log_batch(operation: str, n: int, batch: BatchDescriptor) -> None:
        logger.debug(
            "%s: batch %d => %s language=%s records=%d rows=%d..%d",
            operation, n, batch.kind.value, batch.language_code,
            len(batch.texts), batch.row_start, batch.row_end,
        )


# ----------------------------------------------------------------------
# Row rendering
# ----------------------------------------------------------------------

def _render_full(row: Row, text: str, spans: list[Span]) -> list[dict[str, Any]]:
    return [span.to_dict() for span in spans]


def _render_typed(row: Row, text: str, spans: list[Span]) -> list[list[str]]:
    return extract_typed_values(text, spans)


def _render_values(row: Row, text: str, spans: list[Span]) -> list[str]:
    return extract_values(text, spans)


def _render_redacted(row: Row, text: str, spans: list[Span]) -> str:
    return redact_spans(text, spans, row.redact_types)


# ----------------------------------------------------------------------
# Column handling
# ----------------------------------------------------------------------

def _check_columns(operation: str, *columns: Sequence[Any]) -> None:
    lengths = {len(c) for c in columns}
    if len(lengths) > 1:
        raise PlanningInvariantError(
            f"{operation}: input columns differ in length: {[len(c) for c in columns]}"
        )


def _build_rows(
    operation: str,
    texts: Sequence[str],
    language_codes: Sequence[str] | None = None,
    redact_types: Sequence[str] | None = None,
) -> list[Row]:
    columns = [texts] + [c for c in (language_codes, redact_types) if c is not None]
    _check_columns(operation, *columns)
    return [
        Row(
            text=text if text is not None else "",
            language_code=language_codes[i] if language_codes is not None else None,
            redact_types=redact_types[i] if redact_types is not None else None,
        )
        for i, text in enumerate(texts)
    ]


def _expect_multi_row(operation: str, batch: BatchDescriptor) -> None:
    if batch.kind is not BatchKind.MULTI_ROW:
        raise PlanningInvariantError(
            f"{operation}: expected multi-row batches only (truncate, not split), got {batch.kind.value}"
        )


_DISPATCH: dict[type, Callable[[TextAnalyticsPipeline, Any], list[Any]]] = {
    DetectDominantLanguage: lambda p, op: p.detect_dominant_language(op.texts, full=op.full),
    DetectSentiment: lambda p, op: p.detect_sentiment(op.texts, op.language_codes, full=op.full),
    DetectEntities: lambda p, op: p.detect_entities(op.texts, op.language_codes, full=op.full),
    RedactEntities: lambda p, op: p.redact_entities(op.texts, op.language_codes, op.redact_types),
    DetectPiiEntities: lambda p, op: p.detect_pii_entities(op.texts, op.language_codes, full=op.full),
    RedactPiiEntities: lambda p, op: p.redact_pii_entities(op.texts, op.language_codes, op.redact_types),
    DetectKeyPhrases: lambda p, op: p.detect_key_phrases(op.texts, op.language_codes, full=op.full),
    TranslateText: lambda p, op: p.translate_text(
        op.texts, op.source_language_codes, op.target_language_codes, op.terminology_names,
    ),
}
