"""The interface the pipeline needs from a text-analytics backend.

Batch-capable calls return a :class:`BatchResponse` with one result per
input text, in input order, plus any per-item errors.  PII detection and
translation take a single text per call.  Failures of a whole call are
raised as :class:`~textanalytics_udf.errors.CapabilityCallError`.
"""

from __future__ import annotations
from typing import Protocol, Sequence

from .types import BatchResponse, LanguageScore, SentimentResult, Span


class TextAnalyticsCapability(Protocol):

    def detect_dominant_language(
        self, texts: Sequence[str],
    ) -> BatchResponse[list[LanguageScore]]: ...

    def detect_sentiment(
        self, texts: Sequence[str], language_code: str,
    ) -> BatchResponse[SentimentResult]: ...

    def detect_entities(
        self, texts: Sequence[str], language_code: str,
    ) -> BatchResponse[list[Span]]: ...

    def detect_pii_entities(self, text: str, language_code: str) -> list[Span]: ...

    def detect_key_phrases(
        self, texts: Sequence[str], language_code: str,
    ) -> BatchResponse[list[Span]]: ...

    def translate_text(
        self,
        text: str,
        source_language_code: str,
        target_language_code: str,
        terminology_name: str | None = None,
    ) -> str: ...
