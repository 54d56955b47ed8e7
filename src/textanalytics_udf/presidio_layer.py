"""Local backend — Presidio NER-based entity and PII detection.

Runs entirely offline on spaCy models, for when rows must not leave the
host.  Only entity and PII detection are offered; language, sentiment, key
phrases and translation raise :class:`UnsupportedOperationError`.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Sequence

from .errors import UnsupportedOperationError
from .types import BatchResponse, LanguageScore, SentimentResult, Span

if TYPE_CHECKING:
    from presidio_analyzer import AnalyzerEngine

logger = logging.getLogger(__name__)

# Lazy per-language engines; spaCy is not loaded until first use
_engines: dict[str, AnalyzerEngine] = {}


# spaCy ships web-trained small pipelines only for these; the rest are news-trained
_WEB_MODEL_LANGUAGES = {"en", "zh"}


def _model_name(language: str) -> str:
    genre = "web" if language in _WEB_MODEL_LANGUAGES else "news"
    return f"{language}_core_{genre}_sm"


def _get_engine(language: str = "en") -> AnalyzerEngine:
    """Lazy-init the Presidio analyzer engine for a language."""
    if language not in _engines:
        from presidio_analyzer import AnalyzerEngine
        from presidio_analyzer.nlp_engine import NlpEngineProvider

        logger.debug("Loading Presidio engine for %r", language)
        provider = NlpEngineProvider(nlp_configuration={
            "nlp_engine_name": "spacy",
            "models": [{"lang_code": language, "model_name": _model_name(language)}],
        })
        nlp_engine = provider.create_engine()
        _engines[language] = AnalyzerEngine(nlp_engine=nlp_engine, supported_languages=[language])
    return _engines[language]


# Entity types reported by detect_entities (named entities, not PII)
DEFAULT_ENTITIES = [
    "PERSON",
    "ORGANIZATION",
    "LOCATION",
    "NRP",           # nationality, religious, political group
    "DATE_TIME",
]


class PresidioCapability:
    """Entity and PII detection via Presidio ``AnalyzerEngine``."""

    def __init__(
        self,
        *,
        score_threshold: float = 0.35,
        entities: list[str] | None = None,
        pii_entities: list[str] | None = None,    # None = everything Presidio knows
    ) -> None:
        self.score_threshold = score_threshold
        self.entities = entities or DEFAULT_ENTITIES
        self.pii_entities = pii_entities

    def detect_pii_entities(self, text: str, language_code: str) -> list[Span]:
        return self._scan(text, language_code, self.pii_entities)

    def detect_entities(self, texts: Sequence[str], language_code: str) -> BatchResponse[list[Span]]:
        return BatchResponse(results=[
            self._scan(text, language_code, self.entities) for text in texts
        ])

    def detect_dominant_language(self, texts: Sequence[str]) -> BatchResponse[list[LanguageScore]]:
        raise UnsupportedOperationError("presidio backend cannot detect language")

    def detect_sentiment(self, texts: Sequence[str], language_code: str) -> BatchResponse[SentimentResult]:
        raise UnsupportedOperationError("presidio backend cannot detect sentiment")

    def detect_key_phrases(self, texts: Sequence[str], language_code: str) -> BatchResponse[list[Span]]:
        raise UnsupportedOperationError("presidio backend cannot detect key phrases")

    def translate_text(
        self,
        text: str,
        source_language_code: str,
        target_language_code: str,
        terminology_name: str | None = None,
    ) -> str:
        raise UnsupportedOperationError("presidio backend cannot translate")

    def _scan(self, text: str, language: str | None, entities: list[str] | None) -> list[Span]:
        language = (language or "en").split("-")[0].lower()
        results = _get_engine(language).analyze(
            text=text,
            language=language,
            entities=entities,
            score_threshold=self.score_threshold,
        )
        spans = [
            Span(
                type=r.entity_type,
                begin_offset=r.start,
                end_offset=r.end,
                score=r.score,
                text=text[r.start:r.end],
            )
            for r in results
        ]
        return _dedupe(spans)


def _dedupe(spans: list[Span]) -> list[Span]:
    """Remove overlapping spans, keeping higher-score ones; return in text order."""
    if not spans:
        return spans
    ranked = sorted(spans, key=lambda s: (-(s.score or 0.0), -(s.end_offset - s.begin_offset)))
    taken: list[Span] = []
    used: list[tuple[int, int]] = []
    for s in ranked:
        if not any(s.begin_offset < e and s.end_offset > b for b, e in used):
            taken.append(s)
            used.append((s.begin_offset, s.end_offset))
    return sorted(taken, key=lambda s: s.begin_offset)
