"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Row:
    """One input row.  Identity is its position in the input columns."""
    text: str
    language_code: str | None = None
    redact_types: str | None = None


class BatchKind(str, Enum):
    MULTI_ROW = "MULTI_ROW_BATCH"      # many rows, one result each
    TEXT_SPLIT = "TEXT_SPLIT_BATCH"    # sentence chunks of a single row


@dataclass(slots=True)
class BatchDescriptor:
    """A group of texts sent to the capability together.

    ``row_start``/``row_end`` is the half-open range of input rows the batch
    covers; a TEXT_SPLIT batch always covers exactly one row.
    """
    kind: BatchKind
    texts: list[str]
    row_start: int
    row_end: int
    language_code: str | None = None

    @property
    def row_count(self) -> int:
        return self.row_end - self.row_start


@dataclass(frozen=True, slots=True)
class Span:
    """A typed annotation over a text, e.g. a detected entity or key phrase."""
    type: str | None       # None for key phrases
    begin_offset: int
    end_offset: int
    score: float | None = None
    text: str | None = None

    def shifted(self, offset: int) -> Span:
        if not offset:
            return self
        return replace(
            self,
            begin_offset=self.begin_offset + offset,
            end_offset=self.end_offset + offset,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.score is not None:
            out["score"] = self.score
        if self.type is not None:
            out["type"] = self.type
        if self.text is not None:
            out["text"] = self.text
        out["beginOffset"] = self.begin_offset
        out["endOffset"] = self.end_offset
        return out


@dataclass(frozen=True, slots=True)
class LanguageScore:
    language_code: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"languageCode": self.language_code, "score": self.score}


@dataclass(frozen=True, slots=True)
class SentimentResult:
    sentiment: str                                      # POSITIVE | NEGATIVE | NEUTRAL | MIXED
    scores: dict[str, float] = field(default_factory=dict)  # "positive" → 0.98

    def to_dict(self) -> dict[str, Any]:
        return {"sentiment": self.sentiment, "sentimentScore": dict(self.scores)}


@dataclass(frozen=True, slots=True)
class BatchItemError:
    """A per-item failure reported inside an otherwise successful batch call."""
    index: int
    code: str
    message: str = ""

    def __str__(self) -> str:
        return f"[{self.index}] {self.code}: {self.message}"


@dataclass(slots=True)
class BatchResponse(Generic[T]):
    """Result of one batch-capable capability call, in input order."""
    results: list[T] = field(default_factory=list)
    errors: list[BatchItemError] = field(default_factory=list)
