"""Operation variants — one frozen dataclass per analytics function.

Each variant carries its own typed input columns.  External callers (the
CLI, the HTTP sidecar, a query-engine UDF wrapper) address operations by
function name and pass positional columns; :func:`operation_from_columns`
turns that into the right variant, checking the column count.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from .errors import UnknownOperationError

Column = Sequence[str]


@dataclass(frozen=True)
class DetectDominantLanguage:
    texts: Column
    full: bool = False


@dataclass(frozen=True)
class DetectSentiment:
    texts: Column
    language_codes: Column
    full: bool = False


@dataclass(frozen=True)
class DetectEntities:
    texts: Column
    language_codes: Column
    full: bool = False


@dataclass(frozen=True)
class RedactEntities:
    texts: Column
    language_codes: Column
    redact_types: Column


@dataclass(frozen=True)
class DetectPiiEntities:
    texts: Column
    language_codes: Column
    full: bool = False


@dataclass(frozen=True)
class RedactPiiEntities:
    texts: Column
    language_codes: Column
    redact_types: Column


@dataclass(frozen=True)
class DetectKeyPhrases:
    texts: Column
    language_codes: Column
    full: bool = False


@dataclass(frozen=True)
class TranslateText:
    texts: Column
    source_language_codes: Column
    target_language_codes: Column
    terminology_names: Column | None = None


Operation = Union[
    DetectDominantLanguage,
    DetectSentiment,
    DetectEntities,
    RedactEntities,
    DetectPiiEntities,
    RedactPiiEntities,
    DetectKeyPhrases,
    TranslateText,
]


# name → (accepted column counts, factory)
_REGISTRY: dict[str, tuple[tuple[int, ...], Callable[[list[Column]], Operation]]] = {
    "detect_dominant_language": ((1,), lambda c: DetectDominantLanguage(c[0])),
    "detect_dominant_language_all": ((1,), lambda c: DetectDominantLanguage(c[0], full=True)),
    "detect_sentiment": ((2,), lambda c: DetectSentiment(c[0], c[1])),
    "detect_sentiment_all": ((2,), lambda c: DetectSentiment(c[0], c[1], full=True)),
    "detect_entities": ((2,), lambda c: DetectEntities(c[0], c[1])),
    "detect_entities_all": ((2,), lambda c: DetectEntities(c[0], c[1], full=True)),
    "redact_entities": ((3,), lambda c: RedactEntities(c[0], c[1], c[2])),
    "detect_pii_entities": ((2,), lambda c: DetectPiiEntities(c[0], c[1])),
    "detect_pii_entities_all": ((2,), lambda c: DetectPiiEntities(c[0], c[1], full=True)),
    "redact_pii_entities": ((3,), lambda c: RedactPiiEntities(c[0], c[1], c[2])),
    "detect_key_phrases": ((2,), lambda c: DetectKeyPhrases(c[0], c[1])),
    "detect_key_phrases_all": ((2,), lambda c: DetectKeyPhrases(c[0], c[1], full=True)),
    "translate_text": ((3, 4), lambda c: TranslateText(*c)),
}

OPERATION_NAMES: tuple[str, ...] = tuple(_REGISTRY)


def operation_from_columns(name: str, columns: Sequence[Column]) -> Operation:
    """Build the operation called ``name`` from positional input columns."""
    try:
        arities, factory = _REGISTRY[name]
    except KeyError:
        raise UnknownOperationError(f"unknown operation: {name!r}") from None
    if len(columns) not in arities:
        expected = " or ".join(str(a) for a in arities)
        raise UnknownOperationError(
            f"{name} takes {expected} columns, got {len(columns)}"
        )
    return factory(list(columns))
