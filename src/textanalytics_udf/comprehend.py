"""AWS backend — Amazon Comprehend for analytics, Amazon Translate for translation.

Both clients are built once, up front, with a retry/timeout policy suited to
large scans (many batches, throttling expected).  Pass your own clients to
the constructor to control that yourself.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Sequence, TypeVar

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import CapabilityCallError
from .types import BatchItemError, BatchResponse, LanguageScore, SentimentResult, Span

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_TIMEOUT = 600          # seconds, connect and read


def client_config(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    timeout: float = DEFAULT_TIMEOUT,
) -> Config:
    """botocore config with adaptive retries (backoff with jitter) and long timeouts."""
    return Config(
        retries={"max_attempts": max_attempts, "mode": "adaptive"},
        connect_timeout=timeout,
        read_timeout=timeout,
    )


class ComprehendCapability:
    """Text analytics capability backed by boto3 ``comprehend`` and ``translate`` clients."""

    def __init__(self, comprehend_client: Any, translate_client: Any = None) -> None:
        self._comprehend = comprehend_client
        self._translate = translate_client

    @classmethod
    def create(
        cls,
        region_name: str | None = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> ComprehendCapability:
        config = client_config(max_attempts, timeout)
        logger.debug("Creating Comprehend and Translate clients (region=%s)", region_name)
        return cls(
            boto3.client("comprehend", region_name=region_name, config=config),
            boto3.client("translate", region_name=region_name, config=config),
        )

    # ------------------------------------------------------------------
    # Batch calls
    # ------------------------------------------------------------------

    def detect_dominant_language(self, texts: Sequence[str]) -> BatchResponse[list[LanguageScore]]:
        resp = _call(self._comprehend.batch_detect_dominant_language, TextList=list(texts))
        return _batch_response(resp, lambda item: [
            LanguageScore(language_code=lang["LanguageCode"], score=lang.get("Score", 0.0))
            for lang in item.get("Languages", [])
        ])

    def detect_sentiment(self, texts: Sequence[str], language_code: str) -> BatchResponse[SentimentResult]:
        resp = _call(
            self._comprehend.batch_detect_sentiment,
            TextList=list(texts), LanguageCode=language_code,
        )
        return _batch_response(resp, lambda item: SentimentResult(
            sentiment=item["Sentiment"],
            scores={k.lower(): v for k, v in item.get("SentimentScore", {}).items()},
        ))

    def detect_entities(self, texts: Sequence[str], language_code: str) -> BatchResponse[list[Span]]:
        resp = _call(
            self._comprehend.batch_detect_entities,
            TextList=list(texts), LanguageCode=language_code,
        )
        return _batch_response(resp, lambda item: [_span(e) for e in item.get("Entities", [])])

    def detect_key_phrases(self, texts: Sequence[str], language_code: str) -> BatchResponse[list[Span]]:
        resp = _call(
            self._comprehend.batch_detect_key_phrases,
            TextList=list(texts), LanguageCode=language_code,
        )
        return _batch_response(resp, lambda item: [_span(p) for p in item.get("KeyPhrases", [])])

    # ------------------------------------------------------------------
    # Single-item calls
    # ------------------------------------------------------------------

    def detect_pii_entities(self, text: str, language_code: str) -> list[Span]:
        resp = _call(self._comprehend.detect_pii_entities, Text=text, LanguageCode=language_code)
        return [_span(e) for e in resp.get("Entities", [])]

    def translate_text(
        self,
        text: str,
        source_language_code: str,
        target_language_code: str,
        terminology_name: str | None = None,
    ) -> str:
        if self._translate is None:
            raise CapabilityCallError("no translate client configured")
        kwargs: dict[str, Any] = {
            "Text": text,
            "SourceLanguageCode": source_language_code,
            "TargetLanguageCode": target_language_code,
        }
        if terminology_name:
            kwargs["TerminologyNames"] = [terminology_name]
        resp = _call(self._translate.translate_text, **kwargs)
        return resp["TranslatedText"]


def _call(method: Callable[..., dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
    try:
        return method(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise CapabilityCallError(str(e)) from e


def _span(item: dict[str, Any]) -> Span:
    return Span(
        type=item.get("Type"),
        begin_offset=item["BeginOffset"],
        end_offset=item["EndOffset"],
        score=item.get("Score"),
        text=item.get("Text"),
    )


def _batch_response(resp: dict[str, Any], convert: Callable[[dict[str, Any]], T]) -> BatchResponse[T]:
    # ResultList entries carry their input Index; order by it.
    items = sorted(resp.get("ResultList", []), key=lambda item: item.get("Index", 0))
    errors = [
        BatchItemError(
            index=e.get("Index", -1),
            code=e.get("ErrorCode", ""),
            message=e.get("ErrorMessage", ""),
        )
        for e in resp.get("ErrorList", [])
    ]
    return BatchResponse(results=[convert(item) for item in items], errors=errors)
