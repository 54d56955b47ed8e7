"""Tests for the row analytics pipeline, against an in-memory capability."""

import logging
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from fakes import FakeCapability
from textanalytics_udf import PipelineConfig, TextAnalyticsPipeline
from textanalytics_udf.errors import (
    CapabilityBatchError, CapabilityCallError, PlanningInvariantError,
)
from textanalytics_udf.operations import (
    DetectDominantLanguage, DetectSentiment, RedactPiiEntities, TranslateText,
)
from textanalytics_udf.splitter import split_text, utf8_len

BOB = "I am Bob, I live in Herndon. "             # 29 bytes
LONG_BOB = BOB * 6
CATS = "The cat sat on the mat. " * 4 + "The dog ran."


def make(max_text_bytes=5000, max_batch_size=25, **kw):
    cap = FakeCapability(**kw)
    return TextAnalyticsPipeline(cap, PipelineConfig(max_text_bytes, max_batch_size)), cap


# ── Dominant language ────────────────────────────────────────────────

def test_detect_dominant_language():
    p, cap = make()
    assert p.detect_dominant_language(["I am Bob", "Je suis Bob"]) == ["en", "fr"]
    assert len(cap.calls) == 1
    assert cap.calls[0][1] == ["I am Bob", "Je suis Bob"]


def test_detect_dominant_language_full():
    p, _ = make()
    assert p.detect_dominant_language(["I am Bob"], full=True) == [
        [{"languageCode": "en", "score": 0.9}],
    ]


def test_dominant_language_truncates_long_text():
    p, cap = make(max_text_bytes=10)
    assert p.detect_dominant_language([LONG_BOB]) == ["en"]
    sent = cap.calls[0][1]
    assert sent == [LONG_BOB[:10]]


# ── Sentiment ────────────────────────────────────────────────────────

def test_detect_sentiment_batches_by_language():
    p, cap = make()
    texts = ["I am happy", "She is sad", "ce n'est pas bon", "Je l'aime beaucoup"]
    langs = ["en", "en", "fr", "fr"]
    assert p.detect_sentiment(texts, langs) == ["POSITIVE", "NEGATIVE", "NEGATIVE", "POSITIVE"]
    assert [(c[1], c[2]) for c in cap.calls] == [
        (texts[:2], "en"), (texts[2:], "fr"),
    ]


def test_detect_sentiment_full():
    p, _ = make()
    assert p.detect_sentiment(["I am happy"], ["en"], full=True) == [
        {"sentiment": "POSITIVE", "sentimentScore": {"positive": 0.9, "negative": 0.1}},
    ]


def test_config_changes_apply_to_next_call():
    p, cap = make()
    p.config.max_batch_size = 1
    p.detect_sentiment(["a", "b", "c"], ["en"] * 3)
    assert len(cap.calls) == 3


# ── Entities ─────────────────────────────────────────────────────────

def test_detect_entities_values():
    p, _ = make()
    assert p.detect_entities(["I am Bob, I live in Herndon", "nothing"], ["en", "en"]) == [
        [["PERSON", "Bob"], ["LOCATION", "Herndon"]],
        [],
    ]


def test_detect_entities_full():
    p, _ = make()
    result = p.detect_entities(["I am Bob"], ["en"], full=True)
    assert result == [[
        {"score": 0.99, "type": "PERSON", "text": "Bob", "beginOffset": 5, "endOffset": 8},
    ]]


def test_long_row_spans_valid_against_original_text():
    p, cap = make(max_text_bytes=60, max_batch_size=2)
    [spans] = p.detect_entities([LONG_BOB], ["en"], full=True)
    assert len(spans) == 12
    for span in spans:
        assert LONG_BOB[span["beginOffset"]:span["endOffset"]] == span["text"]
    begins = [s["beginOffset"] for s in spans]
    assert begins == sorted(begins)

    calls = cap.calls_to("detect_entities")
    assert len(calls) >= 2
    assert all(len(texts) <= 2 for _, texts, _ in calls)
    sent = [t for _, texts, _ in calls for t in texts]
    assert "".join(sent) == LONG_BOB
    assert all(utf8_len(t) < 60 for t in sent)


def test_long_row_values():
    p, _ = make(max_text_bytes=60)
    [values] = p.detect_entities([LONG_BOB], ["en"])
    assert values == [["PERSON", "Bob"], ["LOCATION", "Herndon"]] * 6


def test_redact_entities_long_row():
    p, _ = make(max_text_bytes=60, max_batch_size=2)
    [redacted] = p.redact_entities([LONG_BOB], ["en"], ["ALL"])
    assert redacted == LONG_BOB.replace("Bob", "[PERSON]").replace("Herndon", "[LOCATION]")


def test_redact_filters_follow_their_rows_across_batches():
    p, _ = make(max_batch_size=2)
    texts = ["Bob in Paris", "Jim in Herndon", "Bob in Herndon", "Jim in Paris"]
    filters = ["ALL", "LOCATION", "PERSON", ""]
    assert p.redact_entities(texts, ["en"] * 4, filters) == [
        "[PERSON] in [LOCATION]",
        "Jim in [LOCATION]",
        "[PERSON] in Herndon",
        "Jim in Paris",
    ]


def test_results_depend_only_on_own_row():
    texts = ["I am Bob", LONG_BOB, "Jim est à Paris", "the end", LONG_BOB + "Jim."]
    langs = ["en", "en", "fr", "en", "en"]
    p, _ = make(max_text_bytes=60, max_batch_size=2)
    together = p.detect_entities(texts, langs, full=True)
    alone = [p.detect_entities([t], [l], full=True)[0] for t, l in zip(texts, langs)]
    assert together == alone
    assert len(together) == len(texts)


# ── PII ──────────────────────────────────────────────────────────────

def test_detect_pii_entities_one_call_per_row():
    p, cap = make()
    texts = ["I am Bob", "My SSN is 123-45-6789", "nothing here"]
    assert p.detect_pii_entities(texts, ["en"] * 3) == [
        [["NAME", "Bob"]], [["SSN", "123-45-6789"]], [],
    ]
    assert len(cap.calls_to("detect_pii_entities")) == 3


def test_redact_pii_entities():
    p, _ = make()
    assert p.redact_pii_entities(
        ["My SSN is 123-45-6789, I am Bob", "I am Bob, I live in Herndon"],
        ["en", "en"],
        ["SSN", "ALL"],
    ) == ["My SSN is [SSN], I am Bob", "I am [NAME], I live in [ADDRESS]"]


def test_pii_long_row_full_offsets():
    p, cap = make(max_text_bytes=60)
    [spans] = p.detect_pii_entities([LONG_BOB], ["en"], full=True)
    assert [LONG_BOB[s["beginOffset"]:s["endOffset"]] for s in spans] == ["Bob", "Herndon"] * 6
    assert len(cap.calls_to("detect_pii_entities")) > 1


def test_pii_call_failure_propagates():
    class Failing(FakeCapability):
        def detect_pii_entities(self, text, language_code):
            raise CapabilityCallError("boom")

    p = TextAnalyticsPipeline(Failing())
    with pytest.raises(CapabilityCallError):
        p.detect_pii_entities(["I am Bob"], ["en"])


# ── Key phrases ──────────────────────────────────────────────────────

def test_detect_key_phrases():
    p, _ = make()
    assert p.detect_key_phrases(["I read the book and the paper"], ["en"]) == [
        ["the book", "the paper"],
    ]


def test_detect_key_phrases_long_row():
    p, _ = make(max_text_bytes=60)
    [phrases] = p.detect_key_phrases([CATS], ["en"], full=True)
    assert [CATS[s["beginOffset"]:s["endOffset"]] for s in phrases] == ["the mat"] * 4
    assert all("type" not in s for s in phrases)


# ── Translation ──────────────────────────────────────────────────────

def test_translate_text():
    p, cap = make()
    result = p.translate_text(["hello", "world"], ["en", "en"], ["fr", "de"], ["null", "glossary"])
    assert result == ["HELLO", "WORLD"]
    assert cap.translate_calls == [
        ("hello", "en", "fr", None), ("world", "en", "de", "glossary"),
    ]


def test_translate_failure_returns_original(caplog):
    p, _ = make()
    with caplog.at_level(logging.WARNING, logger="textanalytics_udf.pipeline"):
        result = p.translate_text(["hello", "FAIL me", "bye"], ["en"] * 3, ["fr"] * 3)
    assert result == ["HELLO", "FAIL me", "BYE"]
    assert "untranslated" in caplog.text


def test_translate_long_row_concatenates_chunks():
    p, cap = make(max_text_bytes=60)
    assert p.translate_text([CATS], ["en"], ["fr"]) == [CATS.upper()]
    assert len(cap.translate_calls) > 1
    assert all(utf8_len(c[0]) < 60 for c in cap.translate_calls)


def test_translate_splits_with_source_language_rules(monkeypatch):
    from textanalytics_udf import planner
    seen = []

    def recording_split(text, max_bytes, language="en"):
        seen.append(language)
        return split_text(text, max_bytes, language)

    monkeypatch.setattr(planner, "split_text", recording_split)
    p, _ = make(max_text_bytes=60, max_batch_size=1)
    assert p.translate_text([CATS, "hi", "ho"], ["de", "en", "fr"], ["fr"] * 3) == [
        CATS.upper(), "HI", "HO",
    ]
    assert seen == ["de"]


# ── Failures ─────────────────────────────────────────────────────────

def test_batch_item_error_fails_whole_call():
    p, _ = make()
    with pytest.raises(CapabilityBatchError) as exc:
        p.detect_entities(["fine", "BADITEM"], ["en", "en"])
    assert exc.value.operation == "detect_entities"
    assert exc.value.batch_index == 0
    assert "INVALID_REQUEST" in str(exc.value)


def test_batch_item_error_in_split_row():
    p, _ = make(max_text_bytes=60)
    with pytest.raises(CapabilityBatchError):
        p.detect_key_phrases(["ok", BOB * 3 + "BADITEM. " + BOB * 3], ["en", "en"])


def test_result_count_mismatch_fails():
    p, _ = make(drop_results=True)
    with pytest.raises(CapabilityBatchError, match="got 1 results"):
        p.detect_sentiment(["a", "b"], ["en", "en"])


def test_column_length_mismatch():
    p, _ = make()
    with pytest.raises(PlanningInvariantError):
        p.detect_sentiment(["a", "b"], ["en"])
    with pytest.raises(PlanningInvariantError):
        p.redact_entities(["a"], ["en"], [])
    with pytest.raises(PlanningInvariantError):
        p.translate_text(["a"], ["en"], ["fr", "de"])


# ── Row count / dispatch ─────────────────────────────────────────────

def test_row_count_invariant_for_every_operation():
    p, _ = make(max_text_bytes=60, max_batch_size=2)
    texts = ["I am Bob", LONG_BOB, "Je suis Jim", "", CATS]
    langs = ["en", "en", "fr", "fr", "en"]
    n = len(texts)
    assert len(p.detect_dominant_language(texts)) == n
    assert len(p.detect_sentiment(texts, langs, full=True)) == n
    assert len(p.detect_entities(texts, langs)) == n
    assert len(p.redact_entities(texts, langs, ["ALL"] * n)) == n
    assert len(p.detect_pii_entities(texts, langs, full=True)) == n
    assert len(p.redact_pii_entities(texts, langs, ["NAME"] * n)) == n
    assert len(p.detect_key_phrases(texts, langs)) == n
    assert len(p.translate_text(texts, langs, ["de"] * n)) == n


def test_empty_input():
    p, cap = make()
    assert p.detect_entities([], []) == []
    assert p.translate_text([], [], []) == []
    assert cap.calls == []


def test_run_dispatches_operation_variants():
    p, _ = make()
    assert p.run(DetectDominantLanguage(["Je suis Bob"])) == ["fr"]
    assert p.run(DetectSentiment(["I am happy"], ["en"], full=True)) == \
        p.detect_sentiment(["I am happy"], ["en"], full=True)
    assert p.run(RedactPiiEntities(["I am Bob"], ["en"], ["ALL"])) == ["I am [NAME]"]
    assert p.run(TranslateText(["hi"], ["en"], ["fr"], ["null"])) == ["HI"]


def test_run_rejects_unknown_operation():
    p, _ = make()
    with pytest.raises(TypeError):
        p.run(object())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
