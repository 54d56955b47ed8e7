"""YAML/dict config loader for textanalytics-udf.

Supports loading from a YAML file or a plain dict (for embedding in a
larger config), with environment variables taking precedence.

Example YAML:

    textanalytics:
      backend: comprehend        # "comprehend" or "presidio"
      region: us-east-1
      max_text_bytes: 5000       # per-item UTF-8 byte ceiling
      max_batch_size: 25         # items per batch call
      retry:
        max_attempts: 100
        timeout: 600
      presidio:
        score_threshold: 0.35
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Mapping

from .capability import TextAnalyticsCapability
from .pipeline import PipelineConfig, TextAnalyticsPipeline

BACKENDS = ("comprehend", "presidio")


def load_config(
    data: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline) and apply env overrides."""
    data = dict(data or {})
    env = os.environ if env is None else env
    # Support nested under "textanalytics" key or flat
    if "textanalytics" in data:
        data = dict(data["textanalytics"] or {})

    retry = data.get("retry") or {}
    presidio = data.get("presidio") or {}
    cfg = {
        "backend": data.get("backend", "comprehend"),
        "region": data.get("region"),
        "max_text_bytes": int(data.get("max_text_bytes", 5000)),
        "max_batch_size": int(data.get("max_batch_size", 25)),
        "max_attempts": int(retry.get("max_attempts", 100)),
        "timeout": float(retry.get("timeout", 600)),
        "score_threshold": float(presidio.get("score_threshold", 0.35)),
    }

    if "TEXTANALYTICS_BACKEND" in env:
        cfg["backend"] = env["TEXTANALYTICS_BACKEND"]
    if "TEXTANALYTICS_MAX_TEXT_BYTES" in env:
        cfg["max_text_bytes"] = int(env["TEXTANALYTICS_MAX_TEXT_BYTES"])
    if "TEXTANALYTICS_MAX_BATCH_SIZE" in env:
        cfg["max_batch_size"] = int(env["TEXTANALYTICS_MAX_BATCH_SIZE"])
    if cfg["region"] is None and env.get("AWS_REGION"):
        cfg["region"] = env["AWS_REGION"]

    if cfg["backend"] not in BACKENDS:
        raise ValueError(f"unknown backend {cfg['backend']!r}, expected one of {BACKENDS}")
    if cfg["max_text_bytes"] < 1 or cfg["max_batch_size"] < 1:
        raise ValueError("max_text_bytes and max_batch_size must be positive")
    return cfg


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f) or {})


def create_capability(cfg: dict[str, Any]) -> TextAnalyticsCapability:
    """Build the backend named in a normalized config."""
    if cfg["backend"] == "presidio":
        from .presidio_layer import PresidioCapability
        return PresidioCapability(score_threshold=cfg["score_threshold"])

    from .comprehend import ComprehendCapability
    return ComprehendCapability.create(
        cfg["region"],
        max_attempts=cfg["max_attempts"],
        timeout=cfg["timeout"],
    )


def create_pipeline(
    config: Mapping[str, Any] | None = None,
    capability: TextAnalyticsCapability | None = None,
    *,
    normalized: bool = False,
) -> TextAnalyticsPipeline:
    """Create a fully configured pipeline from a config dict.

    Raw dicts (flat, or nested under ``textanalytics``) go through
    :func:`load_config`.  Pass ``normalized=True`` for the output of
    :func:`load_config` or :func:`load_from_yaml`, so overrides applied
    to it afterwards are kept.
    """
    cfg = dict(config) if normalized and config is not None else load_config(config)
    return TextAnalyticsPipeline(
        capability if capability is not None else create_capability(cfg),
        PipelineConfig(
            max_text_bytes=cfg["max_text_bytes"],
            max_batch_size=cfg["max_batch_size"],
        ),
    )
