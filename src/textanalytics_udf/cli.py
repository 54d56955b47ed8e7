"""CLI interface for textanalytics-udf — columns in, one result per row out.

Usage:
    # Run an operation (stdin: JSON array of input columns, stdout: JSON results)
    echo '[["I am happy", "ce n est pas bon"], ["en", "fr"]]' | \
        python -m textanalytics_udf.cli run detect_sentiment

    echo '[["I am Bob, I live in Herndon"], ["en"], ["ALL"]]' | \
        python -m textanalytics_udf.cli run redact_pii_entities

    # List operation names
    python -m textanalytics_udf.cli operations

    # Show how a long text would be split (no remote calls)
    cat essay.txt | python -m textanalytics_udf.cli --max-text-bytes 5000 split
    echo '{"text": "Hello world. How are you?"}' | python -m textanalytics_udf.cli split

Limits and backend come from --config (YAML), TEXTANALYTICS_* environment
variables, or the flags below, in increasing order of precedence.
"""

from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from typing import Any

from .config import BACKENDS, create_pipeline, load_config, load_from_yaml
from .errors import TextAnalyticsError
from .merger import offset_table
from .operations import OPERATION_NAMES, operation_from_columns
from .splitter import split_text, utf8_len


def _load_cfg(args: argparse.Namespace) -> dict[str, Any]:
    cfg = load_from_yaml(args.config) if args.config else load_config()
    if args.backend:
        cfg["backend"] = args.backend
    if args.region:
        cfg["region"] = args.region
    if args.max_text_bytes:
        cfg["max_text_bytes"] = args.max_text_bytes
    if args.max_batch_size:
        cfg["max_batch_size"] = args.max_batch_size
    return cfg


def _read_columns(raw: str) -> list[list[Any]]:
    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("columns", [])
    if not isinstance(data, list) or not all(isinstance(c, list) for c in data):
        raise ValueError("expected a JSON array of column arrays")
    return data


def cmd_run(args: argparse.Namespace) -> None:
    """Run one operation over JSON columns on stdin."""
    columns = _read_columns(sys.stdin.read())
    operation = operation_from_columns(args.operation, columns)
    pipeline = create_pipeline(_load_cfg(args), normalized=True)

    results = pipeline.run(operation)

    json.dump(results, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_operations(args: argparse.Namespace) -> None:
    """List supported operation names."""
    json.dump(list(OPERATION_NAMES), sys.stdout, indent=2)
    sys.stdout.write("\n")


def _read_split_text(raw: str) -> str:
    """stdin for ``split``: a JSON string, a ``{"text": ...}`` object, or plain text."""
    if raw.lstrip()[:1] in ('"', "{"):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return raw
        if isinstance(data, str):
            return data
        if isinstance(data, dict) and isinstance(data.get("text"), str):
            return data["text"]
    return raw


def cmd_split(args: argparse.Namespace) -> None:
    """Split text on stdin into sentence-bounded chunks."""
    cfg = _load_cfg(args)
    text = _read_split_text(sys.stdin.read())
    chunks = split_text(text, cfg["max_text_bytes"], args.language)

    output = {
        "chunks": chunks,
        "offsets": offset_table(chunks),
        "bytes": [utf8_len(c) for c in chunks],
    }
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="textanalytics-udf",
        description="Batch text analytics over row columns",
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--backend", choices=BACKENDS, help="Capability backend")
    parser.add_argument("--region", help="AWS region (comprehend backend)")
    parser.add_argument("--max-text-bytes", type=int, help="Per-item UTF-8 byte limit")
    parser.add_argument("--max-batch-size", type=int, help="Items per batch call")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("TEXTANALYTICS_LOG_LEVEL", "WARNING"),
        help="Logging level (stderr)",
    )

    sub = parser.add_subparsers(dest="command", required=True)
    p_run = sub.add_parser("run", help="Run an operation (JSON columns on stdin)")
    p_run.add_argument("operation", choices=OPERATION_NAMES)
    sub.add_parser("operations", help="List operation names")
    p_split = sub.add_parser("split", help="Split stdin text into chunks")
    p_split.add_argument("--language", default="en", help="Language code for sentence rules")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    cmds = {
        "run": cmd_run,
        "operations": cmd_operations,
        "split": cmd_split,
    }
    try:
        cmds[args.command](args)
    except (TextAnalyticsError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        sys.stderr.write(f"error: {e}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
