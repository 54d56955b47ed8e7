"""HTTP sidecar server for textanalytics-udf.

Runs a lightweight stdlib HTTP server on localhost so a query engine (or
anything else) can send whole column blocks per request instead of
spawning a process each time.

Endpoints:
    POST /<operation>   — Run an operation, body {"columns": [[...], ...]}
    GET  /operations    — List operation names
    GET  /health        — Health check

All endpoints expect/return JSON.  Results come back as {"results": [...]},
one entry per input row.
"""

from __future__ import annotations
import json
import logging
import os
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any

from .config import create_pipeline, load_from_yaml
from .errors import CapabilityBatchError, CapabilityCallError, TextAnalyticsError
from .operations import OPERATION_NAMES, operation_from_columns
from .pipeline import TextAnalyticsPipeline

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("TEXTANALYTICS_PORT", "18792"))

# Shared state
_pipeline: TextAnalyticsPipeline | None = None


def _get_pipeline() -> TextAnalyticsPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = create_pipeline()
    return _pipeline


class AnalyticsHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the text analytics sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok"})
        elif self.path == "/operations":
            self._respond(200, {"operations": list(OPERATION_NAMES)})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        name = self.path.strip("/")
        if name not in OPERATION_NAMES:
            self._respond(404, {"error": "not found"})
            return
        try:
            body = self._read_json()
            columns = body.get("columns") if isinstance(body, dict) else None
            if not isinstance(columns, list):
                self._respond(400, {"error": 'body must be a JSON object with a "columns" list'})
                return
            operation = operation_from_columns(name, columns)
            results = _get_pipeline().run(operation)
            self._respond(200, {"results": results})
        except (CapabilityBatchError, CapabilityCallError) as e:
            logger.error("%s failed: %s", name, e)
            self._respond(502, {"error": str(e)})
        except (TextAnalyticsError, ValueError) as e:
            self._respond(400, {"error": str(e)})
        except Exception as e:
            logger.exception("%s crashed", name)
            self._respond(500, {"error": str(e)})


def serve(
    port: int = DEFAULT_PORT,
    pipeline: TextAnalyticsPipeline | None = None,
) -> None:
    """Start the text analytics HTTP sidecar."""
    global _pipeline
    if pipeline is not None:
        _pipeline = pipeline
    pipeline = _get_pipeline()

    server = HTTPServer(("127.0.0.1", port), AnalyticsHandler)
    logger.info("textanalytics sidecar listening on http://127.0.0.1:%d", port)
    logger.info(
        "  limits: max_text_bytes=%d max_batch_size=%d",
        pipeline.config.max_text_bytes, pipeline.config.max_batch_size,
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Text analytics HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--log-level", default=os.environ.get("TEXTANALYTICS_LOG_LEVEL", "INFO"))
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    serve(
        port=args.port,
        pipeline=create_pipeline(load_from_yaml(args.config), normalized=True) if args.config else None,
    )
