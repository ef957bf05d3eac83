from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TextIO

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

LOGGER_NAME = "servedby"


class RequestIdFilter(logging.Filter):
    """Ensure every record has a request_id attribute for JSON formatting."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: {"ts","level","msg","request_id"}."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_json_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    logger_name: str = LOGGER_NAME,
) -> logging.Logger:
    """
    Configure the app logger with JSON line output on `stream` (stderr by default).

    Replaces any handlers from an earlier call so the CLI can redirect output.
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    return logger


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Propagate/assign X-Request-ID and emit a compact access log per request.

    - Accepts incoming X-Request-ID or generates a UUID4.
    - Sets X-Request-ID response header.
    - Logs: method, path, status, duration_ms, client. Paths matched by
      `skip_predicate` (health probes) get the header but no log line.
    """

    def __init__(
        self,
        app,
        logger: logging.Logger,
        skip_predicate: Callable[[Request], bool] | None = None,
    ):
        super().__init__(app)
        self.log = logger
        self._skip = skip_predicate or (lambda req: False)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid

        if self._skip(request):
            return response

        duration_ms = int((time.time() - start) * 1000)
        self.log.info(
            'access method="%s" path="%s" status=%d duration_ms=%d client="%s"',
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request.client.host if request.client else "-",
            extra={"request_id": rid},
        )
        return response


class AppHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp X-App-Name / X-App-Version on every response."""

    def __init__(self, app, name: str, version: str):
        super().__init__(app)
        self.name = name
        self.version = version

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-App-Name"] = self.name
        response.headers["X-App-Version"] = self.version
        return response
