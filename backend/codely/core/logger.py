"""Structured logging with request correlation and secret redaction."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# ``extra=`` keys copied into the JSON payload
EXTRA_KEYS = (
    "endpoint",
    "elapsed_ms",
    "status",
    "method",
    "user_id",
    "revoked",
    "reason",
    "provider",
)

# Never written out, even if a caller passes them in ``extra=``
REDACTED_KEYS = frozenset({"password", "access_token", "refresh_token", "credential", "token"})
REDACTED = "[redacted]"

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        for key in REDACTED_KEYS:
            if hasattr(record, key):
                payload[key] = REDACTED
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """
    Return the request's correlation id.

    Taken from ``X-Request-ID`` / ``X-Correlation-ID`` when the caller sent
    one, generated otherwise, and cached on ``g`` for the rest of the request.
    Outside a request a fresh id is returned each time.
    """
    if not has_request_context():
        return str(uuid4())
    if getattr(g, "request_id", None) is None:
        g.request_id = _incoming_request_id()
    return g.request_id  # type: ignore[return-value]


def _incoming_request_id() -> str:
    return next(
        (value for value in (request.headers.get(h) for h in CORRELATION_HEADERS) if value),
        None,
    ) or str(uuid4())


def configure_logging(level: str | int = "INFO", fmt: str = "json") -> None:
    """
    Replace the root handlers with a single stdout handler.

    :param level: Level name or number.
    :param fmt: ``"json"`` (default) or ``"text"`` for local development.
    """
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed the request id, echo it on responses and log one line per request."""

    app.logger.addFilter(RequestIdFilter())
    access_log = logging.getLogger("codely.request")

    @app.before_request
    def _seed_request_id() -> None:
        # ``g`` outlives the request when an app context was pushed by the caller
        g.request_id = _incoming_request_id()

    @app.after_request
    def _finish_request(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        access_log.info(
            "request.completed",
            extra={
                "method": request.method,
                "endpoint": request.path,
                "status": response.status_code,
            },
        )
        return response


__all__ = ["configure_logging", "ensure_request_id", "init_app", "JSONFormatter"]
