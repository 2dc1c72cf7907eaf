"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from marshmallow import Schema

from codely.core.errors import Unauthorized
from codely.core.extensions import get_session_service
from codely.schemas.validation import validate_payload

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "Bearer "


def bearer_token() -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if well-formed."""

    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None


def require_auth(func: F) -> F:
    """Verify the bearer access token and pass its claims as ``claims=``.

    A missing or malformed header fails with code ``missing_token``; a bad
    signature or an elapsed expiry with ``invalid_token``, which is what the
    client keys its refresh-and-replay on.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized("Unauthorized", code="missing_token")
        claims = get_session_service().validate(token)
        if claims is None:
            raise Unauthorized("Invalid token", code="invalid_token")
        return func(*args, claims=claims, **kwargs)

    return wrapper  # type: ignore[return-value]


def load_body(schema: Schema) -> dict[str, Any]:
    """Validate the JSON body, raising ``RequestValidationError`` on failure."""

    return validate_payload(schema, request.get_json(silent=True)).unwrap()


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
