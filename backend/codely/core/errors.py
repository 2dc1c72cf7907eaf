"""RFC 7807 problem+json responses for the auth API.

Every failure leaving the app, whether an :class:`APIError` raised by a view,
a translated service error, a werkzeug HTTP error, or an unexpected
exception, is rendered by :func:`render_problem`. Bodies carry
``type,title,status,detail,instance,code,request_id`` and optional
``details``; 401 responses also carry a ``WWW-Authenticate: Bearer``
challenge (RFC 6750).
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from werkzeug.exceptions import HTTPException

from codely.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable codes for statuses raised by werkzeug/Flask themselves
HTTP_STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    429: "too_many_requests",
    500: "internal_server_error",
}

# Problem codes that mean "the bearer token itself is bad"
_TOKEN_ERROR_CODES = frozenset({"invalid_token"})


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier, snake_case. Defaults to ``"bad_request"``.
    details : dict[str, Any] | None, optional
        Optional structured payload (field errors) included in the body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}


class Conflict(APIError):
    """409 for email/username collisions."""

    def __init__(self, message: str = "Conflict", code: str = "conflict") -> None:
        super().__init__(message, status_code=HTTPStatus.CONFLICT, code=code)


class Unauthorized(APIError):
    """401 for bad credentials and missing or rejected bearer tokens."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED, code=code)


class InternalServerError(APIError):
    """500 that never carries internal detail."""

    def __init__(self) -> None:
        super().__init__(
            "Unexpected error",
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
        )


def problem_body(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build the Problem Details dict for the current request.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Client-safe summary, sent as ``detail``.
    :param details: Optional structured details.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def render_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> tuple[Response, int]:
    """Log and render one problem response (4xx as warning, 5xx as error)."""
    problem = problem_body(status=status, code=code, message=message, details=details)
    level = log.error if status >= 500 else log.warning
    level(
        "problem: code=%s status=%s detail=%s request_id=%s",
        code,
        status,
        message,
        problem["request_id"],
        exc_info=exc_info,
    )

    resp = jsonify(problem)
    resp.mimetype = PROBLEM_MIMETYPE
    if status == HTTPStatus.UNAUTHORIZED:
        challenge = 'Bearer realm="codely"'
        if code in _TOKEN_ERROR_CODES:
            challenge += f', error="{code}"'
        resp.headers["WWW-Authenticate"] = challenge
    return resp, status


def api_error_response(err: APIError) -> tuple[Response, int]:
    """Render an :class:`APIError` (raised directly or translated from a service error)."""
    return render_problem(
        status=err.status_code,
        code=err.code,
        message=err.message,
        details=err.details or None,
    )


def init_app(app: Flask) -> None:
    """
    Attach problem+json error handlers to the Flask app.

    Notes
    -----
    - Unexpected exceptions are logged with ``exc_info`` and answered with a
      bare 500; internal messages never reach the client.
    - 404 details name the missing route.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return api_error_response(err)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = HTTP_STATUS_CODES.get(status, "error")
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or code.replace("_", " ").capitalize()).strip()
        return render_problem(status=status, code=code, message=message)

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        # schemas normally go through validate_payload; this catches direct .load() calls
        return render_problem(
            status=HTTPStatus.BAD_REQUEST,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        return render_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
            exc_info=True,
        )
