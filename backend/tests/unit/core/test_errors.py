# tests/unit/core/test_errors.py
from __future__ import annotations

import json
import logging

from codely.core.errors import APIError, Conflict, InternalServerError, Unauthorized
from codely.core.logger import JSONFormatter, configure_logging
from codely.services._shared.base import BaseService
from codely.services._shared.errors import (
    DuplicateError,
    DuplicateKind,
    InternalError,
    InvalidCredentialsError,
    InvalidExternalCredentialError,
    InvalidRefreshTokenError,
    RequestValidationError,
    ServiceError,
)


def test_translate_service_errors():
    cases = [
        (DuplicateError(DuplicateKind.EMAIL), Conflict, 409, "duplicate_email"),
        (DuplicateError(DuplicateKind.USERNAME), Conflict, 409, "duplicate_username"),
        (InvalidCredentialsError(), Unauthorized, 401, "invalid_credentials"),
        (InvalidRefreshTokenError(), Unauthorized, 401, "invalid_refresh_token"),
        (InvalidExternalCredentialError(), Unauthorized, 401, "invalid_external_credential"),
        (InternalError("boom: secret detail"), InternalServerError, 500, "internal_server_error"),
        (ServiceError("odd"), APIError, 400, "bad_request"),
    ]
    for exc, cls, status, code in cases:
        translated = BaseService.translate_exceptions(exc)
        assert isinstance(translated, cls)
        assert translated.status_code == status
        assert translated.code == code


def test_internal_error_never_leaks_its_message():
    translated = BaseService.translate_exceptions(InternalError("password=hunter2"))

    assert "hunter2" not in translated.message


def test_validation_error_carries_field_errors():
    exc = RequestValidationError("Invalid or missing email", {"email": ["Invalid or missing email"]})

    translated = BaseService.translate_exceptions(exc)

    assert translated.status_code == 400
    assert translated.code == "validation_error"
    assert translated.message == "Invalid or missing email"
    assert translated.details == {"errors": {"email": ["Invalid or missing email"]}}


def test_non_service_errors_pass_through():
    exc = KeyError("x")

    assert BaseService.translate_exceptions(exc) is exc


def test_json_formatter_includes_extras():
    record = logging.LogRecord("codely.test", logging.INFO, __file__, 1, "session.login", (), None)
    record.user_id = "7"
    record.request_id = "req-1"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "session.login"
    assert payload["user_id"] == "7"
    assert payload["request_id"] == "req-1"
    assert payload["level"] == "INFO"


def test_json_formatter_redacts_secrets():
    record = logging.LogRecord("codely.test", logging.INFO, __file__, 1, "oops", (), None)
    record.refresh_token = "eyJ.secret.value"
    record.password = "hunter2"

    line = JSONFormatter().format(record)

    assert "hunter2" not in line
    assert "eyJ.secret.value" not in line
    assert json.loads(line)["refresh_token"] == "[redacted]"


def test_configure_logging_sets_root_level():
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    try:
        configure_logging("debug")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
    finally:
        root.setLevel(saved[0])
        root.handlers[:] = saved[1]
