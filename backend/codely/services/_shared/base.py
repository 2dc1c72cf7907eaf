# codely/services/_shared/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from codely.core import errors as api_errors
from codely.services._shared.errors import (
    DuplicateError,
    InternalError,
    InvalidCredentialsError,
    InvalidExternalCredentialError,
    InvalidRefreshTokenError,
    RequestValidationError,
    ServiceError,
)

# Each 401-class service error and the problem code clients see for it
_UNAUTHORIZED_CODES: tuple[tuple[type[ServiceError], str], ...] = (
    (InvalidCredentialsError, "invalid_credentials"),
    (InvalidRefreshTokenError, "invalid_refresh_token"),
    (InvalidExternalCredentialError, "invalid_external_credential"),
)


@dataclass(slots=True)
class ServiceContext:
    """Who is calling (``actor_id``) and under which ``request_id``."""

    actor_id: str | None = None
    request_id: str | None = None


class BaseService:
    """
    Common ground for services: a context, a module logger and the mapping
    from :class:`ServiceError` to HTTP errors.

    Services stay framework-free; persistence and crypto arrive through the
    ports passed to their constructor.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        self.ctx = ctx or ServiceContext()
        self.log = logging.getLogger(type(self).__module__)

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Return the :class:`~codely.core.errors.APIError` for a service error.

        Anything that is not a :class:`ServiceError` comes back unchanged and
        is left to the generic 500 handler.
        """
        if not isinstance(exc, ServiceError):
            return exc
        if isinstance(exc, RequestValidationError):
            return api_errors.APIError(
                exc.message,
                status_code=400,
                code="validation_error",
                details={"errors": dict(exc.errors)} if exc.errors else None,
            )
        if isinstance(exc, DuplicateError):
            return api_errors.Conflict(str(exc), code=exc.code)
        for error_type, code in _UNAUTHORIZED_CODES:
            if isinstance(exc, error_type):
                return api_errors.Unauthorized(str(exc), code=code)
        if isinstance(exc, InternalError):
            # the message may name tables or ids; it stays in the logs
            return api_errors.InternalServerError()
        return api_errors.APIError(str(exc), status_code=400, code="bad_request")
