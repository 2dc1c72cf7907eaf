"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. They are the stable contract between the credential store, the
session service and the API layer.

The translation to HTTP responses (RFC 7807) is handled by
``codely/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite reports ``table.column``,
    so callers may pass either form.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        Constraint name (``uq_users_email``) or column path (``users.email``).

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from stores, adapters or the session service.
    - The API layer translates them to ``APIError`` instances.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class RequestValidationError(ServiceError):
    """
    Raised when a request payload fails schema validation.

    :param message: Summary message (first field error).
    :type message: str
    :param errors: Field name to list of messages.
    :type errors: Mapping[str, Any]
    """

    message: str
    errors: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class DuplicateKind(str, Enum):
    """Which unique identity attribute collided."""

    EMAIL = "email"
    USERNAME = "username"


@dataclass(slots=True)
class DuplicateError(ServiceError):
    """
    Raised when registration collides with an existing email or username.

    :param kind: Colliding attribute.
    :type kind: DuplicateKind
    """

    kind: DuplicateKind

    def __str__(self) -> str:
        if self.kind is DuplicateKind.EMAIL:
            return "Email already registered"
        return "Username already taken"

    @property
    def code(self) -> str:
        return f"duplicate_{self.kind.value}"


class InvalidCredentialsError(ServiceError):
    """
    Raised for any login failure.

    The message is identical for unknown emails and wrong passwords.
    """

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class InvalidRefreshTokenError(ServiceError):
    """
    Raised when a refresh token is expired, malformed, forged, reused or
    belongs to a user that no longer exists.
    """

    def __init__(self, message: str = "Invalid refresh token") -> None:
        super().__init__(message)


class InvalidExternalCredentialError(ServiceError):
    """Raised when a Google credential fails verification."""

    def __init__(self, message: str = "Invalid Google credential") -> None:
        super().__init__(message)


class InternalError(ServiceError):
    """
    Raised for persistence or unexpected failures.

    The message is never exposed to clients; the original exception is kept
    as ``__cause__`` for logging.
    """

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
