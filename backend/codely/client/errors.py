"""Exceptions raised by the async Codely client."""

from __future__ import annotations

SESSION_EXPIRED_MESSAGE = "Session expired, please log in again"


class ClientError(Exception):
    """Base class for client-side errors."""


class AuthApiError(ClientError):
    """
    Non-2xx answer, malformed token pair or transport failure from an auth endpoint.

    :param status: HTTP status, ``0`` when the request never got an answer.
    :param code: Problem ``code`` from the body, if any.
    :param message: Problem ``detail`` or a transport description.
    """

    def __init__(self, status: int, code: str | None, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message


class SessionExpiredError(ClientError):
    """The session could not be refreshed; the user must sign in again."""

    def __init__(self, message: str = SESSION_EXPIRED_MESSAGE) -> None:
        super().__init__(message)
