"""Plain value objects crossing the HTTP/session-service boundary.

Views build the ``*In`` objects from validated payloads; the service answers
with ``TokenPairOut`` or ``UserPublicOut``, which the views serialize in
camelCase.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    New local account.

    :param username: Unique handle, already trimmed.
    :param email: Trimmed, case preserved.
    :param password: Raw password; only the credential store ever hashes it.
    """

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """Anything that is not a valid refresh token is treated as already logged out."""

    refresh_token: str


@dataclass(frozen=True, slots=True)
class GoogleSignInIn:
    """``credential`` is the Google ID token handed over by the Sign-In button."""

    credential: str


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """What ``whoami`` exposes; never the hash or the Google subject."""

    id: str
    username: str
    email: str
    avatar: str | None = None
