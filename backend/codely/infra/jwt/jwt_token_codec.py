# comments in English; reST docstrings
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from codely.services._shared.ports.token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    TokenCodec,
)

log = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["sub", "type", "jti", "iat", "exp"]


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Secrets and lifetimes for both token kinds.

    :param access_secret: HMAC key for access tokens.
    :param refresh_secret: HMAC key for refresh tokens; must differ from ``access_secret``.
    :param algorithm: JWS algorithm (``HS256`` by default).
    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param issuer: ``iss`` claim stamped and required on verification.
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
    issuer: str = "codely"

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("Both JWT secrets must be set.")
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh tokens must use distinct secrets.")


@dataclass(slots=True)
class JWTTokenCodec(TokenCodec):
    """
    PyJWT adapter for :class:`TokenCodec`.

    Access and refresh tokens are signed with different keys and carry a
    ``type`` claim, so a token of one kind never verifies as the other. A
    random ``jti`` keeps two tokens minted in the same second distinct.
    """

    settings: TokenSettings

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> JWTTokenCodec:
        """Build the codec from a Flask config mapping."""
        return cls(
            TokenSettings(
                access_secret=config["JWT_ACCESS_SECRET_KEY"],
                refresh_secret=config["JWT_REFRESH_SECRET_KEY"],
                algorithm=config.get("JWT_ALGORITHM", "HS256"),
                access_expires=timedelta(
                    minutes=int(config.get("JWT_ACCESS_TOKEN_EXPIRES_MINUTES", 15))
                ),
                refresh_expires=timedelta(days=int(config.get("JWT_REFRESH_TOKEN_EXPIRES_DAYS", 7))),
                issuer=config.get("JWT_ISSUER", "codely"),
            )
        )

    # -------------------- issue --------------------

    def _encode(self, claims: TokenClaims, *, ttype: str, secret: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(claims.sub),
            "username": claims.username,
            "email": claims.email,
            "type": ttype,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "jti": uuid4().hex,
            "iss": self.settings.issuer,
        }
        return jwt.encode(payload, secret, algorithm=self.settings.algorithm)

    def issue_access_token(self, claims: TokenClaims) -> str:
        return self._encode(
            claims,
            ttype=ACCESS_TOKEN_TYPE,
            secret=self.settings.access_secret,
            ttl=self.settings.access_expires,
        )

    def issue_refresh_token(self, claims: TokenClaims) -> str:
        return self._encode(
            claims,
            ttype=REFRESH_TOKEN_TYPE,
            secret=self.settings.refresh_secret,
            ttl=self.settings.refresh_expires,
        )

    # -------------------- verify -------------------

    def _decode(self, token: str, *, ttype: str, secret: str) -> TokenClaims | None:
        if not isinstance(token, str) or not token:
            return None
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as exc:
            log.debug("token.verify_failed", extra={"reason": type(exc).__name__})
            return None

        if payload.get("type") != ttype:
            return None
        username = payload.get("username")
        email = payload.get("email")
        if not isinstance(username, str) or not isinstance(email, str):
            return None
        return TokenClaims(
            sub=str(payload["sub"]),
            username=username,
            email=email,
            type=ttype,
            jti=str(payload["jti"]),
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
        )

    def verify_access_token(self, token: str) -> TokenClaims | None:
        return self._decode(token, ttype=ACCESS_TOKEN_TYPE, secret=self.settings.access_secret)

    def verify_refresh_token(self, token: str) -> TokenClaims | None:
        return self._decode(token, ttype=REFRESH_TOKEN_TYPE, secret=self.settings.refresh_secret)
