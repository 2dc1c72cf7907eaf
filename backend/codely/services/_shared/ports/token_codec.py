from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Identity claims carried by both token kinds.

    :ivar sub: User identifier (opaque string).
    :ivar username: Username at issuance time.
    :ivar email: Email at issuance time.
    :ivar type: ``"access"`` or ``"refresh"``; empty before issuance.
    :ivar jti: Unique token id; empty before issuance.
    :ivar iat: Issued-at (epoch seconds); ``0`` before issuance.
    :ivar exp: Expiry (epoch seconds); ``0`` before issuance.
    """

    sub: str
    username: str
    email: str
    type: str = ""
    jti: str = ""
    iat: int = 0
    exp: int = 0


class TokenCodec(Protocol):
    """Port for signing and verifying access and refresh tokens."""

    def issue_access_token(self, claims: TokenClaims) -> str:
        """Sign a short-lived access token for ``claims``."""

    def issue_refresh_token(self, claims: TokenClaims) -> str:
        """Sign a long-lived refresh token for ``claims`` with its own secret."""

    def verify_access_token(self, token: str) -> TokenClaims | None:
        """Return the claims, or ``None`` for any malformed, forged or expired token."""

    def verify_refresh_token(self, token: str) -> TokenClaims | None:
        """Return the claims, or ``None`` for any malformed, forged or expired token."""


class StubTokenCodec(TokenCodec):
    """Deterministic codec used in unit tests.

    Tokens are opaque ``"<type>.<sub>.<seq>"`` strings kept in a dict; a
    token can be expired on demand with :meth:`expire`.
    """

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, TokenClaims] = {}
        self._expired: set[str] = set()

    def _mk(self, claims: TokenClaims, ttype: str) -> str:
        self._seq += 1
        token = f"{ttype}.{claims.sub}.{self._seq}"
        self._issued[token] = TokenClaims(
            sub=claims.sub,
            username=claims.username,
            email=claims.email,
            type=ttype,
            jti=f"jti-{self._seq}",
        )
        return token

    def _verify(self, token: str, ttype: str) -> TokenClaims | None:
        claims = self._issued.get(token)
        if claims is None or claims.type != ttype or token in self._expired:
            return None
        return claims

    def issue_access_token(self, claims: TokenClaims) -> str:
        return self._mk(claims, ACCESS_TOKEN_TYPE)

    def issue_refresh_token(self, claims: TokenClaims) -> str:
        return self._mk(claims, REFRESH_TOKEN_TYPE)

    def verify_access_token(self, token: str) -> TokenClaims | None:
        return self._verify(token, ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> TokenClaims | None:
        return self._verify(token, REFRESH_TOKEN_TYPE)

    def expire(self, token: str) -> None:
        self._expired.add(token)
