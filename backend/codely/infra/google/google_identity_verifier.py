from __future__ import annotations

import logging
from typing import Any, Protocol

import jwt

from codely.services._shared.ports.identity_verifier import (
    ExternalIdentity,
    ExternalIdentityVerifier,
)

log = logging.getLogger(__name__)


class SigningKeySource(Protocol):
    """What :class:`jwt.PyJWKClient` offers; tests inject an in-memory source."""

    def get_signing_key_from_jwt(self, token: str) -> Any: ...


class GoogleIdentityVerifier(ExternalIdentityVerifier):
    """
    Verify Google Sign-In ID tokens against Google's published JWKS.

    Checks the RS256 signature, expiry, the audience (our OAuth client id)
    and the issuer. Any failure, including an unreachable key endpoint,
    yields ``None``.

    :param client_id: Expected ``aud`` claim.
    :param certs_url: JWKS endpoint.
    :param key_source: Override for the signing key lookup.
    """

    DEFAULT_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"
    ISSUERS = ("accounts.google.com", "https://accounts.google.com")

    def __init__(
        self,
        *,
        client_id: str,
        certs_url: str = DEFAULT_CERTS_URL,
        key_source: SigningKeySource | None = None,
        leeway: int = 10,
    ) -> None:
        if not client_id:
            raise ValueError("client_id is required for Google sign-in.")
        self.client_id = client_id
        self.leeway = leeway
        self._keys: SigningKeySource = key_source or jwt.PyJWKClient(certs_url, cache_keys=True)

    def verify(self, credential: str) -> ExternalIdentity | None:
        if not isinstance(credential, str) or not credential:
            return None
        try:
            signing_key = self._keys.get_signing_key_from_jwt(credential)
            payload = jwt.decode(
                credential,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.client_id,
                leeway=self.leeway,
                options={"require": ["sub", "aud", "iss", "exp"]},
            )
        except jwt.PyJWTError as exc:
            log.info(
                "google.verify_failed",
                extra={"provider": "google", "reason": type(exc).__name__},
            )
            return None

        if payload.get("iss") not in self.ISSUERS:
            log.info("google.verify_failed", extra={"provider": "google", "reason": "issuer"})
            return None

        email = payload.get("email")
        return ExternalIdentity(
            subject=str(payload["sub"]),
            email=email if isinstance(email, str) and email else None,
            name=payload.get("name") or None,
            picture=payload.get("picture") or None,
        )
