"""
codely.services._shared.ports
=============================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token signing, identity persistence, refresh-token membership and Google
identity verification.

Modules
-------
- :mod:`token_codec`:
    :class:`~.TokenCodec` and :class:`~.TokenClaims`, signing and verifying
    the access/refresh token pair.

- :mod:`credential_store`:
    :class:`~.CredentialStore` and :class:`~.UserRecord`, durable identities
    plus refresh-token membership.

- :mod:`refresh_token_store`:
    :class:`~.RefreshTokenStore`, the per-user token set with an atomic
    conditional remove.

- :mod:`identity_verifier`:
    :class:`~.ExternalIdentityVerifier` and :class:`~.ExternalIdentity`.

Concrete adapters (SQLAlchemy, Redis, PyJWT, Google) live under
``codely.infra``; each port also ships an in-memory double for unit tests.
"""

from __future__ import annotations

from .credential_store import (
    USERNAME_MAX_LENGTH,
    CredentialStore,
    InMemoryCredentialStore,
    UserRecord,
)
from .identity_verifier import (
    ExternalIdentity,
    ExternalIdentityVerifier,
    StubIdentityVerifier,
)
from .refresh_token_store import InMemoryRefreshTokenStore, RefreshTokenStore
from .token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    StubTokenCodec,
    TokenClaims,
    TokenCodec,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "CredentialStore",
    "ExternalIdentity",
    "ExternalIdentityVerifier",
    "InMemoryCredentialStore",
    "InMemoryRefreshTokenStore",
    "RefreshTokenStore",
    "StubIdentityVerifier",
    "StubTokenCodec",
    "TokenClaims",
    "TokenCodec",
    "USERNAME_MAX_LENGTH",
    "UserRecord",
]
