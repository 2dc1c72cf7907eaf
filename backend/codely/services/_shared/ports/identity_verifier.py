from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class ExternalIdentity:
    """
    Identity asserted by a verified Google ID token.

    :ivar subject: Provider subject identifier (``sub``).
    :ivar email: Email claim, ``None`` when the provider omitted it.
    :ivar name: Display name, if any.
    :ivar picture: Avatar URL, if any.
    """

    subject: str
    email: str | None
    name: str | None = None
    picture: str | None = None


class ExternalIdentityVerifier(Protocol):
    """Port for verifying an opaque federated credential."""

    def verify(self, credential: str) -> ExternalIdentity | None:
        """
        Verify ``credential`` against the provider keys and expected audience.

        :returns: The asserted identity, or ``None`` when verification fails.
        """


class StubIdentityVerifier(ExternalIdentityVerifier):
    """Credential → identity lookup table for unit tests."""

    def __init__(self, identities: dict[str, ExternalIdentity] | None = None) -> None:
        self.identities: dict[str, ExternalIdentity] = dict(identities or {})
        self.calls: list[str] = []

    def verify(self, credential: str) -> ExternalIdentity | None:
        self.calls.append(credential)
        return self.identities.get(credential)
