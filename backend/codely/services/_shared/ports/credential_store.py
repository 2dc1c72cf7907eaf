from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from codely.services._shared.errors import DuplicateError, DuplicateKind

from .refresh_token_store import InMemoryRefreshTokenStore, RefreshTokenStore

# Column width of ``users.username``; registration and federated sign-in stay within it
USERNAME_MAX_LENGTH = 50


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Read-model of a persisted identity.

    :ivar id: Opaque user identifier.
    :ivar email: Email as stored (case preserved).
    :ivar username: Unique handle.
    :ivar password_hash: Salted hash, ``None`` for federated-only accounts.
    :ivar external_id: Linked Google subject, if any.
    :ivar avatar_ref: Avatar URL or storage key, if any.
    """

    id: str
    email: str
    username: str
    password_hash: str | None = None
    external_id: str | None = None
    avatar_ref: str | None = None


class CredentialStore(Protocol):
    """
    Durable identity and refresh-token membership.

    Persistence failures surface as
    :class:`~codely.services._shared.errors.InternalError`.
    """

    def find_by_email(self, email: str) -> UserRecord | None: ...

    def find_by_id(self, user_id: str) -> UserRecord | None: ...

    def find_by_external_id(self, subject: str) -> UserRecord | None: ...

    def create(
        self,
        username: str,
        email: str,
        raw_password: str | None,
        *,
        external_id: str | None = None,
        avatar_ref: str | None = None,
    ) -> UserRecord:
        """
        Hash ``raw_password`` and persist a new identity.

        ``raw_password=None`` creates a federated account without a local
        password.

        :raises DuplicateError: When the email or username already exists.
        """

    def verify_password(self, record: UserRecord, raw_password: str) -> bool: ...

    def link_external_identity(self, user_id: str, provider_id: str) -> UserRecord:
        """Associate ``provider_id`` with an unlinked user; an existing link is never replaced."""

    def add_refresh_token(self, user_id: str, token: str) -> None: ...

    def remove_refresh_token(self, user_id: str, token: str) -> bool:
        """Conditional remove. :returns: True only for the caller that removed it."""

    def clear_refresh_tokens(self, user_id: str) -> int: ...

    def refresh_tokens(self, user_id: str) -> list[str]: ...


def hash_password(raw_password: str) -> str:
    return generate_password_hash(raw_password)


def check_password(record: UserRecord, raw_password: str) -> bool:
    """Compare through werkzeug only; ``False`` when there is no local password."""
    if not record.password_hash:
        return False
    return bool(check_password_hash(record.password_hash, raw_password))


class InMemoryCredentialStore(CredentialStore):
    """
    Dict-backed credential store for unit tests.

    Ids are sequential strings. Refresh-token membership is delegated to a
    :class:`RefreshTokenStore` (in-memory by default).
    """

    def __init__(self, refresh_store: RefreshTokenStore | None = None) -> None:
        self._users: dict[str, UserRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()
        self.refresh_store = refresh_store or InMemoryRefreshTokenStore()

    # ------------------------------ identities ------------------------------

    def find_by_email(self, email: str) -> UserRecord | None:
        email = email.strip()
        return next((u for u in self._users.values() if u.email == email), None)

    def find_by_id(self, user_id: str) -> UserRecord | None:
        return self._users.get(str(user_id))

    def find_by_external_id(self, subject: str) -> UserRecord | None:
        return next((u for u in self._users.values() if u.external_id == subject), None)

    def create(
        self,
        username: str,
        email: str,
        raw_password: str | None,
        *,
        external_id: str | None = None,
        avatar_ref: str | None = None,
    ) -> UserRecord:
        email = email.strip()
        username = username.strip()
        password_hash = hash_password(raw_password) if raw_password else None
        with self._lock:
            if any(u.email == email for u in self._users.values()):
                raise DuplicateError(DuplicateKind.EMAIL)
            if any(u.username == username for u in self._users.values()):
                raise DuplicateError(DuplicateKind.USERNAME)
            self._seq += 1
            record = UserRecord(
                id=str(self._seq),
                email=email,
                username=username,
                password_hash=password_hash,
                external_id=external_id,
                avatar_ref=avatar_ref,
            )
            self._users[record.id] = record
            return record

    def verify_password(self, record: UserRecord, raw_password: str) -> bool:
        return check_password(record, raw_password)

    def link_external_identity(self, user_id: str, provider_id: str) -> UserRecord:
        with self._lock:
            record = self._users[str(user_id)]
            if record.external_id is None:
                record = replace(record, external_id=provider_id)
                self._users[record.id] = record
            return record

    def delete(self, user_id: str) -> None:
        """Drop an identity and its tokens (test helper for orphaned tokens)."""
        with self._lock:
            self._users.pop(str(user_id), None)
        self.refresh_store.clear(str(user_id))

    # ---------------------------- refresh tokens ----------------------------

    def add_refresh_token(self, user_id: str, token: str) -> None:
        self.refresh_store.add(str(user_id), token)

    def remove_refresh_token(self, user_id: str, token: str) -> bool:
        return self.refresh_store.remove(str(user_id), token)

    def clear_refresh_tokens(self, user_id: str) -> int:
        return self.refresh_store.clear(str(user_id))

    def refresh_tokens(self, user_id: str) -> list[str]:
        return self.refresh_store.tokens(str(user_id))
