"""SQLAlchemy-backed :class:`CredentialStore`."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.exc import IntegrityError

from codely.models.user import User
from codely.services._shared.errors import (
    DuplicateError,
    DuplicateKind,
    InternalError,
    violates,
)
from codely.services._shared.ports import CredentialStore, RefreshTokenStore, UserRecord
from codely.services._shared.ports.credential_store import check_password, hash_password
from codely.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

from .refresh_token_store import SQLAlchemyRefreshTokenStore, parse_user_id, persistence_errors

log = logging.getLogger(__name__)


def to_record(user: User) -> UserRecord:
    """Copy a mapped :class:`User` into an immutable :class:`UserRecord`."""
    return UserRecord(
        id=str(user.id),
        email=user.email,
        username=user.username,
        password_hash=user.password_hash,
        external_id=user.external_id,
        avatar_ref=user.avatar_ref,
    )


class SQLAlchemyCredentialStore(CredentialStore):
    """
    Identities in the ``users`` table, refresh tokens in a pluggable
    :class:`RefreshTokenStore` (the ``refresh_tokens`` table by default, or
    Redis).

    Uniqueness is checked up front for a precise error and enforced again by
    the unique constraints; a lost race surfaces as the same
    :class:`DuplicateError`.
    """

    def __init__(
        self,
        *,
        refresh_store: RefreshTokenStore | None = None,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self.rw_uow = rw_uow
        self.ro_uow = ro_uow
        self.refresh_store = refresh_store or SQLAlchemyRefreshTokenStore(
            rw_uow=rw_uow, ro_uow=ro_uow
        )

    # ------------------------------ lookups ---------------------------------

    def find_by_email(self, email: str) -> UserRecord | None:
        with persistence_errors(), self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            return to_record(user) if user else None

    def find_by_id(self, user_id: str) -> UserRecord | None:
        uid = parse_user_id(user_id)
        if uid is None:
            return None
        with persistence_errors(), self.ro_uow() as uow:
            user = uow.users.get(uid)
            return to_record(user) if user else None

    def find_by_external_id(self, subject: str) -> UserRecord | None:
        with persistence_errors(), self.ro_uow() as uow:
            user = uow.users.get_by_external_id(subject)
            return to_record(user) if user else None

    # ------------------------------ writes ----------------------------------

    def create(
        self,
        username: str,
        email: str,
        raw_password: str | None,
        *,
        external_id: str | None = None,
        avatar_ref: str | None = None,
    ) -> UserRecord:
        try:
            with persistence_errors(), self.rw_uow() as uow:
                if uow.users.exists_by_email(email):
                    raise DuplicateError(DuplicateKind.EMAIL)
                if uow.users.exists_by_username(username):
                    raise DuplicateError(DuplicateKind.USERNAME)

                user = User(
                    email=email,
                    username=username,
                    external_id=external_id,
                    avatar_ref=avatar_ref,
                    password_hash=hash_password(raw_password) if raw_password else None,
                )
                uow.users.add(user)
                return to_record(user)
        except InternalError as exc:
            cause = exc.__cause__
            if isinstance(cause, IntegrityError):
                if violates(cause, "uq_users_email") or violates(cause, "users.email"):
                    raise DuplicateError(DuplicateKind.EMAIL) from cause
                if violates(cause, "uq_users_username") or violates(cause, "users.username"):
                    raise DuplicateError(DuplicateKind.USERNAME) from cause
            raise

    def verify_password(self, record: UserRecord, raw_password: str) -> bool:
        return check_password(record, raw_password)

    def link_external_identity(self, user_id: str, provider_id: str) -> UserRecord:
        uid = parse_user_id(user_id)
        if uid is None:
            raise InternalError(f"Malformed user id {user_id!r}")
        with persistence_errors(), self.rw_uow() as uow:
            user = uow.users.get(uid)
            if user is None:
                raise InternalError(f"User {user_id} vanished while linking")
            if user.external_id is None:
                user.external_id = provider_id
                uow.users.flush()
            return to_record(user)

    # --------------------------- refresh tokens -----------------------------

    def add_refresh_token(self, user_id: str, token: str) -> None:
        self.refresh_store.add(str(user_id), token)

    def remove_refresh_token(self, user_id: str, token: str) -> bool:
        return self.refresh_store.remove(str(user_id), token)

    def clear_refresh_tokens(self, user_id: str) -> int:
        return self.refresh_store.clear(str(user_id))

    def refresh_tokens(self, user_id: str) -> list[str]:
        return self.refresh_store.tokens(str(user_id))
