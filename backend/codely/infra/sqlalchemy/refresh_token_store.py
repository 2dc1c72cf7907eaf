from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from codely.services._shared.errors import InternalError
from codely.services._shared.ports import RefreshTokenStore
from codely.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def parse_user_id(user_id: str | int) -> int | None:
    """Return the integer primary key behind an opaque user id, or ``None``."""
    if isinstance(user_id, int):
        return user_id
    if isinstance(user_id, str) and user_id.strip().isdigit():
        return int(user_id)
    return None


@contextmanager
def persistence_errors() -> Iterator[None]:
    """Re-raise SQLAlchemy failures as :class:`InternalError`."""
    try:
        yield
    except SQLAlchemyError as exc:
        log.error("credential_store.db_error", exc_info=True)
        raise InternalError() from exc


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Refresh token membership kept in the ``refresh_tokens`` table.

    Each operation runs in its own Unit of Work. :meth:`remove` issues one
    ``DELETE`` and trusts its rowcount, so two requests consuming the same
    token cannot both win.
    """

    def __init__(
        self,
        *,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self.rw_uow = rw_uow
        self.ro_uow = ro_uow

    def add(self, user_id: str, token: str) -> None:
        uid = parse_user_id(user_id)
        if uid is None:
            raise InternalError(f"Malformed user id {user_id!r}")
        with persistence_errors(), self.rw_uow() as uow:
            uow.refresh_tokens.add_for_user(uid, token)

    def remove(self, user_id: str, token: str) -> bool:
        uid = parse_user_id(user_id)
        if uid is None:
            return False
        with persistence_errors(), self.rw_uow() as uow:
            return uow.refresh_tokens.delete_token(uid, token)

    def clear(self, user_id: str) -> int:
        uid = parse_user_id(user_id)
        if uid is None:
            return 0
        with persistence_errors(), self.rw_uow() as uow:
            return uow.refresh_tokens.delete_all_for_user(uid)

    def tokens(self, user_id: str) -> list[str]:
        uid = parse_user_id(user_id)
        if uid is None:
            return []
        with persistence_errors(), self.ro_uow() as uow:
            return uow.refresh_tokens.tokens_for_user(uid)
