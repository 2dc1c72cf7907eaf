"""
Units of Work over the Flask-scoped SQLAlchemy session.

``SQLAlchemyUnitOfWork`` is used for writes (user creation, linking, token
rows); ``SQLAlchemyReadOnlyUnitOfWork`` for lookups such as login and
``find_by_id``.
"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from codely.core.extensions import db
from codely.repositories import RefreshTokenRepository, UserRepository
from codely.uow.base import UnitOfWork


def _bind_repositories(uow: UnitOfWork, session: Session) -> None:
    uow.users = UserRepository(session=session)
    uow.refresh_tokens = RefreshTokenRepository(session=session)


class SQLAlchemyUnitOfWork(UnitOfWork):
    """Commit on a clean exit, roll back on any exception (including a failed commit)."""

    def __init__(self, session: Session | None = None) -> None:
        self.session = session if session is not None else db.session
        _bind_repositories(self, self.session)

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(UnitOfWork):
    """
    Lookup-only scope: any pending ORM change makes the flush raise, and the
    transaction is always rolled back on exit.

    Rolling back expires loaded objects, so callers copy what they need
    (typically into a ``UserRecord``) before leaving the ``with`` block.
    """

    def __init__(self, session: Session | None = None) -> None:
        self.session = session if session is not None else db.session
        _bind_repositories(self, self.session)
        self._guard = None

    @staticmethod
    def _refuse_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only UnitOfWork cannot flush pending changes.")

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        event.listen(self.session, "before_flush", self._refuse_flush)
        self._guard = self._refuse_flush
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            if self._guard is not None:
                event.remove(self.session, "before_flush", self._guard)
                self._guard = None

    def commit(self) -> None:
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
