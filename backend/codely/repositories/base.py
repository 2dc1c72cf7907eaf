"""Shared plumbing for the SQL repositories behind the credential store.

Repositories only stage and query rows. Commit and rollback belong to the
Unit of Work that handed them their session.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from codely.core.extensions import db

E = TypeVar("E")


class BaseRepository(Generic[E]):
    """Persistence-only access to one mapped model.

    Subclasses set ``model`` and list the columns that ``exists()`` may
    match on in ``lookup_columns``; unknown keys are rejected rather than
    silently dropped, so a typo never widens a uniqueness check.
    """

    model: type[E]
    lookup_columns: Mapping[str, InstrumentedAttribute[Any]] = {}

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        """The Unit of Work's session, or the Flask-scoped one."""
        return self._session if self._session is not None else cast(Session, db.session)

    def _where(self, **filters: Any) -> list[ColumnElement[bool]]:
        unknown = set(filters) - set(self.lookup_columns)
        if unknown:
            raise KeyError(f"{type(self).__name__} cannot filter on {sorted(unknown)}")
        return [self.lookup_columns[key] == value for key, value in filters.items()]

    def _first(self, *criteria: ColumnElement[bool]) -> E | None:
        stmt = select(self.model).where(*criteria).limit(1)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is assigned."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, entity_id: int) -> E | None:
        return self.session.get(self.model, entity_id)

    def exists(self, **filters: Any) -> bool:
        stmt = select(func.count()).select_from(self.model).where(*self._where(**filters))
        return bool(self.session.execute(stmt).scalar())

    def flush(self) -> None:
        self.session.flush()
