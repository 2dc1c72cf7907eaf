"""
Unit of Work contract used by the SQL credential and refresh-token stores.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codely.repositories import RefreshTokenRepository, UserRepository


class UnitOfWork(ABC):
    """
    One transactional scope around a single credential-store operation.

    Both repositories share the scope's session, so a user row and its
    refresh-token rows are always read and written in the same transaction.
    Subclasses decide what ``__exit__`` does (commit, or always roll back).
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository

    def __enter__(self) -> UnitOfWork:
        return self

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
