"""User repository for identity lookups."""

from __future__ import annotations

from codely.models.user import User
from codely.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Lookups are exact matches: emails are compared as stored (only trimmed),
    never case-folded. This repository never mints tokens.
    """

    model = User
    lookup_columns = {
        "email": User.email,
        "username": User.username,
        "external_id": User.external_id,
    }

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email.

        :param email: Email address; surrounding whitespace is ignored.
        :returns: User instance or ``None`` when not found.
        """
        return self._first(User.email == email.strip())

    def get_by_external_id(self, external_id: str) -> User | None:
        """Fetch a user linked to a Google subject identifier."""
        return self._first(User.external_id == external_id)

    def exists_by_email(self, email: str) -> bool:
        return self.exists(email=email.strip())

    def exists_by_username(self, username: str) -> bool:
        return self.exists(username=username.strip())
