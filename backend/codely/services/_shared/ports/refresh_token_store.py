from __future__ import annotations

import threading
from typing import Protocol


class RefreshTokenStore(Protocol):
    """
    Per-user membership set of currently valid refresh token strings.

    The set is mutated only through :meth:`add`, :meth:`remove` and
    :meth:`clear`; callers never read-modify-write it. :meth:`remove` is a
    conditional remove and MUST be atomic: among concurrent callers removing
    the same token exactly one observes ``True``.
    """

    def add(self, user_id: str, token: str) -> None:
        """Record ``token`` as issued to ``user_id``."""

    def remove(self, user_id: str, token: str) -> bool:
        """Remove ``token`` if present. :returns: True only if this call removed it."""

    def clear(self, user_id: str) -> int:
        """Remove every token of ``user_id``. :returns: Number of tokens removed."""

    def tokens(self, user_id: str) -> list[str]:
        """List the user's tokens, oldest first."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token membership with atomic conditional remove.

    .. note::
       Uses a threading lock to provide atomicity in unit tests.
    """

    def __init__(self) -> None:
        self._by_user: dict[str, list[str]] = {}
        self._owner: dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, user_id: str, token: str) -> None:
        with self._lock:
            previous = self._owner.get(token)
            if previous is not None:
                # a token string belongs to at most one user
                self._by_user[previous].remove(token)
            self._by_user.setdefault(user_id, []).append(token)
            self._owner[token] = user_id

    def remove(self, user_id: str, token: str) -> bool:
        with self._lock:
            if self._owner.get(token) != user_id:
                return False
            del self._owner[token]
            self._by_user[user_id].remove(token)
            return True

    def clear(self, user_id: str) -> int:
        with self._lock:
            tokens = self._by_user.pop(user_id, [])
            for t in tokens:
                self._owner.pop(t, None)
            return len(tokens)

    def tokens(self, user_id: str) -> list[str]:
        with self._lock:
            return list(self._by_user.get(user_id, []))
