"""Repository for per-user refresh-token membership rows."""

from __future__ import annotations

from sqlalchemy import delete, select

from codely.models.refresh_token import RefreshToken
from codely.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only access to :class:`RefreshToken` rows.

    Removal is expressed as a single ``DELETE ... WHERE user_id AND token``
    statement so concurrent consumers of the same token race on the row, not
    on a prior read: only one of them observes ``rowcount == 1``.
    """

    model = RefreshToken

    def add_for_user(self, user_id: int, token: str) -> RefreshToken:
        return self.add(RefreshToken(user_id=user_id, token=token))

    def delete_token(self, user_id: int, token: str) -> bool:
        """Delete one token row.

        :returns: ``True`` only when this statement removed the row.
        :rtype: bool
        """
        stmt = delete(RefreshToken).where(
            RefreshToken.user_id == user_id,
            RefreshToken.token == token,
        )
        result = self.session.execute(stmt)
        return (result.rowcount or 0) == 1

    def delete_all_for_user(self, user_id: int) -> int:
        stmt = delete(RefreshToken).where(RefreshToken.user_id == user_id)
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)

    def tokens_for_user(self, user_id: int) -> list[str]:
        """Return the user's token strings in insertion order."""
        stmt = (
            select(RefreshToken.token)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())
