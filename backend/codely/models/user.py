"""User identity model for Codely accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from codely.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .refresh_token import RefreshToken


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One account, local (``password_hash`` set) or Google-federated
    (``external_id`` set), or both once a local account has been linked.

    ``email`` is stored trimmed but otherwise verbatim; lookups never
    case-fold it. Hashing happens in the credential store, never here.
    """

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
        UniqueConstraint("external_id", name="uq_users_external_id"),
        Index("ix_users_email", "email"),
        Index("ix_users_username", "username"),
    )

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255))
    external_id: Mapped[str | None] = mapped_column(String(255))
    avatar_ref: Mapped[str | None] = mapped_column(String(1024))

    # oldest first; the DB cascade clears them with the user
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RefreshToken.id",
    )

    @validates("email", "username")
    def _strip(self, key: str, value: str) -> str:
        """
        Trim ``email``/``username`` and refuse blanks.

        :raises ValueError: On empty values, or an email without ``@``.
        """
        cleaned = value.strip() if isinstance(value, str) else ""
        if not cleaned:
            raise ValueError(f"{key} is required.")
        if key == "email" and "@" not in cleaned:
            raise ValueError("Email format looks invalid.")
        return cleaned
