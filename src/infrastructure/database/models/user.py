# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User identity and sign-in session models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.utils.datetime import ensure_utc, utc_now

if TYPE_CHECKING:
    from src.infrastructure.database.models.organization import Member


class User(UUIDMixin, TimestampMixin, Base):
    """Global user identity.

    The global role is either ``member`` or ``super-admin``. Organization
    roles live on Member rows.
    """

    __tablename__ = "users"
    __table_args__ = (
        sa.CheckConstraint(
            "role IN ('member', 'super-admin')",
            name="valid_global_role",
        ),
    )

    email: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    role: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="member")

    phone: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    emergency_contact: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    banned: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    ban_reason: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    ban_expires: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    memberships: Mapped[list[Member]] = relationship(
        "Member",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    sessions: Mapped[list[UserSession]] = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def is_banned(self) -> bool:
        """Check if the ban is currently in effect."""
        if not self.banned:
            return False
        if self.ban_expires is None:
            return True
        return ensure_utc(self.ban_expires) > utc_now()

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r})"


class UserSession(UUIDMixin, TimestampMixin, Base):
    """Server-side record of a sign-in session.

    Only the SHA-256 hash of the issued token is stored.
    """

    __tablename__ = "user_sessions"

    user_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(sa.String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(sa.String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    user: Mapped[User] = relationship("User", back_populates="sessions")

    @property
    def is_expired(self) -> bool:
        """Check if the session has expired."""
        return ensure_utc(self.expires_at) <= utc_now()
