# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organization (campus), membership and invitation models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.utils.datetime import ensure_utc, utc_now

if TYPE_CHECKING:
    from src.infrastructure.database.models.user import User


class Organization(UUIDMixin, TimestampMixin, Base):
    """Tenant boundary. Every domain row carries an organization_id."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    slug: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    principal_name: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    capacity: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    location: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    logo: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)
    extra_data: Mapped[dict[str, Any] | None] = mapped_column("metadata", nullable=True)

    members: Mapped[list[Member]] = relationship(
        "Member",
        back_populates="organization",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Organization(id={self.id!r}, slug={self.slug!r})"


class Member(UUIDMixin, TimestampMixin, Base):
    """Links a user to an organization with a role."""

    __tablename__ = "members"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "organization_id", name="uq_members_user_org"),
        sa.CheckConstraint(
            "role IN ('member', 'admin', 'owner')",
            name="valid_member_role",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="member")

    user: Mapped[User] = relationship("User", back_populates="memberships")
    organization: Mapped[Organization] = relationship("Organization", back_populates="members")


class Invitation(UUIDMixin, TimestampMixin, Base):
    """Pending offer of membership.

    Expiry is derived from expires_at and never stored as a status.
    """

    __tablename__ = "invitations"
    __table_args__ = (
        sa.UniqueConstraint("email", "organization_id", name="uq_invitations_email_org"),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted')",
            name="valid_invitation_status",
        ),
    )

    email: Mapped[str] = mapped_column(sa.String(255), nullable=False, index=True)
    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="member")
    inviter_id: Mapped[str | None] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    token: Mapped[str] = mapped_column(sa.String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False, default="pending")
    expires_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)

    organization: Mapped[Organization] = relationship("Organization")
    inviter: Mapped[User | None] = relationship("User")

    @property
    def is_expired(self) -> bool:
        """Check if the invitation window has passed."""
        return ensure_utc(self.expires_at) <= utc_now()
