# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Membership store accessor.

Read-only lookups of which organizations a user belongs to and with what
role, plus the user's global role.
"""

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access.roles import GlobalRole, OrgRole
from src.infrastructure.database.models import Member, User

logger = logging.getLogger(__name__)


class MembershipAccessor:
    """Looks up memberships and global roles.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_membership(self, user_id: str, organization_id: str) -> Member | None:
        """Get the membership row for (user, organization), if any."""
        result = await self.db.execute(
            select(Member).where(
                Member.user_id == user_id,
                Member.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_org_role(self, user_id: str, organization_id: str) -> OrgRole | None:
        """Get the user's role in an organization, None without membership."""
        membership = await self.get_membership(user_id, organization_id)
        return OrgRole(membership.role) if membership else None

    async def list_memberships(self, user_id: str) -> list[Member]:
        """List all memberships of a user."""
        result = await self.db.execute(
            select(Member)
            .where(Member.user_id == user_id)
            .order_by(Member.created_at)
        )
        return list(result.scalars().all())

    async def organization_ids_for(
        self,
        user_id: str,
        roles: Iterable[OrgRole] | None = None,
    ) -> list[str]:
        """List IDs of organizations the user belongs to.

        Args:
            user_id: User ID.
            roles: Only include memberships with one of these roles.
        """
        query = select(Member.organization_id).where(Member.user_id == user_id)
        if roles is not None:
            query = query.where(Member.role.in_([r.value for r in roles]))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_user_role(self, user_id: str) -> GlobalRole:
        """Get a user's global role. Unknown users resolve to member."""
        result = await self.db.execute(select(User.role).where(User.id == user_id))
        role = result.scalar_one_or_none()
        return GlobalRole(role) if role else GlobalRole.MEMBER
