# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member service for organization team management.

Handles listing members, changing their organization role and removing
them. Every mutation is gated on the member's own organization.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, OrgRole, PermissionGate, Principal, ResourceKind
from src.domains.errors import NotFoundError, ValidationFailureError
from src.infrastructure.database.models import Member, Organization
from src.models.organization import MemberResponse
from src.models.user import UserBrief

logger = logging.getLogger(__name__)


class MemberNotFoundError(NotFoundError):
    """Raised when a membership is not found."""

    def __init__(self) -> None:
        super().__init__("Member not found")


class SelfRemovalError(ValidationFailureError):
    """Raised when a caller tries to remove their own membership."""

    def __init__(self) -> None:
        super().__init__("You cannot remove yourself from the organization")


class MemberService:
    """Service for managing organization members.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_members(self, user: Principal, organization_id: str) -> list[MemberResponse]:
        """List members of an organization, newest first (managers only)."""
        if await self.db.get(Organization, organization_id) is None:
            raise NotFoundError("Organization not found")
        await self.gate.ensure_manager(user, organization_id, ResourceKind.MEMBER)

        result = await self.db.execute(
            select(Member)
            .options(selectinload(Member.user))
            .where(Member.organization_id == organization_id)
            .order_by(Member.created_at.desc(), Member.id)
        )
        return [self._to_response(m) for m in result.scalars().all()]

    async def update_member_role(
        self,
        user: Principal,
        member_id: str,
        role: OrgRole,
    ) -> MemberResponse:
        """Change a member's role within its organization."""
        member = await self._get_by_id(member_id)

        async def apply() -> Member:
            member.role = role.value
            await self.db.commit()
            return member

        await self.gate.with_scoped_permission(
            user, member.organization_id, ResourceKind.MEMBER, Action.UPDATE, apply
        )
        logger.info("Member %s role set to %s by %s", member.id, role.value, user.id)
        return self._to_response(member)

    async def remove_member(self, user: Principal, member_id: str) -> None:
        """Remove a member. Removing your own membership is refused."""
        member = await self._get_by_id(member_id)
        if member.user_id == user.id:
            raise SelfRemovalError()

        async def apply() -> None:
            await self.db.delete(member)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, member.organization_id, ResourceKind.MEMBER, Action.DELETE, apply
        )
        logger.info("Member %s removed from %s by %s", member.id, member.organization_id, user.id)

    async def _get_by_id(self, member_id: str) -> Member:
        result = await self.db.execute(
            select(Member).options(selectinload(Member.user)).where(Member.id == member_id)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise MemberNotFoundError()
        return member

    @staticmethod
    def _to_response(member: Member) -> MemberResponse:
        return MemberResponse(
            id=member.id,
            user_id=member.user_id,
            organization_id=member.organization_id,
            role=OrgRole(member.role),
            user=UserBrief.model_validate(member.user) if member.user else None,
            created_at=member.created_at,
        )
