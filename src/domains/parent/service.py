# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent service.

Parent profiles are scoped to one organization. Contact details (phone and
emergency contact) live on the parent's user record.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import ConflictError, NotFoundError
from src.infrastructure.database.models import Organization, Parent, User
from src.models.school import (
    ParentContactRequest,
    ParentCreateRequest,
    ParentResponse,
    ParentUpdateRequest,
)
from src.models.user import UserBrief

logger = logging.getLogger(__name__)


class ParentNotFoundError(NotFoundError):
    """Raised when a parent is not found."""

    def __init__(self) -> None:
        super().__init__("Parent not found")


class ParentExistsError(ConflictError):
    """Raised when the user already has a parent profile in the organization."""

    def __init__(self) -> None:
        super().__init__("Parent profile already exists for this user")


class ParentService:
    """Service for managing parents.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_parents(self, user: Principal, organization_id: str) -> list[ParentResponse]:
        """List parents of an organization, newest first."""
        if await self.db.get(Organization, organization_id) is None:
            raise NotFoundError("Organization not found")
        await self.gate.ensure(user, organization_id, ResourceKind.PARENT, Action.READ)

        result = await self.db.execute(
            select(Parent)
            .options(selectinload(Parent.user))
            .where(Parent.organization_id == organization_id)
            .order_by(Parent.created_at.desc(), Parent.id)
        )
        return [self._to_response(p) for p in result.scalars().all()]

    async def get_parent(self, user: Principal, parent_id: str) -> ParentResponse:
        """Get a parent profile."""
        parent = await self._get_by_id(parent_id)
        await self.gate.ensure(user, parent.organization_id, ResourceKind.PARENT, Action.READ)
        return self._to_response(parent)

    async def create_parent(self, user: Principal, request: ParentCreateRequest) -> ParentResponse:
        """Create a parent profile for an existing user."""
        if await self.db.get(Organization, request.organization_id) is None:
            raise NotFoundError("Organization not found")

        async def apply() -> Parent:
            if await self.db.get(User, request.user_id) is None:
                raise NotFoundError("User not found")
            existing = await self.db.execute(
                select(Parent.id).where(
                    Parent.user_id == request.user_id,
                    Parent.organization_id == request.organization_id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ParentExistsError()

            parent = Parent(
                user_id=request.user_id,
                organization_id=request.organization_id,
                relation=request.relationship,
                primary_contact=request.primary_contact,
                occupation=request.occupation,
            )
            self.db.add(parent)
            await self.db.commit()
            return parent

        parent = await self.gate.with_scoped_permission(
            user, request.organization_id, ResourceKind.PARENT, Action.CREATE, apply
        )
        logger.info("Parent created: %s in %s by %s", parent.id, parent.organization_id, user.id)
        return self._to_response(await self._get_by_id(parent.id))

    async def update_parent(
        self,
        user: Principal,
        parent_id: str,
        request: ParentUpdateRequest,
    ) -> ParentResponse:
        """Partially update a parent profile."""
        parent = await self._get_by_id(parent_id)

        async def apply() -> None:
            updates = request.model_dump(exclude_unset=True)
            if "relationship" in updates:
                relation = updates.pop("relationship")
                if relation is not None:
                    parent.relation = relation
            if updates.get("primary_contact") is not None:
                parent.primary_contact = updates["primary_contact"]
            if "occupation" in updates:
                parent.occupation = updates["occupation"]
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, parent.organization_id, ResourceKind.PARENT, Action.UPDATE, apply
        )
        logger.info("Parent updated: %s by %s", parent_id, user.id)
        return self._to_response(await self._get_by_id(parent_id))

    async def update_contact(
        self,
        user: Principal,
        parent_id: str,
        request: ParentContactRequest,
    ) -> ParentResponse:
        """Update the phone and emergency contact on the parent's user."""
        parent = await self._get_by_id(parent_id)

        async def apply() -> None:
            updates = request.model_dump(exclude_unset=True)
            if "phone" in updates:
                parent.user.phone = updates["phone"]
            if "emergency_contact" in updates:
                parent.user.emergency_contact = updates["emergency_contact"]
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, parent.organization_id, ResourceKind.PARENT, Action.UPDATE, apply
        )
        logger.info("Parent contact updated: %s by %s", parent_id, user.id)
        return self._to_response(parent)

    async def _get_by_id(self, parent_id: str) -> Parent:
        result = await self.db.execute(
            select(Parent)
            .options(selectinload(Parent.user))
            .where(Parent.id == parent_id)
            .execution_options(populate_existing=True)
        )
        parent = result.scalar_one_or_none()
        if parent is None:
            raise ParentNotFoundError()
        return parent

    @staticmethod
    def _to_response(parent: Parent) -> ParentResponse:
        return ParentResponse(
            id=parent.id,
            user_id=parent.user_id,
            organization_id=parent.organization_id,
            relationship=parent.relation,
            primary_contact=parent.primary_contact,
            occupation=parent.occupation,
            phone=parent.user.phone if parent.user else None,
            emergency_contact=parent.user.emergency_contact if parent.user else None,
            user=UserBrief.model_validate(parent.user) if parent.user else None,
            created_at=parent.created_at,
        )
