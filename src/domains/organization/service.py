# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organization service for campus management.

This module provides the OrganizationService that handles:
- Organization listing scoped to the caller
- Organization creation (super-admin only) with slug derivation
- Organization updates and headcount statistics

Example:
    >>> service = OrganizationService(db_session)
    >>> org = await service.create_organization(user, request)
    >>> stats = await service.get_organization_stats(user, org.id)
"""

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import MANAGER_ROLES, Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailureError
from src.infrastructure.database.models import Classroom, Organization, Parent, Student, Teacher
from src.models.organization import (
    OrganizationCreateRequest,
    OrganizationResponse,
    OrganizationStats,
    OrganizationUpdateRequest,
)

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class OrganizationNotFoundError(NotFoundError):
    """Raised when an organization is not found."""

    def __init__(self) -> None:
        super().__init__("Organization not found")


class SlugExistsError(ConflictError):
    """Raised when the slug is already taken."""

    pass


def slugify(name: str) -> str:
    """Derive a URL slug: lower-case, non-alphanumeric runs become '-'.

    Example:
        >>> slugify("  St. Mary's High School ")
        'st-mary-s-high-school'
    """
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


class OrganizationService:
    """Service for managing organizations.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_organizations(self, user: Principal) -> list[OrganizationResponse]:
        """List organizations the caller manages (all for a super-admin)."""
        scope = await self.gate.resolve_scope(user, roles=MANAGER_ROLES)

        query = select(Organization).order_by(Organization.name, Organization.id)
        if scope is not None:
            if not scope:
                return []
            query = query.where(Organization.id.in_(scope))

        result = await self.db.execute(query)
        return [self._to_response(org) for org in result.scalars().all()]

    async def create_organization(
        self,
        user: Principal,
        request: OrganizationCreateRequest,
    ) -> OrganizationResponse:
        """Create an organization.

        Raises:
            PermissionDeniedError: If the caller is not a super-admin.
            ValidationFailureError: If no usable slug can be derived.
            SlugExistsError: If the slug is taken.
        """
        if not user.is_super_admin:
            raise PermissionDeniedError("Only super-admins can create organizations")

        slug = slugify(request.slug or request.name)
        if not slug:
            raise ValidationFailureError("Organization slug cannot be empty")

        if await self._get_by_slug(slug):
            raise SlugExistsError(f"Organization with slug '{slug}' already exists")

        org = Organization(
            name=request.name.strip(),
            slug=slug,
            address=request.address,
            phone=request.phone,
            principal_name=request.principal_name,
            capacity=request.capacity,
            location=request.location,
            logo=request.logo,
            extra_data=request.metadata,
        )
        self.db.add(org)
        await self.db.commit()
        await self.db.refresh(org)

        logger.info("Organization created: %s (slug=%s) by %s", org.id, org.slug, user.id)
        return self._to_response(org)

    async def get_organization(self, user: Principal, organization_id: str) -> OrganizationResponse:
        """Get an organization the caller can read."""
        org = await self._get_by_id(organization_id)
        await self.gate.ensure(user, org.id, ResourceKind.ORGANIZATION, Action.READ)
        return self._to_response(org)

    async def update_organization(
        self,
        user: Principal,
        organization_id: str,
        request: OrganizationUpdateRequest,
    ) -> OrganizationResponse:
        """Update an organization (admin/owner or super-admin)."""
        org = await self._get_by_id(organization_id)

        async def apply() -> Organization:
            updates = request.model_dump(exclude_unset=True)
            if "slug" in updates and updates["slug"] is not None:
                slug = slugify(updates["slug"])
                if not slug:
                    raise ValidationFailureError("Organization slug cannot be empty")
                existing = await self._get_by_slug(slug)
                if existing and existing.id != org.id:
                    raise SlugExistsError(f"Organization with slug '{slug}' already exists")
                updates["slug"] = slug
            if "metadata" in updates:
                updates["extra_data"] = updates.pop("metadata")

            for field, value in updates.items():
                if field in ("name", "slug") and value is None:
                    continue
                setattr(org, field, value)

            await self.db.commit()
            await self.db.refresh(org)
            return org

        org = await self.gate.with_scoped_permission(
            user, org.id, ResourceKind.ORGANIZATION, Action.UPDATE, apply
        )
        logger.info("Organization updated: %s by %s", org.id, user.id)
        return self._to_response(org)

    async def get_organization_stats(self, user: Principal, organization_id: str) -> OrganizationStats:
        """Count students, teachers, parents and classrooms."""
        org = await self._get_by_id(organization_id)
        await self.gate.ensure(user, org.id, ResourceKind.ORGANIZATION, Action.READ)

        async def count(model) -> int:
            result = await self.db.execute(
                select(func.count()).select_from(model).where(model.organization_id == org.id)
            )
            return result.scalar_one()

        return OrganizationStats(
            total_students=await count(Student),
            total_teachers=await count(Teacher),
            total_parents=await count(Parent),
            total_classrooms=await count(Classroom),
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_by_id(self, organization_id: str) -> Organization:
        org = await self.db.get(Organization, organization_id)
        if org is None:
            raise OrganizationNotFoundError()
        return org

    async def _get_by_slug(self, slug: str) -> Organization | None:
        result = await self.db.execute(select(Organization).where(Organization.slug == slug))
        return result.scalar_one_or_none()

    @staticmethod
    def _to_response(org: Organization) -> OrganizationResponse:
        return OrganizationResponse(
            id=org.id,
            name=org.name,
            slug=org.slug,
            address=org.address,
            phone=org.phone,
            principal_name=org.principal_name,
            capacity=org.capacity,
            location=org.location,
            logo=org.logo,
            metadata=org.extra_data,
            created_at=org.created_at,
            updated_at=org.updated_at,
        )
