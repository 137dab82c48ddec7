# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for cross-organization user administration.

This module provides the UserService that handles:
- Listing distinct users of the organizations the caller manages
- Changing a user's role inside an organization
- Changing a user's role in several organizations at once
- Banning and unbanning users, one at a time or in bulk
- Changing the global (platform) role

Example:
    >>> user_service = UserService(db_session)
    >>> page = await user_service.list_users(admin, PageRequest(search="smith"))
    >>> await user_service.set_ban(admin, page.items[0].id, SetBanRequest(banned=True))
"""

import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import (
    MANAGER_ROLES,
    Action,
    GlobalRole,
    PermissionGate,
    Principal,
    ResourceKind,
)
from src.domains.errors import DomainError, NotFoundError, PermissionDeniedError, ValidationFailureError
from src.domains.query import PageRequest, SortSpec, paginate
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import Member, Organization, User, UserSession
from src.models.common import BulkResult, PageResponse
from src.models.user import (
    BulkBanRequest,
    ChangeUserRoleRequest,
    SetBanRequest,
    UpdateUserRolesRequest,
    UserMembership,
    UserResponse,
)

logger = logging.getLogger(__name__)


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""

    def __init__(self) -> None:
        super().__init__("User not found")


class UserService:
    """Service for user administration.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_users(
        self,
        user: Principal,
        page_request: PageRequest,
        organization_ids: list[str] | None = None,
    ) -> PageResponse[UserResponse]:
        """List distinct users of the targeted organizations.

        Super-admins may target any organization; other callers only the
        organizations where they are admin or owner. Search matches name,
        email and organization name.
        """
        scope = await self.gate.resolve_scope(user, organization_ids, roles=MANAGER_ROLES)
        if scope is not None and not scope:
            return PageResponse[UserResponse]()

        memberships_in_scope = select(Member.user_id)
        if scope is not None:
            memberships_in_scope = memberships_in_scope.where(Member.organization_id.in_(scope))

        statement = select(User).options(
            selectinload(User.memberships).selectinload(Member.organization)
        )
        if scope is not None:
            statement = statement.where(User.id.in_(memberships_in_scope))

        term = (page_request.search or "").strip()
        if term:
            org_name_match = (
                memberships_in_scope.join(Organization, Organization.id == Member.organization_id)
                .where(Organization.name.icontains(term, autoescape=True))
            )
            statement = statement.where(
                or_(
                    User.name.icontains(term, autoescape=True),
                    User.email.icontains(term, autoescape=True),
                    User.id.in_(org_name_match),
                )
            )

        page = await paginate(
            self.db,
            statement,
            page_request,
            search_columns=[],
            sort_spec=self._sort_spec(scope),
            tie_breaker=User.id,
        )
        return PageResponse[UserResponse](
            items=[self._to_response(u, scope) for u in page.items],
            total_count=page.total_count,
            total_pages=page.total_pages,
        )

    async def change_user_role(
        self,
        user: Principal,
        target_user_id: str,
        request: ChangeUserRoleRequest,
    ) -> UserResponse:
        """Change a user's role inside one organization."""
        result = await self.db.execute(
            select(Member).where(
                Member.user_id == target_user_id,
                Member.organization_id == request.organization_id,
            )
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise NotFoundError("Member not found")

        async def apply() -> None:
            member.role = request.role.value
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, request.organization_id, ResourceKind.USER, Action.UPDATE, apply
        )
        logger.info(
            "User %s role in %s set to %s by %s",
            target_user_id,
            request.organization_id,
            request.role.value,
            user.id,
        )
        return self._to_response(await self._get_by_id(target_user_id))

    async def update_user_roles(
        self,
        user: Principal,
        target_user_id: str,
        request: UpdateUserRolesRequest,
    ) -> int:
        """Change a user's role in several organizations.

        Organizations the caller does not manage, and organizations the
        target does not belong to, are skipped rather than failing the batch.

        Returns:
            Number of memberships updated.
        """
        managed: set[str] | None = None
        if not user.is_super_admin:
            managed = set(
                await self.gate.memberships.organization_ids_for(user.id, MANAGER_ROLES)
            )

        updated = 0
        async with transaction(self.db):
            for change in request.changes:
                if managed is not None and change.organization_id not in managed:
                    logger.info(
                        "Role change skipped: user=%s lacks admin access to %s",
                        user.id,
                        change.organization_id,
                    )
                    continue

                result = await self.db.execute(
                    select(Member).where(
                        Member.user_id == target_user_id,
                        Member.organization_id == change.organization_id,
                    )
                )
                member = result.scalar_one_or_none()
                if member is None:
                    logger.info(
                        "Role change skipped: %s is not a member of %s",
                        target_user_id,
                        change.organization_id,
                    )
                    continue

                member.role = change.role.value
                updated += 1

        logger.info(
            "User %s roles updated in %d of %d organizations by %s",
            target_user_id,
            updated,
            len(request.changes),
            user.id,
        )
        return updated

    async def set_ban(
        self,
        user: Principal,
        target_user_id: str,
        request: SetBanRequest,
    ) -> UserResponse:
        """Ban or unban a user. Banning ends all of the user's sessions.

        Raises:
            PermissionDeniedError: Caller is neither super-admin nor admin
                of an organization the target belongs to.
            ValidationFailureError: Caller targets themselves.
        """
        target = await self._get_by_id(target_user_id)
        if target.id == user.id:
            raise ValidationFailureError("You cannot ban yourself")
        await self._ensure_can_moderate(user, target)

        async with transaction(self.db):
            target.banned = request.banned
            if request.banned:
                target.ban_reason = request.reason
                target.ban_expires = request.expires_at
                await self.db.execute(delete(UserSession).where(UserSession.user_id == target.id))
            else:
                target.ban_reason = None
                target.ban_expires = None

        logger.info(
            "User %s %s by %s",
            target.id,
            "banned" if request.banned else "unbanned",
            user.id,
        )
        return self._to_response(await self._get_by_id(target.id))

    async def bulk_set_ban(self, user: Principal, request: BulkBanRequest) -> BulkResult:
        """Apply set_ban to each user; failures do not stop the batch."""
        outcome = BulkResult()
        single = SetBanRequest(banned=request.banned, reason=request.reason)
        for target_id in dict.fromkeys(request.user_ids):
            try:
                await self.set_ban(user, target_id, single)
            except DomainError as e:
                logger.info("Bulk ban skipped %s: %s", target_id, e.message)
                outcome.failed.append(target_id)
            else:
                outcome.succeeded.append(target_id)
        return outcome

    async def set_global_role(
        self,
        user: Principal,
        target_user_id: str,
        role: GlobalRole,
    ) -> UserResponse:
        """Change a user's platform role (super-admin only)."""
        if not user.is_super_admin:
            raise PermissionDeniedError("Only super-admins can change global roles")

        target = await self._get_by_id(target_user_id)
        target.role = role.value
        await self.db.commit()

        logger.info("User %s global role set to %s by %s", target.id, role.value, user.id)
        return self._to_response(await self._get_by_id(target.id))

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_by_id(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .options(selectinload(User.memberships).selectinload(Member.organization))
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        target = result.scalar_one_or_none()
        if target is None:
            raise UserNotFoundError()
        return target

    async def _ensure_can_moderate(self, user: Principal, target: User) -> None:
        if user.is_super_admin:
            return
        if target.role == GlobalRole.SUPER_ADMIN.value:
            raise PermissionDeniedError()

        managed = set(
            await self.gate.memberships.organization_ids_for(user.id, MANAGER_ROLES)
        )
        if not any(m.organization_id in managed for m in target.memberships):
            logger.info("Ban denied: user=%s target=%s", user.id, target.id)
            raise PermissionDeniedError()

    @staticmethod
    def _sort_spec(scope: list[str] | None) -> SortSpec:
        first_org_name = (
            select(func.min(Organization.name))
            .join(Member, Member.organization_id == Organization.id)
            .where(Member.user_id == User.id)
        )
        if scope is not None:
            first_org_name = first_org_name.where(Organization.id.in_(scope))

        return SortSpec(
            columns={
                "name": User.name,
                "email": User.email,
                "role": User.role,
                "organization": first_org_name.correlate(User).scalar_subquery(),
                "createdAt": User.created_at,
            },
        )

    @staticmethod
    def _to_response(user: User, scope: list[str] | None = None) -> UserResponse:
        memberships = [
            UserMembership(
                organization_id=m.organization_id,
                organization_name=m.organization.name,
                role=m.role,
            )
            for m in sorted(user.memberships, key=lambda m: m.organization.name)
            if scope is None or m.organization_id in scope
        ]
        return UserResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            role=GlobalRole(user.role),
            banned=user.banned,
            ban_reason=user.ban_reason,
            ban_expires=user.ban_expires,
            memberships=memberships,
            created_at=user.created_at,
        )
