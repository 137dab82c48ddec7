# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scoped-permission gate.

Every organization-scoped operation runs through the gate. Callers load the
target record first and pass the record's own organization_id, so a forged
id is always evaluated against the organization that really owns the row.

Example:
    gate = PermissionGate(db)
    classroom = await self._get_by_id(classroom_id)
    await gate.with_scoped_permission(
        user,
        classroom.organization_id,
        ResourceKind.CLASSROOM,
        Action.UPDATE,
        lambda: self._apply_update(classroom, request),
    )
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access.membership import MembershipAccessor
from src.domains.access.policy import is_action_allowed, is_manager
from src.domains.access.roles import Action, OrgRole, Principal, ResourceKind
from src.domains.errors import PermissionDeniedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PermissionGate:
    """Evaluates (caller, organization, action) and runs gated operations.

    Attributes:
        memberships: Membership accessor bound to the same session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.memberships = MembershipAccessor(db)

    async def ensure(
        self,
        user: Principal,
        organization_id: str,
        resource: ResourceKind,
        action: Action,
    ) -> OrgRole | None:
        """Check permission without running an operation.

        Returns:
            The caller's role in the organization (None for a super-admin
            without membership).

        Raises:
            PermissionDeniedError: If the action is not allowed.
        """
        org_role = None
        if not user.is_super_admin:
            org_role = await self.memberships.get_org_role(user.id, organization_id)

        if not is_action_allowed(user.role, org_role, action):
            logger.info(
                "Access denied: user=%s org=%s resource=%s action=%s",
                user.id,
                organization_id,
                resource.value,
                action.value,
            )
            raise PermissionDeniedError()

        return org_role

    async def allows(self, user: Principal, organization_id: str, action: Action) -> bool:
        """Non-raising form of ensure(), for filtering batches."""
        if user.is_super_admin:
            return True
        org_role = await self.memberships.get_org_role(user.id, organization_id)
        return is_action_allowed(user.role, org_role, action)

    async def ensure_manager(
        self,
        user: Principal,
        organization_id: str,
        resource: ResourceKind,
        message: str = "Access denied",
    ) -> OrgRole | None:
        """Require admin/owner of the organization, or super-admin.

        Raises:
            PermissionDeniedError: With the given message otherwise.
        """
        if user.is_super_admin:
            return None

        org_role = await self.memberships.get_org_role(user.id, organization_id)
        if not is_manager(user.role, org_role):
            logger.info(
                "Manager access denied: user=%s org=%s resource=%s",
                user.id,
                organization_id,
                resource.value,
            )
            raise PermissionDeniedError(message)
        return org_role

    async def with_scoped_permission(
        self,
        user: Principal,
        organization_id: str,
        resource: ResourceKind,
        action: Action,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """Run operation() only if the caller may perform action.

        Raises:
            PermissionDeniedError: If the action is not allowed. The
                operation is not awaited in that case.
        """
        await self.ensure(user, organization_id, resource, action)
        return await operation()

    async def resolve_scope(
        self,
        user: Principal,
        requested_ids: Iterable[str] | None = None,
        roles: Iterable[OrgRole] | None = None,
    ) -> list[str] | None:
        """Resolve which organizations a listing may cover.

        Args:
            user: Caller.
            requested_ids: Organizations the client asked for.
            roles: Only count memberships with these roles.

        Returns:
            The allowed organization IDs, or None when a super-admin asked
            for no particular organization (unrestricted).
        """
        requested = list(dict.fromkeys(requested_ids)) if requested_ids else []

        if user.is_super_admin:
            return requested or None

        allowed = await self.memberships.organization_ids_for(user.id, roles)
        if not requested:
            return allowed

        allowed_set = set(allowed)
        return [org_id for org_id in requested if org_id in allowed_set]
