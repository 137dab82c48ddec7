# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration API endpoints.

This module provides endpoints for user management:
- GET / - Paginated users of the organizations the caller administers
- PATCH /{user_id}/role - Change a user's role inside an organization
- PUT /{user_id}/roles - Change a user's role in several organizations
- POST /{user_id}/ban - Ban or unban a user
- POST /ban - Ban or unban several users
- PUT /{user_id}/global-role - Change the platform role (super-admin)

Example:
    POST /api/v1/users/{user_id}/ban
    {
        "banned": true,
        "reason": "Spam"
    }
"""

import logging

from fastapi import APIRouter
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import CurrentUser, DbSession, OrganizationIds, PageParams
from src.domains.user.service import UserService
from src.models.common import ActionResponse, BulkResult, CountResponse, PageResponse
from src.models.user import (
    BulkBanRequest,
    ChangeUserRoleRequest,
    SetBanRequest,
    SetGlobalRoleRequest,
    UpdateUserRolesRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_service(db: AsyncSession) -> UserService:
    """Get user service instance.

    Args:
        db: Database session.

    Returns:
        Configured UserService instance.
    """
    return UserService(db)


@router.get(
    "",
    response_model=ActionResponse[PageResponse[UserResponse]],
    summary="List users",
    description=(
        "Distinct users of the targeted organizations. Search matches name, email "
        "and organization name. Sortable by name, email, role, organization and createdAt."
    ),
)
async def list_users(
    current_user: CurrentUser,
    db: DbSession,
    page_request: PageParams,
    organization_ids: OrganizationIds,
) -> ActionResponse[PageResponse[UserResponse]]:
    service = _get_user_service(db)
    return ActionResponse.ok(
        await service.list_users(current_user, page_request, organization_ids)
    )


@router.post(
    "/ban",
    response_model=ActionResponse[BulkResult],
    summary="Bulk ban",
)
async def bulk_set_ban(
    data: BulkBanRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[BulkResult]:
    """Ban or unban each listed user; users the caller may not moderate are reported as failed."""
    service = _get_user_service(db)
    return ActionResponse.ok(await service.bulk_set_ban(current_user, data))


@router.patch(
    "/{user_id}/role",
    response_model=ActionResponse[UserResponse],
    summary="Change organization role",
)
async def change_user_role(
    user_id: str,
    data: ChangeUserRoleRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[UserResponse]:
    service = _get_user_service(db)
    return ActionResponse.ok(await service.change_user_role(current_user, user_id, data))


@router.put(
    "/{user_id}/roles",
    response_model=ActionResponse[CountResponse],
    summary="Change roles in several organizations",
)
async def update_user_roles(
    user_id: str,
    data: UpdateUserRolesRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[CountResponse]:
    """Apply each role change; organizations the caller does not manage are skipped."""
    service = _get_user_service(db)
    count = await service.update_user_roles(current_user, user_id, data)
    return ActionResponse.ok(CountResponse(count=count))


@router.post(
    "/{user_id}/ban",
    response_model=ActionResponse[UserResponse],
    summary="Ban or unban user",
)
async def set_ban(
    user_id: str,
    data: SetBanRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[UserResponse]:
    """Ban or unban a user. Banning ends the user's sessions."""
    service = _get_user_service(db)
    return ActionResponse.ok(await service.set_ban(current_user, user_id, data))


@router.put(
    "/{user_id}/global-role",
    response_model=ActionResponse[UserResponse],
    summary="Change global role",
)
async def set_global_role(
    user_id: str,
    data: SetGlobalRoleRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[UserResponse]:
    service = _get_user_service(db)
    return ActionResponse.ok(await service.set_global_role(current_user, user_id, data.role))
