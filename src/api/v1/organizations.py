# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organization API endpoints.

This module provides endpoints for organization management:
- GET / - List organizations the caller manages
- POST / - Create an organization (super-admin)
- GET /{organization_id} - Get organization details
- PATCH /{organization_id} - Update organization
- GET /{organization_id}/stats - Student, teacher, parent and classroom counts
- GET /{organization_id}/members - List members
- GET /{organization_id}/invitations - List pending invitations
"""

import logging

from fastapi import APIRouter, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import CurrentUser, DbSession
from src.domains.invitation.service import InvitationService
from src.domains.member.service import MemberService
from src.domains.organization.service import OrganizationService
from src.models.common import ActionResponse
from src.models.organization import (
    InvitationResponse,
    MemberResponse,
    OrganizationCreateRequest,
    OrganizationResponse,
    OrganizationStats,
    OrganizationUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_organization_service(db: AsyncSession) -> OrganizationService:
    return OrganizationService(db)


@router.get(
    "",
    response_model=ActionResponse[list[OrganizationResponse]],
    summary="List organizations",
    description="Super-admins see every organization; others see those they administer.",
)
async def list_organizations(
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[OrganizationResponse]]:
    service = _get_organization_service(db)
    return ActionResponse.ok(await service.list_organizations(current_user))


@router.post(
    "",
    response_model=ActionResponse[OrganizationResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
)
async def create_organization(
    data: OrganizationCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[OrganizationResponse]:
    """Create an organization. The slug is derived from the name when omitted."""
    service = _get_organization_service(db)
    return ActionResponse.ok(await service.create_organization(current_user, data))


@router.get(
    "/{organization_id}",
    response_model=ActionResponse[OrganizationResponse],
    summary="Get organization",
)
async def get_organization(
    organization_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[OrganizationResponse]:
    service = _get_organization_service(db)
    return ActionResponse.ok(await service.get_organization(current_user, organization_id))


@router.patch(
    "/{organization_id}",
    response_model=ActionResponse[OrganizationResponse],
    summary="Update organization",
)
async def update_organization(
    organization_id: str,
    data: OrganizationUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[OrganizationResponse]:
    service = _get_organization_service(db)
    return ActionResponse.ok(
        await service.update_organization(current_user, organization_id, data)
    )


@router.get(
    "/{organization_id}/stats",
    response_model=ActionResponse[OrganizationStats],
    summary="Organization statistics",
)
async def get_organization_stats(
    organization_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[OrganizationStats]:
    service = _get_organization_service(db)
    return ActionResponse.ok(
        await service.get_organization_stats(current_user, organization_id)
    )


@router.get(
    "/{organization_id}/members",
    response_model=ActionResponse[list[MemberResponse]],
    summary="List members",
)
async def list_members(
    organization_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[MemberResponse]]:
    """List the organization's members, newest first."""
    service = MemberService(db)
    return ActionResponse.ok(await service.list_members(current_user, organization_id))


@router.get(
    "/{organization_id}/invitations",
    response_model=ActionResponse[list[InvitationResponse]],
    summary="List pending invitations",
)
async def list_pending_invitations(
    organization_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[InvitationResponse]]:
    service = InvitationService(db)
    return ActionResponse.ok(
        await service.list_pending_invitations(current_user, organization_id)
    )
