# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invitation API endpoints.

This module provides endpoints for the invitation lifecycle:
- POST / - Invite a batch of emails into an organization
- GET /mine - Invitations addressed to the caller
- POST /{invitation_id}/accept - Accept an invitation
- DELETE /{invitation_id} - Revoke an invitation

Example:
    POST /api/v1/invitations
    {
        "organization_id": "5f0c...",
        "emails": ["teacher@school.com", "not-an-email"],
        "role": "member"
    }
    -> {"success": true, "data": {"invited": 1, "existing": 0, "invalid": 1}}
"""

import logging

from fastapi import APIRouter

from src.api.dependencies import CurrentUser, DbSession
from src.domains.invitation.service import InvitationService
from src.models.common import ActionResponse, SuccessResponse
from src.models.organization import (
    InvitationResponse,
    InviteRequest,
    InviteResult,
    MemberResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ActionResponse[InviteResult],
    summary="Invite users",
)
async def invite_users(
    data: InviteRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[InviteResult]:
    """Invite emails into an organization.

    Invalid addresses are counted, not rejected. Addresses that are already
    members or already invited are counted as existing.
    """
    service = InvitationService(db)
    return ActionResponse.ok(await service.invite_users(current_user, data))


@router.get(
    "/mine",
    response_model=ActionResponse[list[InvitationResponse]],
    summary="My invitations",
)
async def list_my_invitations(
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[InvitationResponse]]:
    service = InvitationService(db)
    return ActionResponse.ok(await service.list_my_invitations(current_user))


@router.post(
    "/{invitation_id}/accept",
    response_model=ActionResponse[MemberResponse],
    summary="Accept invitation",
)
async def accept_invitation(
    invitation_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[MemberResponse]:
    service = InvitationService(db)
    return ActionResponse.ok(await service.accept_invitation(current_user, invitation_id))


@router.delete(
    "/{invitation_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Revoke invitation",
)
async def revoke_invitation(
    invitation_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = InvitationService(db)
    await service.revoke_invitation(current_user, invitation_id)
    return ActionResponse.ok(SuccessResponse())
