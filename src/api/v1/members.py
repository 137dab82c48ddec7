# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Member API endpoints.

- PATCH /{member_id}/role - Change a member's organization role
- DELETE /{member_id} - Remove a member from the organization

Listing lives under /organizations/{organization_id}/members.
"""

import logging

from fastapi import APIRouter

from src.api.dependencies import CurrentUser, DbSession
from src.domains.member.service import MemberService
from src.models.common import ActionResponse, SuccessResponse
from src.models.organization import MemberResponse, MemberRoleUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.patch(
    "/{member_id}/role",
    response_model=ActionResponse[MemberResponse],
    summary="Change member role",
)
async def update_member_role(
    member_id: str,
    data: MemberRoleUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[MemberResponse]:
    service = MemberService(db)
    return ActionResponse.ok(
        await service.update_member_role(current_user, member_id, data.role)
    )


@router.delete(
    "/{member_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Remove member",
)
async def remove_member(
    member_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    """Remove a member. Removing yourself is refused."""
    service = MemberService(db)
    await service.remove_member(current_user, member_id)
    return ActionResponse.ok(SuccessResponse())
