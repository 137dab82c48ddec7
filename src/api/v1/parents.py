# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Parent API endpoints.

- GET / - List parents of an organization
- POST / - Create a parent profile
- GET /{parent_id} - Get parent
- PATCH /{parent_id} - Update parent
- PUT /{parent_id}/contact - Update phone and emergency contact
- GET /{parent_id}/children - Students linked to the parent
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import CurrentUser, DbSession
from src.domains.parent.service import ParentService
from src.domains.student.service import StudentService
from src.models.common import ActionResponse
from src.models.school import (
    ParentContactRequest,
    ParentCreateRequest,
    ParentResponse,
    ParentUpdateRequest,
    StudentResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ActionResponse[list[ParentResponse]],
    summary="List parents",
)
async def list_parents(
    organization_id: Annotated[str, Query()],
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[ParentResponse]]:
    service = ParentService(db)
    return ActionResponse.ok(await service.list_parents(current_user, organization_id))


@router.post(
    "",
    response_model=ActionResponse[ParentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create parent",
)
async def create_parent(
    data: ParentCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ParentResponse]:
    service = ParentService(db)
    return ActionResponse.ok(await service.create_parent(current_user, data))


@router.get(
    "/{parent_id}",
    response_model=ActionResponse[ParentResponse],
    summary="Get parent",
)
async def get_parent(
    parent_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ParentResponse]:
    service = ParentService(db)
    return ActionResponse.ok(await service.get_parent(current_user, parent_id))


@router.patch(
    "/{parent_id}",
    response_model=ActionResponse[ParentResponse],
    summary="Update parent",
)
async def update_parent(
    parent_id: str,
    data: ParentUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ParentResponse]:
    service = ParentService(db)
    return ActionResponse.ok(await service.update_parent(current_user, parent_id, data))


@router.put(
    "/{parent_id}/contact",
    response_model=ActionResponse[ParentResponse],
    summary="Update contact details",
)
async def update_contact(
    parent_id: str,
    data: ParentContactRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ParentResponse]:
    service = ParentService(db)
    return ActionResponse.ok(await service.update_contact(current_user, parent_id, data))


@router.get(
    "/{parent_id}/children",
    response_model=ActionResponse[list[StudentResponse]],
    summary="List children",
)
async def list_children(
    parent_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[StudentResponse]]:
    service = StudentService(db)
    return ActionResponse.ok(await service.list_students_by_parent(current_user, parent_id))
