# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher API endpoints.

- GET / - List teachers of an organization
- POST / - Create a teacher profile
- GET /{teacher_id} - Get teacher
- PATCH /{teacher_id} - Update teacher
- POST /{teacher_id}/subjects - Add a subject
- DELETE /{teacher_id}/subjects/{subject} - Remove a subject
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import CurrentUser, DbSession
from src.domains.teacher.service import TeacherService
from src.models.common import ActionResponse
from src.models.school import (
    SubjectRequest,
    TeacherCreateRequest,
    TeacherResponse,
    TeacherUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ActionResponse[list[TeacherResponse]],
    summary="List teachers",
)
async def list_teachers(
    organization_id: Annotated[str, Query()],
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[TeacherResponse]]:
    service = TeacherService(db)
    return ActionResponse.ok(await service.list_teachers(current_user, organization_id))


@router.post(
    "",
    response_model=ActionResponse[TeacherResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create teacher",
)
async def create_teacher(
    data: TeacherCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[TeacherResponse]:
    service = TeacherService(db)
    return ActionResponse.ok(await service.create_teacher(current_user, data))


@router.get(
    "/{teacher_id}",
    response_model=ActionResponse[TeacherResponse],
    summary="Get teacher",
)
async def get_teacher(
    teacher_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[TeacherResponse]:
    service = TeacherService(db)
    return ActionResponse.ok(await service.get_teacher(current_user, teacher_id))


@router.patch(
    "/{teacher_id}",
    response_model=ActionResponse[TeacherResponse],
    summary="Update teacher",
)
async def update_teacher(
    teacher_id: str,
    data: TeacherUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[TeacherResponse]:
    service = TeacherService(db)
    return ActionResponse.ok(await service.update_teacher(current_user, teacher_id, data))


@router.post(
    "/{teacher_id}/subjects",
    response_model=ActionResponse[TeacherResponse],
    summary="Add subject",
)
async def assign_subject(
    teacher_id: str,
    data: SubjectRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[TeacherResponse]:
    """Add a subject. Adding one the teacher already has is a no-op."""
    service = TeacherService(db)
    return ActionResponse.ok(
        await service.assign_subject(current_user, teacher_id, data.subject)
    )


@router.delete(
    "/{teacher_id}/subjects/{subject}",
    response_model=ActionResponse[TeacherResponse],
    summary="Remove subject",
)
async def remove_subject(
    teacher_id: str,
    subject: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[TeacherResponse]:
    service = TeacherService(db)
    return ActionResponse.ok(await service.remove_subject(current_user, teacher_id, subject))
