# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student API endpoints.

This module provides endpoints for student profiles:
- GET / - Paginated list of an organization's students
- POST / - Create a student profile
- GET /{student_id} - Get student
- PATCH /{student_id} - Update student
- DELETE /{student_id} - Delete student with grades and attendance
- GET /{student_id}/overview - Profile with attendance and grade stats
- POST /{student_id}/parents - Link a parent
- DELETE /{student_id}/parents/{parent_id} - Unlink a parent
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import CurrentUser, DbSession, PageParams
from src.domains.student.service import StudentService
from src.models.common import ActionResponse, PageResponse, SuccessResponse
from src.models.school import (
    ParentLinkRequest,
    StudentCreateRequest,
    StudentOverview,
    StudentResponse,
    StudentUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_student_service(db: AsyncSession) -> StudentService:
    return StudentService(db)


@router.get(
    "",
    response_model=ActionResponse[PageResponse[StudentResponse]],
    summary="List students",
    description="Search matches name and email. Sortable by name, email, grade and createdAt.",
)
async def list_students(
    organization_id: Annotated[str, Query()],
    current_user: CurrentUser,
    db: DbSession,
    page_request: PageParams,
    grade: Annotated[str | None, Query()] = None,
) -> ActionResponse[PageResponse[StudentResponse]]:
    service = _get_student_service(db)
    return ActionResponse.ok(
        await service.list_students(current_user, organization_id, page_request, grade)
    )


@router.post(
    "",
    response_model=ActionResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create student",
)
async def create_student(
    data: StudentCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[StudentResponse]:
    service = _get_student_service(db)
    return ActionResponse.ok(await service.create_student(current_user, data))


@router.get(
    "/{student_id}",
    response_model=ActionResponse[StudentResponse],
    summary="Get student",
)
async def get_student(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[StudentResponse]:
    service = _get_student_service(db)
    return ActionResponse.ok(await service.get_student(current_user, student_id))


@router.patch(
    "/{student_id}",
    response_model=ActionResponse[StudentResponse],
    summary="Update student",
)
async def update_student(
    student_id: str,
    data: StudentUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[StudentResponse]:
    service = _get_student_service(db)
    return ActionResponse.ok(await service.update_student(current_user, student_id, data))


@router.delete(
    "/{student_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Delete student",
)
async def delete_student(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_student_service(db)
    await service.delete_student(current_user, student_id)
    return ActionResponse.ok(SuccessResponse())


@router.get(
    "/{student_id}/overview",
    response_model=ActionResponse[StudentOverview],
    summary="Student overview",
)
async def get_student_overview(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[StudentOverview]:
    """Profile, attendance stats, grade stats and classrooms in one call."""
    service = _get_student_service(db)
    return ActionResponse.ok(await service.get_student_overview(current_user, student_id))


@router.post(
    "/{student_id}/parents",
    response_model=ActionResponse[SuccessResponse],
    summary="Link parent",
)
async def assign_parent(
    student_id: str,
    data: ParentLinkRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_student_service(db)
    await service.assign_parent(current_user, student_id, data.parent_id)
    return ActionResponse.ok(SuccessResponse())


@router.delete(
    "/{student_id}/parents/{parent_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Unlink parent",
)
async def remove_parent(
    student_id: str,
    parent_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_student_service(db)
    await service.remove_parent(current_user, student_id, parent_id)
    return ActionResponse.ok(SuccessResponse())
