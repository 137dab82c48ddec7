# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom API endpoints.

This module provides endpoints for classroom management:
- GET / - List classrooms of an organization
- POST / - Create a classroom
- GET /{classroom_id} - Get classroom details with roster
- PATCH /{classroom_id} - Update classroom
- DELETE /{classroom_id} - Delete classroom with its attendance and grades
- GET /{classroom_id}/students - Roster
- POST /{classroom_id}/students - Enroll a student
- DELETE /{classroom_id}/students/{student_id} - Remove a student
- PUT /{classroom_id}/teacher - Assign the teacher
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import CurrentUser, DbSession
from src.domains.classroom.service import ClassroomService
from src.models.common import ActionResponse, SuccessResponse
from src.models.school import (
    AssignTeacherRequest,
    ClassroomCreateRequest,
    ClassroomResponse,
    ClassroomUpdateRequest,
    EnrollStudentRequest,
    RosterEntry,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_classroom_service(db: AsyncSession) -> ClassroomService:
    return ClassroomService(db)


@router.get(
    "",
    response_model=ActionResponse[list[ClassroomResponse]],
    summary="List classrooms",
)
async def list_classrooms(
    organization_id: Annotated[str, Query()],
    current_user: CurrentUser,
    db: DbSession,
    grade: Annotated[str | None, Query()] = None,
    subject: Annotated[str | None, Query()] = None,
) -> ActionResponse[list[ClassroomResponse]]:
    service = _get_classroom_service(db)
    return ActionResponse.ok(
        await service.list_classrooms(current_user, organization_id, grade, subject)
    )


@router.post(
    "",
    response_model=ActionResponse[ClassroomResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create classroom",
)
async def create_classroom(
    data: ClassroomCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ClassroomResponse]:
    """Create a classroom. The teacher must belong to the same organization."""
    service = _get_classroom_service(db)
    return ActionResponse.ok(await service.create_classroom(current_user, data))


@router.get(
    "/{classroom_id}",
    response_model=ActionResponse[ClassroomResponse],
    summary="Get classroom",
)
async def get_classroom(
    classroom_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ClassroomResponse]:
    service = _get_classroom_service(db)
    return ActionResponse.ok(await service.get_classroom(current_user, classroom_id))


@router.patch(
    "/{classroom_id}",
    response_model=ActionResponse[ClassroomResponse],
    summary="Update classroom",
)
async def update_classroom(
    classroom_id: str,
    data: ClassroomUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ClassroomResponse]:
    """Update a classroom.

    Permission is evaluated against the organization that owns the
    classroom, never one supplied by the client.
    """
    service = _get_classroom_service(db)
    return ActionResponse.ok(await service.update_classroom(current_user, classroom_id, data))


@router.delete(
    "/{classroom_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Delete classroom",
)
async def delete_classroom(
    classroom_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_classroom_service(db)
    await service.delete_classroom(current_user, classroom_id)
    return ActionResponse.ok(SuccessResponse())


@router.get(
    "/{classroom_id}/students",
    response_model=ActionResponse[list[RosterEntry]],
    summary="Classroom roster",
)
async def get_roster(
    classroom_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[RosterEntry]]:
    service = _get_classroom_service(db)
    return ActionResponse.ok(await service.get_roster(current_user, classroom_id))


@router.post(
    "/{classroom_id}/students",
    response_model=ActionResponse[ClassroomResponse],
    summary="Enroll student",
)
async def enroll_student(
    classroom_id: str,
    data: EnrollStudentRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ClassroomResponse]:
    service = _get_classroom_service(db)
    return ActionResponse.ok(
        await service.enroll_student(current_user, classroom_id, data.student_id)
    )


@router.delete(
    "/{classroom_id}/students/{student_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Remove student",
)
async def remove_student(
    classroom_id: str,
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_classroom_service(db)
    await service.remove_student(current_user, classroom_id, student_id)
    return ActionResponse.ok(SuccessResponse())


@router.put(
    "/{classroom_id}/teacher",
    response_model=ActionResponse[ClassroomResponse],
    summary="Assign teacher",
)
async def assign_teacher(
    classroom_id: str,
    data: AssignTeacherRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ClassroomResponse]:
    service = _get_classroom_service(db)
    return ActionResponse.ok(
        await service.assign_teacher(current_user, classroom_id, data.teacher_id)
    )
