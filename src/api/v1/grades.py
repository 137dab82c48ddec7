# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade API endpoints.

- POST / - Assign a grade
- PATCH /{grade_id} - Update a grade
- DELETE /{grade_id} - Delete a grade
- GET /students/{student_id} - Grades of a student
- GET /students/{student_id}/stats - Averages per subject
- GET /classrooms/{classroom_id} - Grades of a classroom
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.dependencies import CurrentUser, DbSession
from src.domains.grade.service import GradeService
from src.models.attendance import (
    GradeCreateRequest,
    GradeResponse,
    GradeStats,
    GradeUpdateRequest,
)
from src.models.common import ActionResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ActionResponse[GradeResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Assign grade",
)
async def assign_grade(
    data: GradeCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[GradeResponse]:
    """Assign a grade. The caller must be a teacher in the classroom's organization."""
    service = GradeService(db)
    return ActionResponse.ok(await service.assign_grade(current_user, data))


@router.patch(
    "/{grade_id}",
    response_model=ActionResponse[GradeResponse],
    summary="Update grade",
)
async def update_grade(
    grade_id: str,
    data: GradeUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[GradeResponse]:
    service = GradeService(db)
    return ActionResponse.ok(await service.update_grade(current_user, grade_id, data))


@router.delete(
    "/{grade_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Delete grade",
)
async def delete_grade(
    grade_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = GradeService(db)
    await service.delete_grade(current_user, grade_id)
    return ActionResponse.ok(SuccessResponse())


@router.get(
    "/students/{student_id}",
    response_model=ActionResponse[list[GradeResponse]],
    summary="Student grades",
)
async def list_by_student(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
    grading_period: Annotated[str | None, Query()] = None,
) -> ActionResponse[list[GradeResponse]]:
    service = GradeService(db)
    return ActionResponse.ok(
        await service.list_by_student(current_user, student_id, grading_period)
    )


@router.get(
    "/students/{student_id}/stats",
    response_model=ActionResponse[GradeStats],
    summary="Student grade statistics",
)
async def get_stats(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[GradeStats]:
    """Average of numeric grades, overall and per subject."""
    service = GradeService(db)
    return ActionResponse.ok(await service.get_stats(current_user, student_id))


@router.get(
    "/classrooms/{classroom_id}",
    response_model=ActionResponse[list[GradeResponse]],
    summary="Classroom grades",
)
async def list_by_classroom(
    classroom_id: str,
    current_user: CurrentUser,
    db: DbSession,
    grading_period: Annotated[str | None, Query()] = None,
) -> ActionResponse[list[GradeResponse]]:
    service = GradeService(db)
    return ActionResponse.ok(
        await service.list_by_classroom(current_user, classroom_id, grading_period)
    )
