# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance API endpoints.

This module provides endpoints for daily attendance:
- POST /sessions - Open (or reuse) the session of a classroom for a date
- GET /sessions/{session_id} - Session with its records
- POST /sessions/{session_id}/records - Mark one student
- POST /sessions/{session_id}/records/bulk - Mark many students at once
- GET /classrooms/{classroom_id} - Sessions of a classroom in a date range
- GET /students/{student_id} - Records of a student in a date range
- GET /students/{student_id}/stats - Present, absent, late and percentage

Example:
    POST /api/v1/attendance/sessions/{session_id}/records/bulk
    {
        "records": [
            {"student_id": "a1...", "status": "present"},
            {"student_id": "b2...", "status": "late", "notes": "bus"}
        ]
    }
"""

import datetime as dt
import logging
from typing import Annotated

from fastapi import APIRouter, Query

from src.api.dependencies import CurrentUser, DbSession
from src.domains.attendance.service import AttendanceService
from src.models.attendance import (
    AttendanceRecordResponse,
    AttendanceSessionCreateRequest,
    AttendanceSessionResponse,
    AttendanceStats,
    BulkMarkAttendanceRequest,
    MarkAttendanceRequest,
)
from src.models.common import ActionResponse, CountResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sessions",
    response_model=ActionResponse[AttendanceSessionResponse],
    summary="Open attendance session",
    description="Returns the existing session when one is already open for the date.",
)
async def create_session(
    data: AttendanceSessionCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[AttendanceSessionResponse]:
    service = AttendanceService(db)
    return ActionResponse.ok(
        await service.create_session(current_user, data.classroom_id, data.date)
    )


@router.get(
    "/sessions/{session_id}",
    response_model=ActionResponse[AttendanceSessionResponse],
    summary="Get attendance session",
)
async def get_session(
    session_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[AttendanceSessionResponse]:
    service = AttendanceService(db)
    return ActionResponse.ok(await service.get_session(current_user, session_id))


@router.post(
    "/sessions/{session_id}/records",
    response_model=ActionResponse[AttendanceRecordResponse],
    summary="Mark attendance",
)
async def mark(
    session_id: str,
    data: MarkAttendanceRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[AttendanceRecordResponse]:
    service = AttendanceService(db)
    return ActionResponse.ok(await service.mark(current_user, session_id, data))


@router.post(
    "/sessions/{session_id}/records/bulk",
    response_model=ActionResponse[CountResponse],
    summary="Bulk mark attendance",
)
async def bulk_mark(
    session_id: str,
    data: BulkMarkAttendanceRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[CountResponse]:
    """Upsert one record per student.

    Re-submitting the same batch leaves exactly one record per student with
    the latest status.
    """
    service = AttendanceService(db)
    count = await service.bulk_mark(current_user, session_id, data)
    return ActionResponse.ok(CountResponse(count=count))


@router.get(
    "/classrooms/{classroom_id}",
    response_model=ActionResponse[list[AttendanceSessionResponse]],
    summary="Classroom attendance",
)
async def list_by_classroom(
    classroom_id: str,
    current_user: CurrentUser,
    db: DbSession,
    start: Annotated[dt.date | None, Query()] = None,
    end: Annotated[dt.date | None, Query()] = None,
) -> ActionResponse[list[AttendanceSessionResponse]]:
    service = AttendanceService(db)
    return ActionResponse.ok(
        await service.list_by_classroom(current_user, classroom_id, start, end)
    )


@router.get(
    "/students/{student_id}",
    response_model=ActionResponse[list[AttendanceRecordResponse]],
    summary="Student attendance",
)
async def list_by_student(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
    start: Annotated[dt.date | None, Query()] = None,
    end: Annotated[dt.date | None, Query()] = None,
) -> ActionResponse[list[AttendanceRecordResponse]]:
    service = AttendanceService(db)
    return ActionResponse.ok(
        await service.list_by_student(current_user, student_id, start, end)
    )


@router.get(
    "/students/{student_id}/stats",
    response_model=ActionResponse[AttendanceStats],
    summary="Student attendance statistics",
)
async def get_stats(
    student_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[AttendanceStats]:
    service = AttendanceService(db)
    return ActionResponse.ok(await service.get_stats(current_user, student_id))
