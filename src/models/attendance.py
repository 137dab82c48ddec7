# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance and grade models."""

import datetime as dt
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.models.user import UserBrief


class AttendanceStatus(str, Enum):
    """Attendance status of a student in a session."""

    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"


class AttendanceSessionCreateRequest(BaseModel):
    """Open (or fetch) the attendance session of a classroom for a day."""

    classroom_id: str
    date: dt.date


class MarkAttendanceRequest(BaseModel):
    """Mark one student."""

    student_id: str
    status: AttendanceStatus
    notes: str | None = Field(default=None, max_length=2000)


class BulkMarkAttendanceRequest(BaseModel):
    """Mark many students in one all-or-nothing write."""

    records: list[MarkAttendanceRequest] = Field(max_length=1000)


class AttendanceRecordResponse(BaseModel):
    """Attendance record."""

    id: str
    session_id: str
    student_id: str
    status: AttendanceStatus
    notes: str | None = None
    date: dt.date | None = None
    classroom_id: str | None = None
    student: UserBrief | None = None


class AttendanceSessionResponse(BaseModel):
    """Attendance session with its records."""

    id: str
    organization_id: str
    classroom_id: str
    date: dt.date
    marked_by_id: str | None = None
    records: list[AttendanceRecordResponse] = Field(default_factory=list)
    created_at: datetime


class AttendanceStats(BaseModel):
    """Attendance totals of a student. percentage is present/total*100."""

    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    percentage: float = 0.0


class GradeCreateRequest(BaseModel):
    """Assign a grade. teacher_id is honoured for super-admins only."""

    student_id: str
    classroom_id: str
    subject: str = Field(min_length=1, max_length=100)
    grade: str = Field(min_length=1, max_length=50)
    grading_period: str = Field(min_length=1, max_length=50)
    comments: str | None = Field(default=None, max_length=2000)
    teacher_id: str | None = None


class GradeUpdateRequest(BaseModel):
    """Partial grade update."""

    grade: str | None = Field(default=None, min_length=1, max_length=50)
    grading_period: str | None = Field(default=None, min_length=1, max_length=50)
    comments: str | None = Field(default=None, max_length=2000)


class GradeResponse(BaseModel):
    """Grade record."""

    id: str
    organization_id: str
    student_id: str
    classroom_id: str
    teacher_id: str
    subject: str
    grade: str
    grading_period: str
    comments: str | None = None
    classroom_name: str | None = None
    student: UserBrief | None = None
    created_at: datetime


class GradeStats(BaseModel):
    """Grade summary of a student.

    Attributes:
        total_grades: Every grade, numeric or not.
        average_grade: Mean of the numeric grades.
        grades_by_subject: Mean of the numeric grades per subject.
    """

    total_grades: int = 0
    average_grade: float = 0.0
    grades_by_subject: dict[str, float] = Field(default_factory=dict)
