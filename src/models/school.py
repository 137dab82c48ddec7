# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher, student, parent and classroom models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.models.attendance import AttendanceStats, GradeStats
from src.models.user import UserBrief


# =============================================================================
# Teachers
# =============================================================================


class TeacherCreateRequest(BaseModel):
    """Create a teacher profile for an existing user."""

    user_id: str
    organization_id: str
    subjects: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    employee_id: str | None = Field(default=None, max_length=50)
    cv_url: str | None = Field(default=None, max_length=500)


class TeacherUpdateRequest(BaseModel):
    """Partial teacher update."""

    subjects: list[str] | None = None
    certifications: list[str] | None = None
    employee_id: str | None = Field(default=None, max_length=50)
    cv_url: str | None = Field(default=None, max_length=500)


class SubjectRequest(BaseModel):
    """Subject to add to or remove from a teacher."""

    subject: str = Field(min_length=1, max_length=100)


class TeacherResponse(BaseModel):
    """Teacher profile with its user."""

    id: str
    user_id: str
    organization_id: str
    subjects: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    employee_id: str | None = None
    cv_url: str | None = None
    user: UserBrief | None = None
    created_at: datetime


# =============================================================================
# Students
# =============================================================================


class StudentCreateRequest(BaseModel):
    """Create a student profile for an existing user."""

    user_id: str
    organization_id: str
    grade: str = Field(min_length=1, max_length=50)
    authorized_pickups: dict[str, Any] | None = None
    medical_info: dict[str, Any] | None = None
    photo_url: str | None = Field(default=None, max_length=500)


class StudentUpdateRequest(BaseModel):
    """Partial student update."""

    grade: str | None = Field(default=None, min_length=1, max_length=50)
    authorized_pickups: dict[str, Any] | None = None
    medical_info: dict[str, Any] | None = None
    photo_url: str | None = Field(default=None, max_length=500)


class StudentResponse(BaseModel):
    """Student profile with its user."""

    id: str
    user_id: str
    organization_id: str
    grade: str
    authorized_pickups: dict[str, Any] | None = None
    medical_info: dict[str, Any] | None = None
    photo_url: str | None = None
    user: UserBrief | None = None
    created_at: datetime


class ParentLinkRequest(BaseModel):
    """Link a parent to a student."""

    parent_id: str


# =============================================================================
# Parents
# =============================================================================


class ParentCreateRequest(BaseModel):
    """Create a parent profile for an existing user."""

    user_id: str
    organization_id: str
    relationship: str = Field(min_length=1, max_length=50)
    primary_contact: bool = False
    occupation: str | None = Field(default=None, max_length=255)


class ParentUpdateRequest(BaseModel):
    """Partial parent update."""

    relationship: str | None = Field(default=None, min_length=1, max_length=50)
    primary_contact: bool | None = None
    occupation: str | None = Field(default=None, max_length=255)


class ParentContactRequest(BaseModel):
    """Contact details stored on the parent's user."""

    phone: str | None = Field(default=None, max_length=50)
    emergency_contact: dict[str, Any] | None = None


class ParentResponse(BaseModel):
    """Parent profile with its user."""

    id: str
    user_id: str
    organization_id: str
    relationship: str
    primary_contact: bool
    occupation: str | None = None
    phone: str | None = None
    emergency_contact: dict[str, Any] | None = None
    user: UserBrief | None = None
    created_at: datetime


# =============================================================================
# Classrooms
# =============================================================================


class ClassroomCreateRequest(BaseModel):
    """Create a classroom."""

    organization_id: str
    teacher_id: str
    name: str = Field(min_length=1, max_length=255)
    grade: str = Field(min_length=1, max_length=50)
    subject: str = Field(min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=0)
    room: str | None = Field(default=None, max_length=100)
    schedule: dict[str, Any] | None = None


class ClassroomUpdateRequest(BaseModel):
    """Partial classroom update."""

    teacher_id: str | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    grade: str | None = Field(default=None, min_length=1, max_length=50)
    subject: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=0)
    room: str | None = Field(default=None, max_length=100)
    schedule: dict[str, Any] | None = None


class EnrollStudentRequest(BaseModel):
    """Enroll a student in a classroom."""

    student_id: str


class AssignTeacherRequest(BaseModel):
    """Assign the classroom's teacher."""

    teacher_id: str


class RosterEntry(BaseModel):
    """Enrolled student."""

    student_id: str
    grade: str
    user: UserBrief | None = None
    enrolled_at: datetime


class ClassroomResponse(BaseModel):
    """Classroom with teacher and roster."""

    id: str
    organization_id: str
    teacher_id: str
    name: str
    grade: str
    subject: str
    capacity: int | None = None
    room: str | None = None
    schedule: dict[str, Any] | None = None
    teacher: UserBrief | None = None
    students: list[RosterEntry] = Field(default_factory=list)
    student_count: int = 0
    created_at: datetime
    updated_at: datetime


class ClassroomSummary(BaseModel):
    """Classroom reference inside another payload."""

    id: str
    name: str
    grade: str
    subject: str


class StudentOverview(BaseModel):
    """Student profile with attendance, grades and classrooms."""

    student: StudentResponse
    attendance: AttendanceStats
    grades: GradeStats
    classrooms: list[ClassroomSummary] = Field(default_factory=list)
