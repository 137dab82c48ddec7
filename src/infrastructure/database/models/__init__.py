# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the CampusBoard database.

Importing this package registers every table on Base.metadata.
"""

from src.infrastructure.database.models.attendance import AttendanceRecord, AttendanceSession
from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.infrastructure.database.models.grade import Grade
from src.infrastructure.database.models.organization import Invitation, Member, Organization
from src.infrastructure.database.models.quiz import Question, Quiz, Response
from src.infrastructure.database.models.school import (
    Classroom,
    ClassroomEnrollment,
    Parent,
    Student,
    StudentParent,
    Teacher,
)
from src.infrastructure.database.models.user import User, UserSession

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "User",
    "UserSession",
    "Organization",
    "Member",
    "Invitation",
    "Teacher",
    "Student",
    "Parent",
    "StudentParent",
    "Classroom",
    "ClassroomEnrollment",
    "AttendanceSession",
    "AttendanceRecord",
    "Grade",
    "Quiz",
    "Question",
    "Response",
]
