# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Sign-up, sign-in, sign-out and session.
    organizations: Organizations, their stats, members and pending invitations.
    members: Member role changes and removal.
    invitations: Invite, accept and revoke.
    classrooms: Classrooms, rosters and teacher assignment.
    students: Student profiles and parent links.
    teachers: Teacher profiles and subjects.
    parents: Parent profiles, contact details and children.
    attendance: Attendance sessions, marking and stats.
    grades: Grades and grade stats.
    quizzes: Quizzes, questions, submissions and response export.
    dashboard: Dashboard counters.
    users: Cross-organization user administration.
"""

from fastapi import APIRouter

from src.api.v1 import (
    attendance,
    auth,
    classrooms,
    dashboard,
    grades,
    invitations,
    members,
    organizations,
    parents,
    quizzes,
    students,
    teachers,
    users,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(organizations.router, prefix="/organizations", tags=["Organizations"])
router.include_router(members.router, prefix="/members", tags=["Members"])
router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])
router.include_router(classrooms.router, prefix="/classrooms", tags=["Classrooms"])
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
router.include_router(parents.router, prefix="/parents", tags=["Parents"])
router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
router.include_router(grades.router, prefix="/grades", tags=["Grades"])
router.include_router(quizzes.router, prefix="/quizzes", tags=["Quizzes"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
router.include_router(users.router, prefix="/users", tags=["Users"])

__all__ = ["router"]
