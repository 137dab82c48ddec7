# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service.

This module provides the StudentService that handles:
- Paginated, searchable student listing per organization
- Student profile CRUD (one profile per user and organization)
- Parent links and the per-student overview

Example:
    >>> service = StudentService(db_session)
    >>> page = await service.list_students(user, org_id, PageRequest(search="ali"))
    >>> overview = await service.get_student_overview(user, page.items[0].id)
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.attendance.service import AttendanceService
from src.domains.errors import ConflictError, NotFoundError, ValidationFailureError
from src.domains.grade.service import GradeService
from src.domains.query import PageRequest, SortSpec, paginate
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    AttendanceRecord,
    ClassroomEnrollment,
    Grade,
    Organization,
    Parent,
    Student,
    StudentParent,
    User,
)
from src.models.common import PageResponse
from src.models.school import (
    ClassroomSummary,
    StudentCreateRequest,
    StudentOverview,
    StudentResponse,
    StudentUpdateRequest,
)
from src.models.user import UserBrief

logger = logging.getLogger(__name__)

STUDENT_SORT = SortSpec(
    columns={
        "name": User.name,
        "email": User.email,
        "grade": Student.grade,
        "createdAt": Student.created_at,
    },
)


class StudentNotFoundError(NotFoundError):
    """Raised when a student is not found."""

    def __init__(self) -> None:
        super().__init__("Student not found")


class StudentExistsError(ConflictError):
    """Raised when the user already has a student profile in the organization."""

    def __init__(self) -> None:
        super().__init__("Student profile already exists for this user")


class StudentService:
    """Service for managing students.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_students(
        self,
        user: Principal,
        organization_id: str,
        page_request: PageRequest,
        grade: str | None = None,
    ) -> PageResponse[StudentResponse]:
        """List students, searchable by user name and email."""
        if await self.db.get(Organization, organization_id) is None:
            raise NotFoundError("Organization not found")
        await self.gate.ensure(user, organization_id, ResourceKind.STUDENT, Action.READ)

        statement = (
            select(Student)
            .join(User, User.id == Student.user_id)
            .options(selectinload(Student.user))
            .where(Student.organization_id == organization_id)
        )
        if grade:
            statement = statement.where(Student.grade == grade)

        page = await paginate(
            self.db,
            statement,
            page_request,
            search_columns=[User.name, User.email],
            sort_spec=STUDENT_SORT,
            tie_breaker=Student.id,
        )
        return PageResponse[StudentResponse](
            items=[self._to_response(s) for s in page.items],
            total_count=page.total_count,
            total_pages=page.total_pages,
        )

    async def get_student(self, user: Principal, student_id: str) -> StudentResponse:
        """Get a student profile."""
        student = await self._get_by_id(student_id)
        await self.gate.ensure(user, student.organization_id, ResourceKind.STUDENT, Action.READ)
        return self._to_response(student)

    async def create_student(
        self,
        user: Principal,
        request: StudentCreateRequest,
    ) -> StudentResponse:
        """Create a student profile for an existing user."""
        if await self.db.get(Organization, request.organization_id) is None:
            raise NotFoundError("Organization not found")

        async def apply() -> Student:
            if await self.db.get(User, request.user_id) is None:
                raise NotFoundError("User not found")
            existing = await self.db.execute(
                select(Student.id).where(
                    Student.user_id == request.user_id,
                    Student.organization_id == request.organization_id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise StudentExistsError()

            student = Student(
                user_id=request.user_id,
                organization_id=request.organization_id,
                grade=request.grade,
                authorized_pickups=request.authorized_pickups,
                medical_info=request.medical_info,
                photo_url=request.photo_url,
            )
            self.db.add(student)
            await self.db.commit()
            return student

        student = await self.gate.with_scoped_permission(
            user, request.organization_id, ResourceKind.STUDENT, Action.CREATE, apply
        )
        logger.info("Student created: %s in %s by %s", student.id, student.organization_id, user.id)
        return self._to_response(await self._get_by_id(student.id))

    async def update_student(
        self,
        user: Principal,
        student_id: str,
        request: StudentUpdateRequest,
    ) -> StudentResponse:
        """Partially update a student profile."""
        student = await self._get_by_id(student_id)

        async def apply() -> None:
            for field, value in request.model_dump(exclude_unset=True).items():
                if field == "grade" and value is None:
                    continue
                setattr(student, field, value)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, student.organization_id, ResourceKind.STUDENT, Action.UPDATE, apply
        )
        logger.info("Student updated: %s by %s", student_id, user.id)
        return self._to_response(await self._get_by_id(student_id))

    async def delete_student(self, user: Principal, student_id: str) -> None:
        """Delete a student profile with its links and enrollments."""
        student = await self._get_by_id(student_id)

        async def apply() -> None:
            async with transaction(self.db):
                await self.db.execute(delete(Grade).where(Grade.student_id == student.id))
                await self.db.execute(
                    delete(AttendanceRecord).where(AttendanceRecord.student_id == student.id)
                )
                await self.db.delete(student)

        await self.gate.with_scoped_permission(
            user, student.organization_id, ResourceKind.STUDENT, Action.DELETE, apply
        )
        logger.info("Student deleted: %s by %s", student_id, user.id)

    async def assign_parent(self, user: Principal, student_id: str, parent_id: str) -> None:
        """Link a parent of the same organization to a student."""
        student = await self._get_by_id(student_id)

        async def apply() -> None:
            parent = await self.db.get(Parent, parent_id)
            if parent is None:
                raise NotFoundError("Parent not found")
            if parent.organization_id != student.organization_id:
                raise ValidationFailureError("Parent does not belong to this organization")
            if any(link.parent_id == parent_id for link in student.parents):
                raise ConflictError("Parent is already linked to this student")

            self.db.add(StudentParent(student_id=student.id, parent_id=parent_id))
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, student.organization_id, ResourceKind.STUDENT, Action.UPDATE, apply
        )
        logger.info("Parent %s linked to student %s by %s", parent_id, student_id, user.id)

    async def remove_parent(self, user: Principal, student_id: str, parent_id: str) -> None:
        """Unlink a parent from a student."""
        student = await self._get_by_id(student_id)

        async def apply() -> None:
            link = next((p for p in student.parents if p.parent_id == parent_id), None)
            if link is None:
                raise NotFoundError("Parent link not found")
            await self.db.delete(link)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, student.organization_id, ResourceKind.STUDENT, Action.UPDATE, apply
        )
        logger.info("Parent %s unlinked from student %s by %s", parent_id, student_id, user.id)

    async def list_students_by_parent(
        self,
        user: Principal,
        parent_id: str,
    ) -> list[StudentResponse]:
        """List the students linked to a parent."""
        parent = await self.db.get(Parent, parent_id)
        if parent is None:
            raise NotFoundError("Parent not found")
        await self.gate.ensure(user, parent.organization_id, ResourceKind.STUDENT, Action.READ)

        result = await self.db.execute(
            select(Student)
            .join(StudentParent, StudentParent.student_id == Student.id)
            .options(selectinload(Student.user))
            .where(StudentParent.parent_id == parent_id)
            .order_by(Student.created_at.desc(), Student.id)
        )
        return [self._to_response(s) for s in result.scalars().all()]

    async def get_student_overview(self, user: Principal, student_id: str) -> StudentOverview:
        """Profile plus attendance stats, grade stats and classrooms."""
        result = await self.db.execute(
            select(Student)
            .options(
                selectinload(Student.user),
                selectinload(Student.enrollments).selectinload(ClassroomEnrollment.classroom),
            )
            .where(Student.id == student_id)
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise StudentNotFoundError()
        await self.gate.ensure(user, student.organization_id, ResourceKind.STUDENT, Action.READ)

        return StudentOverview(
            student=self._to_response(student),
            attendance=await AttendanceService(self.db).stats_for_student(student.id),
            grades=await GradeService(self.db).stats_for_student(student.id),
            classrooms=[
                ClassroomSummary(
                    id=e.classroom.id,
                    name=e.classroom.name,
                    grade=e.classroom.grade,
                    subject=e.classroom.subject,
                )
                for e in student.enrollments
            ],
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_by_id(self, student_id: str) -> Student:
        result = await self.db.execute(
            select(Student)
            .options(selectinload(Student.user), selectinload(Student.parents))
            .where(Student.id == student_id)
            .execution_options(populate_existing=True)
        )
        student = result.scalar_one_or_none()
        if student is None:
            raise StudentNotFoundError()
        return student

    @staticmethod
    def _to_response(student: Student) -> StudentResponse:
        return StudentResponse(
            id=student.id,
            user_id=student.user_id,
            organization_id=student.organization_id,
            grade=student.grade,
            authorized_pickups=student.authorized_pickups,
            medical_info=student.medical_info,
            photo_url=student.photo_url,
            user=UserBrief.model_validate(student.user) if student.user else None,
            created_at=student.created_at,
        )
