# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Classroom service.

This module provides the ClassroomService that handles:
- Classroom CRUD scoped to the owning organization
- Enrollment with same-organization and capacity checks
- Roster reads and teacher assignment

Example:
    >>> service = ClassroomService(db_session)
    >>> classroom = await service.create_classroom(user, request)
    >>> await service.enroll_student(user, classroom.id, student_id)
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import ConflictError, NotFoundError, ValidationFailureError
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    AttendanceRecord,
    AttendanceSession,
    Classroom,
    ClassroomEnrollment,
    Grade,
    Organization,
    Student,
    Teacher,
)
from src.models.school import (
    ClassroomCreateRequest,
    ClassroomResponse,
    ClassroomUpdateRequest,
    RosterEntry,
)
from src.models.user import UserBrief

logger = logging.getLogger(__name__)


class ClassroomNotFoundError(NotFoundError):
    """Raised when a classroom is not found."""

    def __init__(self) -> None:
        super().__init__("Classroom not found")


class AlreadyEnrolledError(ConflictError):
    """Raised when the student is already in the classroom."""

    def __init__(self) -> None:
        super().__init__("Student is already enrolled in this classroom")


class ClassroomFullError(ValidationFailureError):
    """Raised when the classroom has reached its capacity."""

    def __init__(self) -> None:
        super().__init__("Classroom is at full capacity")


class ClassroomService:
    """Service for managing classrooms and enrollments.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_classrooms(
        self,
        user: Principal,
        organization_id: str,
        grade: str | None = None,
        subject: str | None = None,
    ) -> list[ClassroomResponse]:
        """List classrooms of an organization, newest first."""
        if await self.db.get(Organization, organization_id) is None:
            raise NotFoundError("Organization not found")
        await self.gate.ensure(user, organization_id, ResourceKind.CLASSROOM, Action.READ)

        query = (
            self._base_query()
            .where(Classroom.organization_id == organization_id)
            .order_by(Classroom.created_at.desc(), Classroom.id)
        )
        if grade:
            query = query.where(Classroom.grade == grade)
        if subject:
            query = query.where(Classroom.subject == subject)

        result = await self.db.execute(query)
        return [self._to_response(c) for c in result.scalars().all()]

    async def get_classroom(self, user: Principal, classroom_id: str) -> ClassroomResponse:
        """Get a classroom with its teacher and roster."""
        classroom = await self._get_by_id(classroom_id)
        await self.gate.ensure(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.READ
        )
        return self._to_response(classroom)

    async def create_classroom(
        self,
        user: Principal,
        request: ClassroomCreateRequest,
    ) -> ClassroomResponse:
        """Create a classroom. The teacher must belong to the same organization."""
        if await self.db.get(Organization, request.organization_id) is None:
            raise NotFoundError("Organization not found")

        async def apply() -> Classroom:
            await self._get_teacher_in_org(request.teacher_id, request.organization_id)
            classroom = Classroom(
                organization_id=request.organization_id,
                teacher_id=request.teacher_id,
                name=request.name.strip(),
                grade=request.grade,
                subject=request.subject,
                capacity=request.capacity,
                room=request.room,
                schedule=request.schedule,
            )
            self.db.add(classroom)
            await self.db.commit()
            return classroom

        classroom = await self.gate.with_scoped_permission(
            user, request.organization_id, ResourceKind.CLASSROOM, Action.CREATE, apply
        )
        logger.info("Classroom created: %s in %s by %s", classroom.id, classroom.organization_id, user.id)
        return self._to_response(await self._get_by_id(classroom.id))

    async def update_classroom(
        self,
        user: Principal,
        classroom_id: str,
        request: ClassroomUpdateRequest,
    ) -> ClassroomResponse:
        """Partially update a classroom in its owning organization."""
        classroom = await self._get_by_id(classroom_id)

        async def apply() -> None:
            updates = request.model_dump(exclude_unset=True)
            if updates.get("teacher_id"):
                await self._get_teacher_in_org(updates["teacher_id"], classroom.organization_id)
            for field, value in updates.items():
                if field in ("teacher_id", "name", "grade", "subject") and value is None:
                    continue
                setattr(classroom, field, value)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.UPDATE, apply
        )
        logger.info("Classroom updated: %s by %s", classroom_id, user.id)
        return self._to_response(await self._get_by_id(classroom_id))

    async def delete_classroom(self, user: Principal, classroom_id: str) -> None:
        """Delete a classroom with its enrollments, attendance and grades."""
        classroom = await self._get_by_id(classroom_id)

        async def apply() -> None:
            async with transaction(self.db):
                session_ids = select(AttendanceSession.id).where(
                    AttendanceSession.classroom_id == classroom.id
                )
                await self.db.execute(
                    delete(AttendanceRecord).where(AttendanceRecord.session_id.in_(session_ids))
                )
                await self.db.execute(
                    delete(AttendanceSession).where(AttendanceSession.classroom_id == classroom.id)
                )
                await self.db.execute(delete(Grade).where(Grade.classroom_id == classroom.id))
                await self.db.execute(
                    delete(ClassroomEnrollment).where(
                        ClassroomEnrollment.classroom_id == classroom.id
                    )
                )
                await self.db.execute(delete(Classroom).where(Classroom.id == classroom.id))

        await self.gate.with_scoped_permission(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.DELETE, apply
        )
        logger.info("Classroom deleted: %s by %s", classroom_id, user.id)

    async def enroll_student(
        self,
        user: Principal,
        classroom_id: str,
        student_id: str,
    ) -> ClassroomResponse:
        """Enroll a student of the same organization.

        Raises:
            ValidationFailureError: Student from another organization, or
                the classroom is full.
            AlreadyEnrolledError: The student is already enrolled.
        """
        classroom = await self._get_by_id(classroom_id)

        async def apply() -> None:
            student = await self.db.get(Student, student_id)
            if student is None:
                raise NotFoundError("Student not found")
            if student.organization_id != classroom.organization_id:
                raise ValidationFailureError("Student does not belong to this organization")

            if any(e.student_id == student_id for e in classroom.enrollments):
                raise AlreadyEnrolledError()

            if classroom.capacity is not None:
                count = await self.db.execute(
                    select(func.count())
                    .select_from(ClassroomEnrollment)
                    .where(ClassroomEnrollment.classroom_id == classroom.id)
                )
                if count.scalar_one() >= classroom.capacity:
                    raise ClassroomFullError()

            self.db.add(ClassroomEnrollment(classroom_id=classroom.id, student_id=student_id))
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.UPDATE, apply
        )
        logger.info("Student %s enrolled in %s by %s", student_id, classroom_id, user.id)
        return self._to_response(await self._get_by_id(classroom_id))

    async def remove_student(self, user: Principal, classroom_id: str, student_id: str) -> None:
        """Remove a student from a classroom."""
        classroom = await self._get_by_id(classroom_id)

        async def apply() -> None:
            result = await self.db.execute(
                select(ClassroomEnrollment).where(
                    ClassroomEnrollment.classroom_id == classroom.id,
                    ClassroomEnrollment.student_id == student_id,
                )
            )
            enrollment = result.scalar_one_or_none()
            if enrollment is None:
                raise NotFoundError("Enrollment not found")
            await self.db.delete(enrollment)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.UPDATE, apply
        )
        logger.info("Student %s removed from %s by %s", student_id, classroom_id, user.id)

    async def get_roster(self, user: Principal, classroom_id: str) -> list[RosterEntry]:
        """List the enrolled students."""
        classroom = await self._get_by_id(classroom_id)
        await self.gate.ensure(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.READ
        )
        return self._roster(classroom)

    async def assign_teacher(
        self,
        user: Principal,
        classroom_id: str,
        teacher_id: str,
    ) -> ClassroomResponse:
        """Replace the classroom's teacher with one of the same organization."""
        classroom = await self._get_by_id(classroom_id)

        async def apply() -> None:
            await self._get_teacher_in_org(teacher_id, classroom.organization_id)
            classroom.teacher_id = teacher_id
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, classroom.organization_id, ResourceKind.CLASSROOM, Action.UPDATE, apply
        )
        logger.info("Teacher %s assigned to %s by %s", teacher_id, classroom_id, user.id)
        return self._to_response(await self._get_by_id(classroom_id))

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _base_query():
        return select(Classroom).options(
            selectinload(Classroom.teacher).selectinload(Teacher.user),
            selectinload(Classroom.enrollments)
            .selectinload(ClassroomEnrollment.student)
            .selectinload(Student.user),
        )

    async def _get_by_id(self, classroom_id: str) -> Classroom:
        result = await self.db.execute(
            self._base_query()
            .where(Classroom.id == classroom_id)
            .execution_options(populate_existing=True)
        )
        classroom = result.scalar_one_or_none()
        if classroom is None:
            raise ClassroomNotFoundError()
        return classroom

    async def _get_teacher_in_org(self, teacher_id: str, organization_id: str) -> Teacher:
        teacher = await self.db.get(Teacher, teacher_id)
        if teacher is None:
            raise NotFoundError("Teacher not found")
        if teacher.organization_id != organization_id:
            raise ValidationFailureError("Teacher does not belong to this organization")
        return teacher

    @staticmethod
    def _roster(classroom: Classroom) -> list[RosterEntry]:
        return [
            RosterEntry(
                student_id=e.student_id,
                grade=e.student.grade,
                user=UserBrief.model_validate(e.student.user) if e.student.user else None,
                enrolled_at=e.created_at,
            )
            for e in sorted(classroom.enrollments, key=lambda e: (e.created_at, e.id))
        ]

    def _to_response(self, classroom: Classroom) -> ClassroomResponse:
        teacher_user = classroom.teacher.user if classroom.teacher else None
        roster = self._roster(classroom)
        return ClassroomResponse(
            id=classroom.id,
            organization_id=classroom.organization_id,
            teacher_id=classroom.teacher_id,
            name=classroom.name,
            grade=classroom.grade,
            subject=classroom.subject,
            capacity=classroom.capacity,
            room=classroom.room,
            schedule=classroom.schedule,
            teacher=UserBrief.model_validate(teacher_user) if teacher_user else None,
            students=roster,
            student_count=len(roster),
            created_at=classroom.created_at,
            updated_at=classroom.updated_at,
        )
