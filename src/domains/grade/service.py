# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade service.

Grades are written by teachers. The caller needs a Teacher profile in the
classroom's organization; a super-admin may name the teacher explicitly.
Grade values are free text and only numeric ones enter the averages.
"""

import logging
import math
import re
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import NotFoundError, PermissionDeniedError, ValidationFailureError
from src.infrastructure.database.models import Classroom, Grade, Student, Teacher
from src.models.attendance import GradeCreateRequest, GradeResponse, GradeStats, GradeUpdateRequest
from src.models.user import UserBrief
from src.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class GradeNotFoundError(NotFoundError):
    """Raised when a grade is not found."""

    def __init__(self) -> None:
        super().__init__("Grade not found")


class NotATeacherError(PermissionDeniedError):
    """Raised when the caller has no teacher profile in the organization."""

    def __init__(self) -> None:
        super().__init__("Only teachers can assign grades")


def parse_numeric(value: str) -> float | None:
    """Return the leading number of a grade, or None for letter/text grades.

    Trailing text is ignored, so "85%" and "92/100" read as 85 and 92.
    """
    match = _LEADING_NUMBER.match(value.lstrip())
    if match is None:
        return None
    number = float(match.group(0))
    if math.isinf(number):
        return None
    return number


def compute_grade_stats(grades: Iterable[tuple[str, str]]) -> GradeStats:
    """Summarize (subject, grade) pairs.

    Every pair counts toward total_grades; averages use numeric grades only
    and are true means over a running (sum, count) per subject.
    """
    total_grades = 0
    total_sum = 0.0
    total_count = 0
    by_subject: dict[str, list[float]] = {}

    for subject, value in grades:
        total_grades += 1
        number = parse_numeric(value)
        if number is None:
            continue
        total_sum += number
        total_count += 1
        acc = by_subject.setdefault(subject, [0.0, 0])
        acc[0] += number
        acc[1] += 1

    return GradeStats(
        total_grades=total_grades,
        average_grade=round_half_up(total_sum / total_count) if total_count else 0.0,
        grades_by_subject={
            subject: round_half_up(acc_sum / acc_count)
            for subject, (acc_sum, acc_count) in by_subject.items()
        },
    )


class GradeService:
    """Service for grades.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def assign_grade(self, user: Principal, request: GradeCreateRequest) -> GradeResponse:
        """Record a grade for a student in a classroom."""
        classroom = await self.db.get(Classroom, request.classroom_id)
        if classroom is None:
            raise NotFoundError("Classroom not found")
        await self.gate.ensure(user, classroom.organization_id, ResourceKind.GRADE, Action.READ)

        student = await self.db.get(Student, request.student_id)
        if student is None:
            raise NotFoundError("Student not found")
        if student.organization_id != classroom.organization_id:
            raise ValidationFailureError("Student does not belong to this organization")

        teacher = await self._resolve_teacher(user, classroom.organization_id, request.teacher_id)

        grade = Grade(
            organization_id=classroom.organization_id,
            student_id=student.id,
            classroom_id=classroom.id,
            teacher_id=teacher.id,
            subject=request.subject,
            grade=request.grade.strip(),
            grading_period=request.grading_period,
            comments=request.comments,
        )
        self.db.add(grade)
        await self.db.commit()

        logger.info("Grade %s assigned to %s by %s", grade.id, student.id, user.id)
        return self._to_response(await self._get_by_id(grade.id))

    async def update_grade(
        self,
        user: Principal,
        grade_id: str,
        request: GradeUpdateRequest,
    ) -> GradeResponse:
        """Update a grade (its author, or an admin/owner)."""
        grade = await self._get_by_id(grade_id)
        await self._ensure_can_modify(user, grade, Action.UPDATE)

        for field, value in request.model_dump(exclude_unset=True).items():
            if field in ("grade", "grading_period") and value is None:
                continue
            setattr(grade, field, value)
        await self.db.commit()

        logger.info("Grade %s updated by %s", grade_id, user.id)
        return self._to_response(await self._get_by_id(grade_id))

    async def delete_grade(self, user: Principal, grade_id: str) -> None:
        """Delete a grade (its author, or an admin/owner)."""
        grade = await self._get_by_id(grade_id)
        await self._ensure_can_modify(user, grade, Action.DELETE)
        await self.db.delete(grade)
        await self.db.commit()
        logger.info("Grade %s deleted by %s", grade_id, user.id)

    async def list_by_student(
        self,
        user: Principal,
        student_id: str,
        grading_period: str | None = None,
    ) -> list[GradeResponse]:
        """List a student's grades, newest first."""
        student = await self.db.get(Student, student_id)
        if student is None:
            raise NotFoundError("Student not found")
        await self.gate.ensure(user, student.organization_id, ResourceKind.GRADE, Action.READ)

        query = self._base_query().where(Grade.student_id == student_id)
        if grading_period:
            query = query.where(Grade.grading_period == grading_period)
        result = await self.db.execute(query.order_by(Grade.created_at.desc(), Grade.id))
        return [self._to_response(g) for g in result.scalars().all()]

    async def list_by_classroom(
        self,
        user: Principal,
        classroom_id: str,
        grading_period: str | None = None,
    ) -> list[GradeResponse]:
        """List a classroom's grades, newest first."""
        classroom = await self.db.get(Classroom, classroom_id)
        if classroom is None:
            raise NotFoundError("Classroom not found")
        await self.gate.ensure(user, classroom.organization_id, ResourceKind.GRADE, Action.READ)

        query = self._base_query().where(Grade.classroom_id == classroom_id)
        if grading_period:
            query = query.where(Grade.grading_period == grading_period)
        result = await self.db.execute(query.order_by(Grade.created_at.desc(), Grade.id))
        return [self._to_response(g) for g in result.scalars().all()]

    async def get_stats(self, user: Principal, student_id: str) -> GradeStats:
        """Grade summary of a student."""
        student = await self.db.get(Student, student_id)
        if student is None:
            raise NotFoundError("Student not found")
        await self.gate.ensure(user, student.organization_id, ResourceKind.GRADE, Action.READ)
        return await self.stats_for_student(student_id)

    async def stats_for_student(self, student_id: str) -> GradeStats:
        """Ungated summary, for callers that already checked access."""
        result = await self.db.execute(
            select(Grade.subject, Grade.grade).where(Grade.student_id == student_id)
        )
        return compute_grade_stats((subject, grade) for subject, grade in result)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _base_query():
        return select(Grade).options(
            selectinload(Grade.classroom),
            selectinload(Grade.student).selectinload(Student.user),
        )

    async def _get_by_id(self, grade_id: str) -> Grade:
        result = await self.db.execute(
            self._base_query()
            .where(Grade.id == grade_id)
            .execution_options(populate_existing=True)
        )
        grade = result.scalar_one_or_none()
        if grade is None:
            raise GradeNotFoundError()
        return grade

    async def _teacher_profile(self, user_id: str, organization_id: str) -> Teacher | None:
        result = await self.db.execute(
            select(Teacher).where(
                Teacher.user_id == user_id,
                Teacher.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def _resolve_teacher(
        self,
        user: Principal,
        organization_id: str,
        requested_teacher_id: str | None,
    ) -> Teacher:
        if user.is_super_admin and requested_teacher_id:
            teacher = await self.db.get(Teacher, requested_teacher_id)
            if teacher is None:
                raise NotFoundError("Teacher not found")
            if teacher.organization_id != organization_id:
                raise ValidationFailureError("Teacher does not belong to this organization")
            return teacher

        teacher = await self._teacher_profile(user.id, organization_id)
        if teacher is None:
            raise NotATeacherError()
        return teacher

    async def _ensure_can_modify(self, user: Principal, grade: Grade, action: Action) -> None:
        await self.gate.ensure(user, grade.organization_id, ResourceKind.GRADE, Action.READ)
        teacher = await self._teacher_profile(user.id, grade.organization_id)
        if teacher is not None and teacher.id == grade.teacher_id:
            return
        await self.gate.ensure(user, grade.organization_id, ResourceKind.GRADE, action)

    @staticmethod
    def _to_response(grade: Grade) -> GradeResponse:
        student_user = grade.student.user if grade.student else None
        return GradeResponse(
            id=grade.id,
            organization_id=grade.organization_id,
            student_id=grade.student_id,
            classroom_id=grade.classroom_id,
            teacher_id=grade.teacher_id,
            subject=grade.subject,
            grade=grade.grade,
            grading_period=grade.grading_period,
            comments=grade.comments,
            classroom_name=grade.classroom.name if grade.classroom else None,
            student=UserBrief.model_validate(student_user) if student_user else None,
            created_at=grade.created_at,
        )
