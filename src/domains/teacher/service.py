# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher service.

Manages teacher profiles within an organization and the list of subjects
each teacher covers. Subject assignment is idempotent.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import ConflictError, NotFoundError
from src.infrastructure.database.models import Organization, Teacher, User
from src.models.school import TeacherCreateRequest, TeacherResponse, TeacherUpdateRequest
from src.models.user import UserBrief

logger = logging.getLogger(__name__)


class TeacherNotFoundError(NotFoundError):
    """Raised when a teacher is not found."""

    def __init__(self) -> None:
        super().__init__("Teacher not found")


class TeacherExistsError(ConflictError):
    """Raised when the user already has a teacher profile in the organization."""

    def __init__(self) -> None:
        super().__init__("Teacher profile already exists for this user")


class TeacherService:
    """Service for managing teachers.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def list_teachers(self, user: Principal, organization_id: str) -> list[TeacherResponse]:
        """List teachers of an organization, newest first."""
        if await self.db.get(Organization, organization_id) is None:
            raise NotFoundError("Organization not found")
        await self.gate.ensure(user, organization_id, ResourceKind.TEACHER, Action.READ)

        result = await self.db.execute(
            select(Teacher)
            .options(selectinload(Teacher.user))
            .where(Teacher.organization_id == organization_id)
            .order_by(Teacher.created_at.desc(), Teacher.id)
        )
        return [self._to_response(t) for t in result.scalars().all()]

    async def get_teacher(self, user: Principal, teacher_id: str) -> TeacherResponse:
        """Get a teacher profile."""
        teacher = await self._get_by_id(teacher_id)
        await self.gate.ensure(user, teacher.organization_id, ResourceKind.TEACHER, Action.READ)
        return self._to_response(teacher)

    async def create_teacher(
        self,
        user: Principal,
        request: TeacherCreateRequest,
    ) -> TeacherResponse:
        """Create a teacher profile for an existing user."""
        if await self.db.get(Organization, request.organization_id) is None:
            raise NotFoundError("Organization not found")

        async def apply() -> Teacher:
            if await self.db.get(User, request.user_id) is None:
                raise NotFoundError("User not found")
            existing = await self.db.execute(
                select(Teacher.id).where(
                    Teacher.user_id == request.user_id,
                    Teacher.organization_id == request.organization_id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise TeacherExistsError()

            teacher = Teacher(
                user_id=request.user_id,
                organization_id=request.organization_id,
                subjects=_dedupe(request.subjects),
                certifications=list(request.certifications),
                employee_id=request.employee_id,
                cv_url=request.cv_url,
            )
            self.db.add(teacher)
            await self.db.commit()
            return teacher

        teacher = await self.gate.with_scoped_permission(
            user, request.organization_id, ResourceKind.TEACHER, Action.CREATE, apply
        )
        logger.info("Teacher created: %s in %s by %s", teacher.id, teacher.organization_id, user.id)
        return self._to_response(await self._get_by_id(teacher.id))

    async def update_teacher(
        self,
        user: Principal,
        teacher_id: str,
        request: TeacherUpdateRequest,
    ) -> TeacherResponse:
        """Partially update a teacher profile."""
        teacher = await self._get_by_id(teacher_id)

        async def apply() -> None:
            updates = request.model_dump(exclude_unset=True)
            if updates.get("subjects") is not None:
                updates["subjects"] = _dedupe(updates["subjects"])
            for field, value in updates.items():
                if field in ("subjects", "certifications") and value is None:
                    continue
                setattr(teacher, field, value)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, teacher.organization_id, ResourceKind.TEACHER, Action.UPDATE, apply
        )
        logger.info("Teacher updated: %s by %s", teacher_id, user.id)
        return self._to_response(await self._get_by_id(teacher_id))

    async def assign_subject(self, user: Principal, teacher_id: str, subject: str) -> TeacherResponse:
        """Add a subject; assigning a subject already held is a no-op."""
        teacher = await self._get_by_id(teacher_id)
        subject = subject.strip()

        async def apply() -> None:
            if subject not in teacher.subjects:
                teacher.subjects = [*teacher.subjects, subject]
                await self.db.commit()

        await self.gate.with_scoped_permission(
            user, teacher.organization_id, ResourceKind.TEACHER, Action.UPDATE, apply
        )
        return self._to_response(teacher)

    async def remove_subject(self, user: Principal, teacher_id: str, subject: str) -> TeacherResponse:
        """Remove a subject if present."""
        teacher = await self._get_by_id(teacher_id)
        subject = subject.strip()

        async def apply() -> None:
            if subject in teacher.subjects:
                teacher.subjects = [s for s in teacher.subjects if s != subject]
                await self.db.commit()

        await self.gate.with_scoped_permission(
            user, teacher.organization_id, ResourceKind.TEACHER, Action.UPDATE, apply
        )
        return self._to_response(teacher)

    async def _get_by_id(self, teacher_id: str) -> Teacher:
        result = await self.db.execute(
            select(Teacher)
            .options(selectinload(Teacher.user))
            .where(Teacher.id == teacher_id)
            .execution_options(populate_existing=True)
        )
        teacher = result.scalar_one_or_none()
        if teacher is None:
            raise TeacherNotFoundError()
        return teacher

    @staticmethod
    def _to_response(teacher: Teacher) -> TeacherResponse:
        return TeacherResponse(
            id=teacher.id,
            user_id=teacher.user_id,
            organization_id=teacher.organization_id,
            subjects=list(teacher.subjects or []),
            certifications=list(teacher.certifications or []),
            employee_id=teacher.employee_id,
            cv_url=teacher.cv_url,
            user=UserBrief.model_validate(teacher.user) if teacher.user else None,
            created_at=teacher.created_at,
        )


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(v.strip() for v in values if v.strip()))
