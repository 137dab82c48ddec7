# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for grade assignment and statistics."""

import pytest
import pytest_asyncio

from src.domains.access import OrgRole
from src.domains.errors import PermissionDeniedError
from src.domains.grade.service import GradeService, NotATeacherError
from src.models.attendance import GradeCreateRequest, GradeUpdateRequest

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def school(seed):
    org = await seed.organization()
    teacher_user = await seed.user_in(org, OrgRole.MEMBER)
    teacher = await seed.teacher(org, teacher_user)
    classroom = await seed.classroom(org, teacher)
    student = await seed.student(org)
    return org, teacher_user, classroom, student


def _grade(classroom, student, subject: str, value: str) -> GradeCreateRequest:
    return GradeCreateRequest(
        student_id=student.id,
        classroom_id=classroom.id,
        subject=subject,
        grade=value,
        grading_period="Q1",
    )


class TestGradeService:
    """Tests for GradeService."""

    @pytest.mark.asyncio
    async def test_teacher_assigns_and_stats_average(self, db_session, school, principal) -> None:
        _, teacher_user, classroom, student = school
        service = GradeService(db_session)

        for subject, value in [("Math", "90"), ("Math", "85"), ("Math", "B+"), ("Science", "70")]:
            await service.assign_grade(principal(teacher_user), _grade(classroom, student, subject, value))

        stats = await service.get_stats(principal(teacher_user), student.id)
        assert stats.total_grades == 4
        assert stats.grades_by_subject == {"Math": 87.5, "Science": 70.0}
        assert stats.average_grade == 81.67

    @pytest.mark.asyncio
    async def test_member_without_teacher_profile_cannot_grade(
        self, db_session, seed, school, principal
    ) -> None:
        org, _, classroom, student = school
        member = await seed.user_in(org, OrgRole.MEMBER)
        service = GradeService(db_session)

        with pytest.raises(NotATeacherError):
            await service.assign_grade(principal(member), _grade(classroom, student, "Math", "90"))

    @pytest.mark.asyncio
    async def test_only_author_or_manager_may_update(self, db_session, seed, school, principal) -> None:
        org, teacher_user, classroom, student = school
        other_teacher = await seed.user_in(org, OrgRole.MEMBER)
        await seed.teacher(org, other_teacher)
        admin = await seed.user_in(org, OrgRole.ADMIN)
        service = GradeService(db_session)
        grade = await service.assign_grade(
            principal(teacher_user), _grade(classroom, student, "Math", "90")
        )

        with pytest.raises(PermissionDeniedError):
            await service.update_grade(principal(other_teacher), grade.id, GradeUpdateRequest(grade="100"))

        updated = await service.update_grade(principal(admin), grade.id, GradeUpdateRequest(grade="95"))
        assert updated.grade == "95"

    @pytest.mark.asyncio
    async def test_filter_by_grading_period(self, db_session, school, principal) -> None:
        _, teacher_user, classroom, student = school
        service = GradeService(db_session)
        await service.assign_grade(principal(teacher_user), _grade(classroom, student, "Math", "90"))
        q2 = _grade(classroom, student, "Math", "80").model_copy(update={"grading_period": "Q2"})
        await service.assign_grade(principal(teacher_user), q2)

        q1_only = await service.list_by_student(principal(teacher_user), student.id, grading_period="Q1")

        assert [g.grade for g in q1_only] == ["90"]
