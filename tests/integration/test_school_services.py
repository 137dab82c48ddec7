# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for classrooms, students and organizations."""

import pytest

from src.domains.access import GlobalRole, OrgRole
from src.domains.classroom.service import (
    AlreadyEnrolledError,
    ClassroomFullError,
    ClassroomService,
)
from src.domains.errors import PermissionDeniedError, ValidationFailureError
from src.domains.organization.service import OrganizationService, SlugExistsError
from src.domains.query import PageRequest
from src.domains.student.service import StudentService
from src.models.organization import OrganizationCreateRequest
from src.models.school import ClassroomUpdateRequest

pytestmark = pytest.mark.integration


class TestClassroomService:
    """Tests for ClassroomService."""

    @pytest.mark.asyncio
    async def test_admin_of_other_org_cannot_update(self, db_session, seed, principal) -> None:
        """Test that authority is checked against the classroom's own organization."""
        victim = await seed.organization()
        attacker_org = await seed.organization()
        attacker = await seed.user_in(attacker_org, OrgRole.OWNER)
        classroom = await seed.classroom(victim, name="Original")
        service = ClassroomService(db_session)

        with pytest.raises(PermissionDeniedError):
            await service.update_classroom(
                principal(attacker), classroom.id, ClassroomUpdateRequest(name="Hijacked")
            )

        await db_session.refresh(classroom)
        assert classroom.name == "Original"

    @pytest.mark.asyncio
    async def test_admin_updates_own_classroom(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        admin = await seed.user_in(org, OrgRole.ADMIN)
        classroom = await seed.classroom(org)
        service = ClassroomService(db_session)

        updated = await service.update_classroom(
            principal(admin), classroom.id, ClassroomUpdateRequest(name="Room 5B", capacity=30)
        )

        assert (updated.name, updated.capacity) == ("Room 5B", 30)

    @pytest.mark.asyncio
    async def test_enrollment_rules(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        admin = await seed.user_in(org, OrgRole.ADMIN)
        classroom = await seed.classroom(org, capacity=1)
        first = await seed.student(org)
        second = await seed.student(org)
        foreign = await seed.student(await seed.organization())
        service = ClassroomService(db_session)

        enrolled = await service.enroll_student(principal(admin), classroom.id, first.id)
        assert enrolled.student_count == 1

        with pytest.raises(AlreadyEnrolledError):
            await service.enroll_student(principal(admin), classroom.id, first.id)
        with pytest.raises(ClassroomFullError):
            await service.enroll_student(principal(admin), classroom.id, second.id)
        with pytest.raises(ValidationFailureError):
            await service.enroll_student(principal(admin), classroom.id, foreign.id)

    @pytest.mark.asyncio
    async def test_delete_removes_enrollments(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        classroom = await seed.classroom(org)
        await seed.enroll(classroom, await seed.student(org))
        service = ClassroomService(db_session)

        await service.delete_classroom(principal(owner), classroom.id)

        assert await service.list_classrooms(principal(owner), org.id) == []


class TestStudentService:
    """Tests for StudentService listing."""

    @pytest.mark.asyncio
    async def test_grade_filter_and_paging(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        member = await seed.user_in(org)
        for _ in range(3):
            await seed.student(org, grade="5")
        await seed.student(org, grade="6")
        service = StudentService(db_session)

        page = await service.list_students(
            principal(member), org.id, PageRequest(items_per_page=2), grade="5"
        )

        assert page.total_count == 3
        assert page.total_pages == 2
        assert len(page.items) == 2
        assert all(s.grade == "5" for s in page.items)

    @pytest.mark.asyncio
    async def test_non_member_cannot_list(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        outsider = await seed.user()
        service = StudentService(db_session)

        with pytest.raises(PermissionDeniedError):
            await service.list_students(principal(outsider), org.id, PageRequest())


class TestOrganizationService:
    """Tests for OrganizationService."""

    @pytest.mark.asyncio
    async def test_super_admin_creates_with_derived_slug(self, db_session, seed, principal) -> None:
        root = await seed.user(role=GlobalRole.SUPER_ADMIN)
        service = OrganizationService(db_session)

        org = await service.create_organization(
            principal(root), OrganizationCreateRequest(name="Springfield Elementary")
        )

        assert org.slug == "springfield-elementary"

    @pytest.mark.asyncio
    async def test_member_cannot_create(self, db_session, seed, principal) -> None:
        user = await seed.user()
        service = OrganizationService(db_session)

        with pytest.raises(PermissionDeniedError):
            await service.create_organization(principal(user), OrganizationCreateRequest(name="Nope"))

    @pytest.mark.asyncio
    async def test_duplicate_slug_is_rejected(self, db_session, seed, principal) -> None:
        user = await seed.user(role=GlobalRole.SUPER_ADMIN)
        service = OrganizationService(db_session)
        await service.create_organization(principal(user), OrganizationCreateRequest(name="Oak Hill"))

        with pytest.raises(SlugExistsError):
            await service.create_organization(principal(user), OrganizationCreateRequest(name="Oak  Hill!"))

    @pytest.mark.asyncio
    async def test_listing_covers_managed_organizations(self, db_session, seed, principal) -> None:
        managed = await seed.organization(name="Managed")
        joined = await seed.organization(name="Joined")
        await seed.organization(name="Unrelated")
        user = await seed.user_in(managed, OrgRole.ADMIN)
        await seed.member(user, joined, OrgRole.MEMBER)
        root = await seed.user(role=GlobalRole.SUPER_ADMIN)
        service = OrganizationService(db_session)

        mine = await service.list_organizations(principal(user))
        everything = await service.list_organizations(principal(root))

        assert [o.name for o in mine] == ["Managed"]
        assert len(everything) == 3
