# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for user administration and dashboard metrics."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from src.domains.access import GlobalRole, OrgRole
from src.domains.dashboard.service import DashboardService
from src.domains.errors import PermissionDeniedError, ValidationFailureError
from src.domains.invitation.service import InvitationService
from src.domains.query import PageRequest
from src.domains.quiz.service import QuizService
from src.domains.user.service import UserService
from src.infrastructure.database.models import Invitation, Member
from src.models.organization import InviteRequest
from src.models.quiz import SubmitResponseRequest
from src.models.user import (
    BulkBanRequest,
    ChangeUserRoleRequest,
    SetBanRequest,
    UpdateUserRolesRequest,
)
from src.utils.datetime import utc_now

pytestmark = pytest.mark.integration


class TestUserService:
    """Tests for UserService."""

    @pytest.mark.asyncio
    async def test_admin_lists_only_managed_organizations(self, db_session, seed, principal) -> None:
        managed = await seed.organization(name="Managed")
        elsewhere = await seed.organization(name="Elsewhere")
        admin = await seed.user_in(managed, OrgRole.ADMIN, name="Alice Admin")
        await seed.user_in(managed, name="Bob Pupil")
        await seed.user_in(elsewhere, name="Carol Stranger")
        service = UserService(db_session)

        page = await service.list_users(principal(admin), PageRequest())

        assert sorted(u.name for u in page.items) == ["Alice Admin", "Bob Pupil"]

    @pytest.mark.asyncio
    async def test_plain_member_sees_nobody(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        member = await seed.user_in(org)
        service = UserService(db_session)

        page = await service.list_users(principal(member), PageRequest())

        assert page.total_count == 0

    @pytest.mark.asyncio
    async def test_ban_and_unban(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        admin = await seed.user_in(org, OrgRole.ADMIN)
        target = await seed.user_in(org)
        service = UserService(db_session)

        banned = await service.set_ban(
            principal(admin), target.id, SetBanRequest(banned=True, reason="spam")
        )
        assert (banned.banned, banned.ban_reason) == (True, "spam")

        lifted = await service.set_ban(principal(admin), target.id, SetBanRequest(banned=False))
        assert (lifted.banned, lifted.ban_reason) == (False, None)

    @pytest.mark.asyncio
    async def test_ban_guards(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        admin = await seed.user_in(org, OrgRole.ADMIN)
        root = await seed.user(role=GlobalRole.SUPER_ADMIN)
        await seed.member(root, org)
        stranger = await seed.user_in(await seed.organization())
        service = UserService(db_session)

        with pytest.raises(ValidationFailureError):
            await service.set_ban(principal(admin), admin.id, SetBanRequest(banned=True))
        with pytest.raises(PermissionDeniedError):
            await service.set_ban(principal(admin), root.id, SetBanRequest(banned=True))
        with pytest.raises(PermissionDeniedError):
            await service.set_ban(principal(admin), stranger.id, SetBanRequest(banned=True))

    @pytest.mark.asyncio
    async def test_bulk_ban_reports_per_user(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        admin = await seed.user_in(org, OrgRole.ADMIN)
        target = await seed.user_in(org)
        stranger = await seed.user()
        service = UserService(db_session)

        outcome = await service.bulk_set_ban(
            principal(admin),
            BulkBanRequest(user_ids=[target.id, stranger.id, target.id], banned=True),
        )

        assert outcome.succeeded == [target.id]
        assert outcome.failed == [stranger.id]

    @pytest.mark.asyncio
    async def test_change_role_and_global_role(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        target = await seed.user_in(org)
        service = UserService(db_session)

        updated = await service.change_user_role(
            principal(owner),
            target.id,
            ChangeUserRoleRequest(organization_id=org.id, role=OrgRole.ADMIN),
        )
        assert updated.memberships[0].role == OrgRole.ADMIN

        with pytest.raises(PermissionDeniedError):
            await service.set_global_role(principal(owner), target.id, GlobalRole.SUPER_ADMIN)

    @pytest.mark.asyncio
    async def test_update_roles_skips_unmanaged_organizations(
        self, db_session, seed, principal
    ) -> None:
        managed = await seed.organization()
        also_managed = await seed.organization()
        unmanaged = await seed.organization()
        absent = await seed.organization()
        admin = await seed.user_in(managed, OrgRole.ADMIN)
        await seed.member(admin, also_managed, OrgRole.OWNER)
        await seed.member(admin, unmanaged, OrgRole.MEMBER)
        await seed.member(admin, absent, OrgRole.OWNER)
        target = await seed.user_in(managed)
        await seed.member(target, also_managed)
        await seed.member(target, unmanaged)
        service = UserService(db_session)

        count = await service.update_user_roles(
            principal(admin),
            target.id,
            UpdateUserRolesRequest(
                changes=[
                    ChangeUserRoleRequest(organization_id=managed.id, role=OrgRole.ADMIN),
                    ChangeUserRoleRequest(organization_id=also_managed.id, role=OrgRole.OWNER),
                    ChangeUserRoleRequest(organization_id=unmanaged.id, role=OrgRole.ADMIN),
                    ChangeUserRoleRequest(organization_id=absent.id, role=OrgRole.ADMIN),
                ]
            ),
        )

        assert count == 2
        roles = {
            m.organization_id: m.role
            for m in (await db_session.execute(select(Member).where(Member.user_id == target.id)))
            .scalars()
            .all()
        }
        assert roles == {
            managed.id: OrgRole.ADMIN.value,
            also_managed.id: OrgRole.OWNER.value,
            unmanaged.id: OrgRole.MEMBER.value,
        }

    @pytest.mark.asyncio
    async def test_super_admin_updates_roles_anywhere(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        root = await seed.user(role=GlobalRole.SUPER_ADMIN)
        target = await seed.user_in(org)
        service = UserService(db_session)

        count = await service.update_user_roles(
            principal(root),
            target.id,
            UpdateUserRolesRequest(
                changes=[ChangeUserRoleRequest(organization_id=org.id, role=OrgRole.ADMIN)]
            ),
        )

        assert count == 1


class TestDashboardService:
    """Tests for DashboardService."""

    @pytest.mark.asyncio
    async def test_no_memberships_gives_zeros(self, db_session, seed, principal) -> None:
        loner = await seed.user()

        metrics = await DashboardService(db_session).get_dashboard_metrics(principal(loner))

        assert metrics.model_dump() == {
            "total_quizzes": 0,
            "completed_today": 0,
            "team_members": 0,
            "active_invites": 0,
        }

    @pytest.mark.asyncio
    async def test_manager_metrics(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        pupil = await seed.user_in(org)
        quiz = await seed.quiz(org)
        await seed.quiz(org)
        await seed.quiz(await seed.organization())
        question = await seed.question(quiz, "4")
        await QuizService(db_session).submit_response(
            principal(pupil), quiz.id, SubmitResponseRequest(answers={question.id: "4"})
        )
        invitations = InvitationService(db_session)
        await invitations.invite_users(
            principal(owner),
            InviteRequest(organization_id=org.id, emails=["a@example.com", "b@example.com"]),
        )
        stale = Invitation(
            email="old@example.com",
            organization_id=org.id,
            role=OrgRole.MEMBER.value,
            inviter_id=owner.id,
            token="stale-token",
            status="pending",
            expires_at=utc_now() - timedelta(days=1),
        )
        db_session.add(stale)
        await db_session.commit()

        metrics = await DashboardService(db_session).get_dashboard_metrics(principal(owner))

        assert metrics.total_quizzes == 2
        assert metrics.completed_today == 1
        assert metrics.team_members == 2
        assert metrics.active_invites == 2

    @pytest.mark.asyncio
    async def test_member_does_not_see_team_counters(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        await seed.user_in(org, OrgRole.OWNER)
        member = await seed.user_in(org)
        await seed.quiz(org)

        metrics = await DashboardService(db_session).get_dashboard_metrics(principal(member))

        assert metrics.total_quizzes == 1
        assert metrics.team_members == 0
        assert metrics.active_invites == 0
