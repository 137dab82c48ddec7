# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the invitation lifecycle."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from src.domains.access import OrgRole
from src.domains.errors import PermissionDeniedError
from src.domains.invitation.service import (
    InvitationEmailMismatchError,
    InvitationExpiredError,
    InvitationNotPendingError,
    InvitationService,
    normalize_email,
)
from src.domains.member.service import MemberService
from src.infrastructure.database.models import Invitation, Member
from src.models.organization import InviteRequest
from src.utils.datetime import utc_now

pytestmark = pytest.mark.integration


async def _only_invitation(db_session, email: str) -> Invitation:
    result = await db_session.execute(select(Invitation).where(Invitation.email == email))
    return result.scalar_one()


class TestNormalizeEmail:
    """Tests for normalize_email."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("  Ada@Example.COM ", "ada@example.com"),
            ("not-an-email", None),
            ("", None),
            ("a@b", None),
        ],
    )
    def test_normalize(self, raw: str, expected) -> None:
        assert normalize_email(raw) == expected


class TestInviteUsers:
    """Tests for InvitationService.invite_users."""

    @pytest.mark.asyncio
    async def test_counts_invited_existing_and_invalid(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        await seed.user_in(org, email="already@example.com")
        service = InvitationService(db_session)

        result = await service.invite_users(
            principal(owner),
            InviteRequest(
                organization_id=org.id,
                emails=[
                    "new@example.com",
                    "NEW@example.com",
                    "already@example.com",
                    "broken",
                    "second@example.com",
                ],
            ),
        )

        assert (result.invited, result.existing, result.invalid) == (2, 2, 1)

    @pytest.mark.asyncio
    async def test_reinvite_is_counted_as_existing(self, db_session, seed, principal) -> None:
        """Test that inviting the same address twice creates one invitation."""
        org = await seed.organization()
        admin = await seed.user_in(org, OrgRole.ADMIN)
        service = InvitationService(db_session)
        request = InviteRequest(organization_id=org.id, emails=["kid@example.com"])

        first = await service.invite_users(principal(admin), request)
        second = await service.invite_users(principal(admin), request)

        assert first.invited == 1
        assert (second.invited, second.existing) == (0, 1)

    @pytest.mark.asyncio
    async def test_plain_member_cannot_invite(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        member = await seed.user_in(org, OrgRole.MEMBER)
        service = InvitationService(db_session)

        with pytest.raises(PermissionDeniedError):
            await service.invite_users(
                principal(member),
                InviteRequest(organization_id=org.id, emails=["x@example.com"]),
            )

    @pytest.mark.asyncio
    async def test_invitation_is_pending_with_expiry(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        service = InvitationService(db_session, expiry_days=7)

        await service.invite_users(
            principal(owner),
            InviteRequest(organization_id=org.id, emails=["t@example.com"], role=OrgRole.ADMIN),
        )

        pending = await service.list_pending_invitations(principal(owner), org.id)
        assert len(pending) == 1
        assert pending[0].role == OrgRole.ADMIN
        assert pending[0].status == "pending"
        remaining = pending[0].expires_at.replace(tzinfo=None) - utc_now().replace(tzinfo=None)
        assert timedelta(days=6, hours=23) < remaining <= timedelta(days=7)


class TestAcceptInvitation:
    """Tests for InvitationService.accept_invitation."""

    @pytest.mark.asyncio
    async def test_accept_creates_membership(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        invitee = await seed.user(email="invitee@example.com")
        service = InvitationService(db_session)
        await service.invite_users(
            principal(owner),
            InviteRequest(organization_id=org.id, emails=["Invitee@Example.com"], role=OrgRole.ADMIN),
        )
        invitation = await _only_invitation(db_session, "invitee@example.com")

        member = await service.accept_invitation(principal(invitee), invitation.id)

        assert member.organization_id == org.id
        assert member.role == OrgRole.ADMIN
        await db_session.refresh(invitation)
        assert invitation.status == "accepted"
        assert await service.list_my_invitations(principal(invitee)) == []

    @pytest.mark.asyncio
    async def test_accept_twice_is_refused(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        invitee = await seed.user(email="twice@example.com")
        service = InvitationService(db_session)
        await service.invite_users(
            principal(owner), InviteRequest(organization_id=org.id, emails=["twice@example.com"])
        )
        invitation = await _only_invitation(db_session, "twice@example.com")
        await service.accept_invitation(principal(invitee), invitation.id)

        with pytest.raises(InvitationNotPendingError):
            await service.accept_invitation(principal(invitee), invitation.id)

    @pytest.mark.asyncio
    async def test_other_email_cannot_accept(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        stranger = await seed.user(email="stranger@example.com")
        service = InvitationService(db_session)
        await service.invite_users(
            principal(owner), InviteRequest(organization_id=org.id, emails=["meant@example.com"])
        )
        invitation = await _only_invitation(db_session, "meant@example.com")

        with pytest.raises(InvitationEmailMismatchError):
            await service.accept_invitation(principal(stranger), invitation.id)

        memberships = await db_session.execute(
            select(Member).where(Member.user_id == stranger.id)
        )
        assert memberships.scalars().all() == []

    @pytest.mark.asyncio
    async def test_expired_invitation_cannot_be_accepted(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        invitee = await seed.user(email="late@example.com")
        service = InvitationService(db_session)
        await service.invite_users(
            principal(owner), InviteRequest(organization_id=org.id, emails=["late@example.com"])
        )
        invitation = await _only_invitation(db_session, "late@example.com")
        invitation.expires_at = utc_now() - timedelta(minutes=1)
        await db_session.commit()

        with pytest.raises(InvitationExpiredError):
            await service.accept_invitation(principal(invitee), invitation.id)
        assert await service.list_pending_invitations(principal(owner), org.id) == []

    @pytest.mark.asyncio
    async def test_revoke_removes_invitation(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        service = InvitationService(db_session)
        await service.invite_users(
            principal(owner), InviteRequest(organization_id=org.id, emails=["gone@example.com"])
        )
        invitation = await _only_invitation(db_session, "gone@example.com")

        await service.revoke_invitation(principal(owner), invitation.id)

        assert await service.list_pending_invitations(principal(owner), org.id) == []


class TestReinvite:
    """Tests for reissuing stale invitations."""

    @pytest.mark.asyncio
    async def test_expired_invitation_is_reissued(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        service = InvitationService(db_session)
        request = InviteRequest(organization_id=org.id, emails=["lapsed@example.com"])
        await service.invite_users(principal(owner), request)
        invitation = await _only_invitation(db_session, "lapsed@example.com")
        old_token = invitation.token
        invitation.expires_at = utc_now() - timedelta(days=1)
        await db_session.commit()

        result = await service.invite_users(principal(owner), request)

        assert (result.invited, result.existing) == (1, 0)
        await db_session.refresh(invitation)
        assert invitation.status == "pending"
        assert invitation.token != old_token
        assert not invitation.is_expired
        pending = await service.list_pending_invitations(principal(owner), org.id)
        assert [inv.id for inv in pending] == [invitation.id]

    @pytest.mark.asyncio
    async def test_removed_member_can_be_invited_again(self, db_session, seed, principal) -> None:
        org = await seed.organization()
        owner = await seed.user_in(org, OrgRole.OWNER)
        invitee = await seed.user(email="returning@example.com")
        service = InvitationService(db_session)
        request = InviteRequest(organization_id=org.id, emails=["returning@example.com"])
        await service.invite_users(principal(owner), request)
        invitation = await _only_invitation(db_session, "returning@example.com")
        member = await service.accept_invitation(principal(invitee), invitation.id)

        assert (await service.invite_users(principal(owner), request)).existing == 1

        await MemberService(db_session).remove_member(principal(owner), member.id)
        result = await service.invite_users(
            principal(owner),
            InviteRequest(
                organization_id=org.id, emails=["returning@example.com"], role=OrgRole.ADMIN
            ),
        )

        assert (result.invited, result.existing) == (1, 0)
        await db_session.refresh(invitation)
        assert invitation.status == "pending"
        assert invitation.role == OrgRole.ADMIN.value
        accepted = await service.accept_invitation(principal(invitee), invitation.id)
        assert accepted.role == OrgRole.ADMIN
