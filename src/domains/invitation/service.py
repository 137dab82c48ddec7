# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invitation service.

Lifecycle: pending -> accepted (terminal), pending -> revoked (row deleted).
Expiry is derived from expires_at and never stored.

Example:
    >>> service = InvitationService(db_session)
    >>> result = await service.invite_users(user, InviteRequest(...))
    >>> result.invited, result.existing, result.invalid
    (2, 1, 0)
"""

import logging
import secrets

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.config import get_settings
from src.domains.access import Action, OrgRole, PermissionGate, Principal, ResourceKind
from src.domains.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailureError,
)
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import Invitation, Member, Organization, User
from src.models.organization import (
    InvitationResponse,
    InviteRequest,
    InviteResult,
    MemberResponse,
)
from src.models.user import UserBrief
from src.utils.datetime import days_from_now, utc_now

logger = logging.getLogger(__name__)

PENDING = "pending"
ACCEPTED = "accepted"


class InvitationNotFoundError(NotFoundError):
    """Raised when an invitation is not found."""

    def __init__(self) -> None:
        super().__init__("Invitation not found")


class InvitationEmailMismatchError(PermissionDeniedError):
    """Raised when the invitation is addressed to another email."""

    def __init__(self) -> None:
        super().__init__("This invitation was sent to a different email address")


class InvitationNotPendingError(ConflictError):
    """Raised when the invitation was already accepted."""

    def __init__(self) -> None:
        super().__init__("Invitation has already been accepted")


class InvitationExpiredError(ValidationFailureError):
    """Raised when the invitation window has passed."""

    def __init__(self) -> None:
        super().__init__("Invitation has expired")


def normalize_email(raw: str) -> str | None:
    """Trim and lower-case an address; None if it is not a valid email."""
    candidate = raw.strip().lower()
    if not candidate:
        return None
    try:
        validate_email(candidate, check_deliverability=False)
    except EmailNotValidError:
        return None
    return candidate


class InvitationService:
    """Service for inviting users into organizations.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
        expiry_days: Lifetime of a new invitation.
    """

    def __init__(self, db: AsyncSession, expiry_days: int | None = None) -> None:
        self.db = db
        self.gate = PermissionGate(db)
        self.expiry_days = (
            expiry_days if expiry_days is not None else get_settings().invitation.expiry_days
        )

    async def invite_users(self, user: Principal, request: InviteRequest) -> InviteResult:
        """Invite a batch of emails into an organization.

        Members and addresses with a live pending invitation are counted as
        existing instead of failing the batch. An expired or accepted
        invitation row for a non-member is reissued in place, since
        (email, organization) is unique.
        """
        await self._get_organization(request.organization_id)
        await self.gate.ensure(
            user, request.organization_id, ResourceKind.INVITATION, Action.INVITE
        )

        result = InviteResult()
        seen: set[str] = set()

        async with transaction(self.db):
            for raw in request.emails:
                email = normalize_email(raw)
                if email is None:
                    result.invalid += 1
                    continue

                if email in seen or await self._is_member(email, request.organization_id):
                    result.existing += 1
                    seen.add(email)
                    continue
                seen.add(email)

                invitation = await self._find_invitation(email, request.organization_id)
                if (
                    invitation is not None
                    and invitation.status == PENDING
                    and not invitation.is_expired
                ):
                    result.existing += 1
                    continue

                if invitation is None:
                    invitation = Invitation(email=email, organization_id=request.organization_id)
                    self.db.add(invitation)
                invitation.role = request.role.value
                invitation.inviter_id = user.id
                invitation.token = secrets.token_hex(32)
                invitation.status = PENDING
                invitation.expires_at = days_from_now(self.expiry_days)
                result.invited += 1

        logger.info(
            "Invitations for %s by %s: invited=%d existing=%d invalid=%d",
            request.organization_id,
            user.id,
            result.invited,
            result.existing,
            result.invalid,
        )
        return result

    async def list_pending_invitations(
        self,
        user: Principal,
        organization_id: str,
    ) -> list[InvitationResponse]:
        """List pending, unexpired invitations of an organization, newest first."""
        await self._get_organization(organization_id)
        await self.gate.ensure(user, organization_id, ResourceKind.INVITATION, Action.INVITE)

        result = await self.db.execute(
            select(Invitation)
            .options(selectinload(Invitation.organization))
            .where(
                Invitation.organization_id == organization_id,
                Invitation.status == PENDING,
                Invitation.expires_at > utc_now(),
            )
            .order_by(Invitation.created_at.desc(), Invitation.id)
        )
        return [self._to_response(inv) for inv in result.scalars().all()]

    async def revoke_invitation(self, user: Principal, invitation_id: str) -> None:
        """Delete an invitation."""
        invitation = await self._get_by_id(invitation_id)

        async def apply() -> None:
            await self.db.delete(invitation)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, invitation.organization_id, ResourceKind.INVITATION, Action.INVITE, apply
        )
        logger.info("Invitation %s revoked by %s", invitation_id, user.id)

    async def list_my_invitations(self, user: Principal) -> list[InvitationResponse]:
        """List pending, unexpired invitations addressed to the caller."""
        result = await self.db.execute(
            select(Invitation)
            .options(selectinload(Invitation.organization))
            .where(
                Invitation.email == user.email.lower(),
                Invitation.status == PENDING,
                Invitation.expires_at > utc_now(),
            )
            .order_by(Invitation.created_at.desc(), Invitation.id)
        )
        return [self._to_response(inv) for inv in result.scalars().all()]

    async def accept_invitation(self, user: Principal, invitation_id: str) -> MemberResponse:
        """Accept an invitation addressed to the caller.

        Creates the membership (or keeps an existing one) and marks the
        invitation accepted in one transaction.
        """
        invitation = await self._get_by_id(invitation_id)

        if invitation.email.lower() != user.email.lower():
            raise InvitationEmailMismatchError()
        if invitation.status != PENDING:
            raise InvitationNotPendingError()
        if invitation.is_expired:
            raise InvitationExpiredError()

        async with transaction(self.db):
            result = await self.db.execute(
                select(Member).where(
                    Member.user_id == user.id,
                    Member.organization_id == invitation.organization_id,
                )
            )
            member = result.scalar_one_or_none()
            if member is None:
                member = Member(
                    user_id=user.id,
                    organization_id=invitation.organization_id,
                    role=invitation.role,
                )
                self.db.add(member)
            invitation.status = ACCEPTED

        logger.info(
            "Invitation %s accepted: user=%s org=%s",
            invitation.id,
            user.id,
            invitation.organization_id,
        )
        return MemberResponse(
            id=member.id,
            user_id=member.user_id,
            organization_id=member.organization_id,
            role=OrgRole(member.role),
            user=UserBrief(id=user.id, name=user.name, email=user.email),
            created_at=member.created_at,
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_organization(self, organization_id: str) -> Organization:
        org = await self.db.get(Organization, organization_id)
        if org is None:
            raise NotFoundError("Organization not found")
        return org

    async def _get_by_id(self, invitation_id: str) -> Invitation:
        result = await self.db.execute(
            select(Invitation)
            .options(selectinload(Invitation.organization))
            .where(Invitation.id == invitation_id)
        )
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise InvitationNotFoundError()
        return invitation

    async def _is_member(self, email: str, organization_id: str) -> bool:
        member_count = await self.db.execute(
            select(func.count())
            .select_from(Member)
            .join(User, User.id == Member.user_id)
            .where(Member.organization_id == organization_id, func.lower(User.email) == email)
        )
        return member_count.scalar_one() > 0

    async def _find_invitation(self, email: str, organization_id: str) -> Invitation | None:
        result = await self.db.execute(
            select(Invitation).where(
                Invitation.organization_id == organization_id,
                Invitation.email == email,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_response(invitation: Invitation) -> InvitationResponse:
        return InvitationResponse(
            id=invitation.id,
            email=invitation.email,
            organization_id=invitation.organization_id,
            organization_name=invitation.organization.name if invitation.organization else None,
            role=OrgRole(invitation.role),
            status=invitation.status,
            inviter_id=invitation.inviter_id,
            expires_at=invitation.expires_at,
            created_at=invitation.created_at,
        )
