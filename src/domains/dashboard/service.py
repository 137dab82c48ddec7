# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dashboard metrics service.

Counters cover the caller's member organizations, optionally narrowed to
the requested ones. Team and invite counters are shown to organization
managers and super-admins only.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access import MANAGER_ROLES, MembershipAccessor, OrgRole, Principal
from src.infrastructure.database.models import Invitation, Member, Quiz, Response
from src.models.quiz import DashboardMetrics
from src.utils.datetime import utc_day_bounds, utc_now

logger = logging.getLogger(__name__)


class DashboardService:
    """Service for dashboard counters.

    Attributes:
        db: Async database session.
        memberships: Membership accessor.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.memberships = MembershipAccessor(db)

    async def get_dashboard_metrics(
        self,
        user: Principal,
        organization_ids: list[str] | None = None,
    ) -> DashboardMetrics:
        """Compute dashboard counters.

        Returns all zeros when the caller has no memberships.
        """
        memberships = await self.memberships.list_memberships(user.id)
        if not memberships:
            return DashboardMetrics()

        roles = {m.organization_id: OrgRole(m.role) for m in memberships}
        target = list(roles)
        if organization_ids:
            target = [org_id for org_id in organization_ids if org_id in roles]
        if not target:
            return DashboardMetrics()

        day_start, day_end = utc_day_bounds()
        metrics = DashboardMetrics(
            total_quizzes=await self._scalar(
                select(func.count()).select_from(Quiz).where(Quiz.organization_id.in_(target))
            ),
            completed_today=await self._scalar(
                select(func.count())
                .select_from(Response)
                .join(Quiz, Quiz.id == Response.quiz_id)
                .where(
                    Quiz.organization_id.in_(target),
                    Response.completed_at >= day_start,
                    Response.completed_at < day_end,
                )
            ),
        )

        manages_target = any(roles[org_id] in MANAGER_ROLES for org_id in target)
        if manages_target or user.is_super_admin:
            metrics.team_members = await self._scalar(
                select(func.count()).select_from(Member).where(Member.organization_id.in_(target))
            )
            metrics.active_invites = await self._scalar(
                select(func.count())
                .select_from(Invitation)
                .where(
                    Invitation.organization_id.in_(target),
                    Invitation.status == "pending",
                    Invitation.expires_at > utc_now(),
                )
            )

        return metrics

    async def _scalar(self, statement) -> int:
        result = await self.db.execute(statement)
        return result.scalar_one()
