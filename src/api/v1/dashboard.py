# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dashboard API endpoints."""

import logging

from fastapi import APIRouter

from src.api.dependencies import CurrentUser, DbSession, OrganizationIds
from src.domains.dashboard.service import DashboardService
from src.models.common import ActionResponse
from src.models.quiz import DashboardMetrics

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/metrics",
    response_model=ActionResponse[DashboardMetrics],
    summary="Dashboard metrics",
    description=(
        "Quiz and response counters for the caller's organizations. Team and "
        "invitation counters are zero unless the caller administers one of them."
    ),
)
async def get_dashboard_metrics(
    current_user: CurrentUser,
    db: DbSession,
    organization_ids: OrganizationIds,
) -> ActionResponse[DashboardMetrics]:
    service = DashboardService(db)
    return ActionResponse.ok(
        await service.get_dashboard_metrics(current_user, organization_ids)
    )
