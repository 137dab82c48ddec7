# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and readiness endpoints for the API. They sit
outside the versioned prefix and do not require a session.
"""

import logging
import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import text

from src.core.config import get_settings
from src.infrastructure.database.connection import DatabaseError, get_engine
from src.infrastructure.database.migrations.runner import pending_revisions
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health")

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""
    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Liveness response model."""
    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    checked_at: datetime = Field(description="When health was checked")


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    ready: bool = Field(description="Whether the service is ready")
    checks: dict[str, Any] = Field(description="Individual check results")


async def check_database() -> ComponentHealth:
    """Check the database connection with a trivial query."""
    try:
        engine = get_engine()
        start = time.time()

        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        latency = (time.time() - start) * 1000
        return ComponentHealth(status="healthy", latency_ms=round(latency, 2))
    except DatabaseError as e:
        return ComponentHealth(status="unhealthy", message=e.message)
    except Exception as e:
        logger.error("Database health check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))


async def check_migrations() -> ComponentHealth:
    """Report revisions that have not been applied yet."""
    try:
        async with get_engine().connect() as conn:
            pending = await pending_revisions(conn)
    except Exception as e:
        logger.error("Migration check failed: %s", e)
        return ComponentHealth(status="unhealthy", message=str(e))

    if pending:
        return ComponentHealth(status="pending", message=", ".join(pending))
    return ComponentHealth(status="healthy")


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the process is up."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        checked_at=utc_now(),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> JSONResponse:
    """Check if the API is ready to accept traffic.

    Returns 503 when the database is unreachable or the schema has
    pending migrations.
    """
    db_health = await check_database()
    checks = {"database": db_health.model_dump(exclude_none=True)}
    ready = db_health.status == "healthy"

    if ready:
        migrations = await check_migrations()
        checks["migrations"] = migrations.model_dump(exclude_none=True)
        ready = migrations.status == "healthy"
    return JSONResponse(
        status_code=200 if ready else 503,
        content=ReadinessResponse(ready=ready, checks=checks).model_dump(),
    )
