# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Resolve the authenticated caller from the session token
- Parse paging and organization filter query parameters
- Get service instances

Example:
    @router.get("/students")
    async def list_students(
        db: DbSession,
        user: CurrentUser,
        page_request: PageParams,
    ):
        ...
"""

import logging
from functools import lru_cache
from typing import Annotated, AsyncGenerator, Literal

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import get_session_token
from src.core.config import get_settings
from src.domains.access import Principal
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService
from src.domains.query import PageRequest
from src.infrastructure.database.connection import get_session
from src.utils.logging import bind_context

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


@lru_cache
def get_jwt_manager() -> JWTManager:
    return JWTManager(get_settings().jwt)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    jwt_manager: Annotated[JWTManager, Depends(get_jwt_manager)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    return AuthService(db, jwt_manager, hasher)


# =========================================================================
# Authentication Dependencies
# =========================================================================


async def get_current_user(
    request: Request,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> Principal:
    """Resolve the caller from the session token.

    Raises:
        SessionInvalidError: If the token is missing, expired, revoked or
            belongs to a banned user.
    """
    principal = await auth_service.resolve_session(get_session_token(request))
    request.state.user_id = principal.id
    bind_context(user_id=principal.id)
    return principal


# =========================================================================
# Query Parameter Dependencies
# =========================================================================


def get_page_request(
    search: Annotated[str | None, Query()] = None,
    sort_column: Annotated[str | None, Query()] = None,
    sort_direction: Annotated[Literal["asc", "desc"] | None, Query()] = None,
    page: Annotated[int, Query(ge=0)] = 0,
    items_per_page: Annotated[int | None, Query(ge=0)] = None,
) -> PageRequest:
    """Build a PageRequest, clamping the page size to the configured max."""
    pagination = get_settings().pagination
    size = pagination.default_items_per_page if items_per_page is None else items_per_page
    return PageRequest(
        search=search,
        sort_column=sort_column,
        sort_direction=sort_direction,
        page=page,
        items_per_page=min(size, pagination.max_items_per_page),
    )


def get_organization_ids(
    organization_ids: Annotated[list[str] | None, Query()] = None,
) -> list[str] | None:
    """Repeated ``organization_ids`` query parameter; None when absent."""
    return organization_ids


DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[Principal, Depends(get_current_user)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
PageParams = Annotated[PageRequest, Depends(get_page_request)]
OrganizationIds = Annotated[list[str] | None, Depends(get_organization_ids)]
