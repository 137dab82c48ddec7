# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for user authentication:
- POST /sign-up - Create an account
- POST /sign-in - Open a session (sets the session cookie)
- POST /sign-out - Close the current session
- GET /session - Describe the caller's session

Example:
    POST /api/v1/auth/sign-in
    {
        "email": "owner@school.com",
        "password": "correct horse battery"
    }
"""

import logging

from fastapi import APIRouter, Request, Response, status

from src.api.dependencies import AuthServiceDep, CurrentUser
from src.api.middleware.auth import get_session_token
from src.api.middleware.rate_limit import get_ip_only, limiter, sign_in_limit
from src.core.config import get_settings
from src.models.auth import SessionResponse, SessionUser, SignInRequest, SignUpRequest
from src.models.common import ActionResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post(
    "/sign-up",
    response_model=ActionResponse[SessionUser],
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
)
async def sign_up(
    data: SignUpRequest,
    auth_service: AuthServiceDep,
) -> ActionResponse[SessionUser]:
    """Create an account with the global role member."""
    return ActionResponse.ok(await auth_service.sign_up(data))


@router.post(
    "/sign-in",
    response_model=ActionResponse[SessionResponse],
    summary="Sign in",
    description="Verify credentials, open a session and set the session cookie.",
)
@limiter.limit(sign_in_limit, key_func=get_ip_only)
async def sign_in(
    request: Request,
    response: Response,
    data: SignInRequest,
    auth_service: AuthServiceDep,
) -> ActionResponse[SessionResponse]:
    """Sign in with email and password.

    The token is returned in the body for API clients and set as an
    httpOnly cookie for browsers.
    """
    session = await auth_service.sign_in(
        data,
        ip_address=_client_ip(request),
        user_agent=(request.headers.get("User-Agent") or "")[:500] or None,
    )

    cookie = get_settings().session
    response.set_cookie(
        key=cookie.cookie_name,
        value=session.token,
        expires=session.expires_at,
        httponly=True,
        secure=cookie.cookie_secure,
        samesite=cookie.cookie_samesite,
        path="/",
    )
    return ActionResponse.ok(session)


@router.post(
    "/sign-out",
    response_model=ActionResponse[SuccessResponse],
    summary="Sign out",
)
async def sign_out(
    request: Request,
    response: Response,
    auth_service: AuthServiceDep,
) -> ActionResponse[SuccessResponse]:
    """Delete the current session and clear the cookie."""
    token = get_session_token(request)
    if token:
        await auth_service.sign_out(token)
    response.delete_cookie(get_settings().session.cookie_name, path="/")
    return ActionResponse.ok(SuccessResponse())


@router.get(
    "/session",
    response_model=ActionResponse[SessionResponse],
    summary="Current session",
)
async def get_session(
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
) -> ActionResponse[SessionResponse]:
    return ActionResponse.ok(await auth_service.get_session(current_user))
