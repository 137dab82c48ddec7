# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication request and response models."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    """Request body for creating an account."""

    email: EmailStr
    name: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8, max_length=128)


class SignInRequest(BaseModel):
    """Request body for signing in with email and password."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class SessionUser(BaseModel):
    """Identity attached to a session."""

    id: str
    email: str
    name: str
    role: str


class SessionResponse(BaseModel):
    """Resolved session.

    Attributes:
        user: Authenticated user.
        expires_at: Session expiry.
        token: Session token, only returned by sign-in.
    """

    user: SessionUser
    expires_at: datetime | None = None
    token: str | None = None
