# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User administration models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domains.access.roles import GlobalRole, OrgRole


class UserBrief(BaseModel):
    """User fields embedded in other resources."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str


class UserMembership(BaseModel):
    """One organization a listed user belongs to."""

    organization_id: str
    organization_name: str
    role: OrgRole


class UserResponse(BaseModel):
    """User with memberships, as listed in user administration."""

    id: str
    name: str
    email: str
    role: GlobalRole
    banned: bool = False
    ban_reason: str | None = None
    ban_expires: datetime | None = None
    memberships: list[UserMembership] = Field(default_factory=list)
    created_at: datetime


class ChangeUserRoleRequest(BaseModel):
    """Change a user's role inside one organization."""

    organization_id: str
    role: OrgRole


class UpdateUserRolesRequest(BaseModel):
    """Change a user's role in several organizations at once."""

    changes: list[ChangeUserRoleRequest] = Field(min_length=1, max_length=500)


class SetBanRequest(BaseModel):
    """Ban or unban a user."""

    banned: bool
    reason: str | None = Field(default=None, max_length=1000)
    expires_at: datetime | None = None


class BulkBanRequest(BaseModel):
    """Ban or unban many users."""

    user_ids: list[str] = Field(min_length=1, max_length=500)
    banned: bool
    reason: str | None = Field(default=None, max_length=1000)


class SetGlobalRoleRequest(BaseModel):
    """Change a user's platform role."""

    role: GlobalRole
