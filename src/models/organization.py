# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Organization, member and invitation models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.domains.access.roles import OrgRole
from src.models.user import UserBrief


class OrganizationCreateRequest(BaseModel):
    """Request to create an organization. The slug defaults to the name."""

    name: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=100)
    address: str | None = None
    phone: str | None = None
    principal_name: str | None = None
    capacity: int | None = Field(default=None, ge=0)
    location: str | None = None
    logo: str | None = None
    metadata: dict[str, Any] | None = None


class OrganizationUpdateRequest(BaseModel):
    """Partial organization update."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=100)
    address: str | None = None
    phone: str | None = None
    principal_name: str | None = None
    capacity: int | None = Field(default=None, ge=0)
    location: str | None = None
    logo: str | None = None
    metadata: dict[str, Any] | None = None


class OrganizationResponse(BaseModel):
    """Organization details."""

    id: str
    name: str
    slug: str
    address: str | None = None
    phone: str | None = None
    principal_name: str | None = None
    capacity: int | None = None
    location: str | None = None
    logo: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class OrganizationStats(BaseModel):
    """Headcounts of an organization."""

    total_students: int = 0
    total_teachers: int = 0
    total_parents: int = 0
    total_classrooms: int = 0


class MemberResponse(BaseModel):
    """Membership with its user."""

    id: str
    user_id: str
    organization_id: str
    role: OrgRole
    user: UserBrief | None = None
    created_at: datetime


class MemberRoleUpdateRequest(BaseModel):
    """Change a member's role."""

    role: OrgRole


class InviteRequest(BaseModel):
    """Invite a batch of email addresses."""

    organization_id: str
    emails: list[str] = Field(min_length=1, max_length=500)
    role: OrgRole = OrgRole.MEMBER


class InviteResult(BaseModel):
    """Outcome counts of an invite batch.

    Attributes:
        invited: New invitations created.
        existing: Already members or already invited.
        invalid: Malformed addresses.
    """

    invited: int = 0
    existing: int = 0
    invalid: int = 0


class InvitationResponse(BaseModel):
    """Invitation details."""

    id: str
    email: str
    organization_id: str
    organization_name: str | None = None
    role: OrgRole
    status: str
    inviter_id: str | None = None
    expires_at: datetime
    created_at: datetime
