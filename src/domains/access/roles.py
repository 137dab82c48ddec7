# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Closed role, action and resource vocabularies plus the session principal."""

from dataclasses import dataclass
from enum import Enum


class GlobalRole(str, Enum):
    """Platform-wide role carried on the user."""

    MEMBER = "member"
    SUPER_ADMIN = "super-admin"


class OrgRole(str, Enum):
    """Role of a user inside one organization."""

    MEMBER = "member"
    ADMIN = "admin"
    OWNER = "owner"


class Action(str, Enum):
    """Operation requested against a scoped resource."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    INVITE = "invite"


class ResourceKind(str, Enum):
    """Kind of record the gate is asked about. Used for audit logging."""

    ORGANIZATION = "organization"
    MEMBER = "member"
    INVITATION = "invitation"
    CLASSROOM = "classroom"
    STUDENT = "student"
    TEACHER = "teacher"
    PARENT = "parent"
    ATTENDANCE = "attendance"
    GRADE = "grade"
    QUIZ = "quiz"
    QUESTION = "question"
    RESPONSE = "response"
    USER = "user"


MANAGER_ROLES: frozenset[OrgRole] = frozenset({OrgRole.ADMIN, OrgRole.OWNER})


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, re-derived from the database on every request.

    Attributes:
        id: User ID.
        email: User email (lower-case).
        name: Display name.
        role: Global role.
        session_id: ID of the sign-in session row.
    """

    id: str
    email: str
    name: str
    role: GlobalRole
    session_id: str | None = None

    @property
    def is_super_admin(self) -> bool:
        """Check if the caller is a platform super-admin."""
        return self.role == GlobalRole.SUPER_ADMIN
