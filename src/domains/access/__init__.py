# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role- and organization-scoped authorization.

Exports:
    GlobalRole, OrgRole, Action, ResourceKind: Closed vocabularies.
    Principal: Authenticated caller.
    is_action_allowed: Pure policy function.
    MembershipAccessor: Membership and role lookups.
    PermissionGate: Runs operations only when the policy allows them.
"""

from src.domains.access.gate import PermissionGate
from src.domains.access.membership import MembershipAccessor
from src.domains.access.policy import is_action_allowed, is_manager
from src.domains.access.roles import (
    MANAGER_ROLES,
    Action,
    GlobalRole,
    OrgRole,
    Principal,
    ResourceKind,
)

__all__ = [
    "Action",
    "GlobalRole",
    "MANAGER_ROLES",
    "MembershipAccessor",
    "OrgRole",
    "PermissionGate",
    "Principal",
    "ResourceKind",
    "is_action_allowed",
    "is_manager",
]
