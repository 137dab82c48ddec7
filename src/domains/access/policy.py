# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pure authorization policy.

No database access here: the gate resolves roles and hands them in.
"""

from src.domains.access.roles import MANAGER_ROLES, Action, GlobalRole, OrgRole


def is_action_allowed(
    global_role: GlobalRole,
    org_role: OrgRole | None,
    action: Action,
) -> bool:
    """Decide whether a caller may perform an action in an organization.

    Args:
        global_role: Caller's platform role.
        org_role: Caller's role in the target organization, None when the
            caller has no membership there.
        action: Requested action.

    Returns:
        True when the action is allowed.

    Example:
        >>> is_action_allowed(GlobalRole.MEMBER, OrgRole.MEMBER, Action.READ)
        True
        >>> is_action_allowed(GlobalRole.MEMBER, OrgRole.MEMBER, Action.UPDATE)
        False
    """
    if global_role == GlobalRole.SUPER_ADMIN:
        return True

    if org_role is None:
        return False

    if action == Action.READ:
        return True

    return org_role in MANAGER_ROLES


def is_manager(global_role: GlobalRole, org_role: OrgRole | None) -> bool:
    """Check if the caller manages the organization (admin/owner or super-admin)."""
    if global_role == GlobalRole.SUPER_ADMIN:
        return True
    return org_role in MANAGER_ROLES
