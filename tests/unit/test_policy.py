# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the pure authorization policy."""

import pytest

from src.domains.access import Action, GlobalRole, OrgRole, is_action_allowed, is_manager

pytestmark = pytest.mark.unit

WRITE_ACTIONS = [Action.CREATE, Action.UPDATE, Action.DELETE, Action.INVITE]


class TestIsActionAllowed:
    """Tests for is_action_allowed."""

    @pytest.mark.parametrize("action", list(Action))
    @pytest.mark.parametrize("org_role", [None, OrgRole.MEMBER, OrgRole.ADMIN, OrgRole.OWNER])
    def test_super_admin_is_always_allowed(self, action: Action, org_role) -> None:
        """Test that super-admins pass regardless of membership."""
        assert is_action_allowed(GlobalRole.SUPER_ADMIN, org_role, action)

    @pytest.mark.parametrize("action", list(Action))
    def test_non_member_is_always_denied(self, action: Action) -> None:
        """Test that a caller without membership is denied every action."""
        assert not is_action_allowed(GlobalRole.MEMBER, None, action)

    def test_member_may_read(self) -> None:
        assert is_action_allowed(GlobalRole.MEMBER, OrgRole.MEMBER, Action.READ)

    @pytest.mark.parametrize("action", WRITE_ACTIONS)
    def test_member_may_not_write(self, action: Action) -> None:
        """Test that plain members are read-only."""
        assert not is_action_allowed(GlobalRole.MEMBER, OrgRole.MEMBER, action)

    @pytest.mark.parametrize("action", list(Action))
    @pytest.mark.parametrize("org_role", [OrgRole.ADMIN, OrgRole.OWNER])
    def test_admin_and_owner_may_do_everything(self, action: Action, org_role: OrgRole) -> None:
        assert is_action_allowed(GlobalRole.MEMBER, org_role, action)


class TestIsManager:
    """Tests for is_manager."""

    def test_super_admin_manages_without_membership(self) -> None:
        assert is_manager(GlobalRole.SUPER_ADMIN, None)

    @pytest.mark.parametrize(
        "org_role,expected",
        [(None, False), (OrgRole.MEMBER, False), (OrgRole.ADMIN, True), (OrgRole.OWNER, True)],
    )
    def test_manager_roles(self, org_role, expected: bool) -> None:
        assert is_manager(GlobalRole.MEMBER, org_role) is expected
