# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for password hashing."""

import pytest

from src.domains.auth.password import PasswordError, PasswordHasher

pytestmark = pytest.mark.unit


@pytest.fixture
def hasher() -> PasswordHasher:
    """Create hasher with a low cost factor."""
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher class."""

    def test_hash_is_bcrypt(self, hasher: PasswordHasher) -> None:
        """Test that hash returns a bcrypt hash, not the password."""
        hashed = hasher.hash("correct horse battery")

        assert hashed != "correct horse battery"
        assert hashed.startswith("$2")

    def test_hash_is_salted(self, hasher: PasswordHasher) -> None:
        assert hasher.hash("same password") != hasher.hash("same password")

    def test_verify_correct_password(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("correct horse battery")

        assert hasher.verify("correct horse battery", hashed) is True

    def test_verify_wrong_password(self, hasher: PasswordHasher) -> None:
        hashed = hasher.hash("correct horse battery")

        assert hasher.verify("wrong horse battery", hashed) is False

    def test_empty_password_cannot_be_hashed(self, hasher: PasswordHasher) -> None:
        with pytest.raises(PasswordError):
            hasher.hash("")

    def test_overlong_password_cannot_be_hashed(self, hasher: PasswordHasher) -> None:
        """Test that passwords over bcrypt's 72-byte limit are refused."""
        with pytest.raises(PasswordError):
            hasher.hash("é" * 37)

    @pytest.mark.parametrize(
        "password,stored",
        [("", "$2b$04$abc"), ("secret", ""), ("secret", "not-a-bcrypt-hash"), ("x" * 100, "$2b$04$abc")],
    )
    def test_verify_never_raises(self, hasher: PasswordHasher, password: str, stored: str) -> None:
        """Test that verify returns False for unusable input."""
        assert hasher.verify(password, stored) is False
