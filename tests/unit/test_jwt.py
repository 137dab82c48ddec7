# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for session token utilities.

Tests the JWTManager class and token operations.
"""

import time
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from jose import jwt
from pydantic import SecretStr

from src.domains.auth.jwt import (
    InvalidTokenError,
    IssuedToken,
    JWTManager,
    TokenExpiredError,
    TokenPayload,
)

pytestmark = pytest.mark.unit

SECRET = "test-secret-key-for-jwt-testing"


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr(SECRET)
    settings.algorithm = "HS256"
    settings.session_expire_hours = 24
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_session_token_returns_token_and_expiry(
        self,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that create_session_token returns a signed token expiring in 24 hours."""
        before = time.time()

        result = jwt_manager.create_session_token(user_id=str(uuid4()), session_id=str(uuid4()))

        assert isinstance(result, IssuedToken)
        assert result.token.count(".") == 2
        lifetime = result.expires_at.timestamp() - before
        assert 24 * 3600 - 5 <= lifetime <= 24 * 3600 + 5

    def test_decode_token_returns_claims(self, jwt_manager: JWTManager) -> None:
        """Test that decode_token returns the user and session ids."""
        user_id = str(uuid4())
        session_id = str(uuid4())
        issued = jwt_manager.create_session_token(user_id=user_id, session_id=session_id)

        payload = jwt_manager.decode_token(issued.token)

        assert isinstance(payload, TokenPayload)
        assert payload.sub == user_id
        assert payload.sid == session_id
        assert payload.exp == int(issued.expires_at.timestamp())

    def test_tokens_are_unique(self, jwt_manager: JWTManager) -> None:
        """Test that two tokens for the same session differ."""
        first = jwt_manager.create_session_token(user_id="u", session_id="s")
        second = jwt_manager.create_session_token(user_id="u", session_id="s")

        assert first.token != second.token

    def test_decode_expired_token_raises(self, jwt_manager: JWTManager) -> None:
        """Test that an expired token raises TokenExpiredError."""
        now = int(time.time())
        token = jwt.encode(
            {"sub": "u", "sid": "s", "iat": now - 7200, "exp": now - 3600, "jti": "x"},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(TokenExpiredError):
            jwt_manager.decode_token(token)

    def test_decode_token_with_wrong_secret_raises(
        self,
        jwt_manager: JWTManager,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that a token signed with another secret is rejected."""
        other_settings = MagicMock()
        other_settings.secret_key = SecretStr("another-secret")
        other_settings.algorithm = "HS256"
        other_settings.session_expire_hours = 24
        issued = JWTManager(other_settings).create_session_token(user_id="u", session_id="s")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(issued.token)

    def test_decode_malformed_token_raises(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not.a.token")

    def test_decode_token_missing_session_claim_raises(self, jwt_manager: JWTManager) -> None:
        """Test that a validly signed token without a session id is rejected."""
        now = int(time.time())
        token = jwt.encode(
            {"sub": "u", "iat": now, "exp": now + 60, "jti": "x"},
            SECRET,
            algorithm="HS256",
        )

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)


class TestHashToken:
    """Tests for JWTManager.hash_token."""

    def test_hash_is_sha256_hex(self) -> None:
        digest = JWTManager.hash_token("abc")

        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_hash_is_deterministic(self) -> None:
        assert JWTManager.hash_token("token") == JWTManager.hash_token("token")
        assert JWTManager.hash_token("token") != JWTManager.hash_token("token2")
