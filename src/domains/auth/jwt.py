# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session token management utilities.

Session tokens are JWTs signed with python-jose. A token names the user and
the server-side session row; the row (looked up by the token's SHA-256
hash) is the source of truth for revocation and expiry.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_session_token(user_id="u-1", session_id="s-1")
    >>> payload = jwt_manager.decode_token(token.token)
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """Session token claims.

    Attributes:
        sub: Subject (user ID).
        sid: Session row ID.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: Token ID, makes every token unique.
    """

    sub: str
    sid: str
    exp: int
    iat: int
    jti: str


class IssuedToken(BaseModel):
    """Newly signed session token and its expiry."""

    token: str
    expires_at: datetime


class JWTError(Exception):
    """Base exception for token operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is malformed or its signature is wrong."""

    pass


class JWTManager:
    """Session token creation and validation.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(hours=self._settings.session_expire_hours)

    def create_session_token(self, user_id: str, session_id: str) -> IssuedToken:
        """Sign a token for a session row.

        Args:
            user_id: User identifier.
            session_id: ID of the UserSession row the token belongs to.
        """
        now = datetime.now(timezone.utc)
        expires_at = now + self.session_lifetime

        payload = {
            "sub": str(user_id),
            "sid": str(session_id),
            "exp": int(expires_at.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        token = jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )
        return IssuedToken(token=token, expires_at=expires_at)

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a session token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
            return TokenPayload(
                sub=payload["sub"],
                sid=payload["sid"],
                exp=payload["exp"],
                iat=payload["iat"],
                jti=payload["jti"],
            )

        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except (JoseJWTError, KeyError, ValueError) as e:
            logger.debug("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 hex digest of a token, as stored on the session row."""
        return hashlib.sha256(token.encode()).hexdigest()
