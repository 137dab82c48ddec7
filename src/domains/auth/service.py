# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service for sign-up, sign-in and session resolution.

Sessions are server-side rows; the signed token only names one. A request
is authenticated when the token verifies, its session row exists and is
unexpired, and the user exists and is not banned. Anything else fails
closed.

Example:
    >>> auth_service = AuthService(db, jwt_manager)
    >>> session = await auth_service.sign_in(request, ip_address="10.0.0.1")
    >>> principal = await auth_service.resolve_session(session.token)
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.access.roles import GlobalRole, Principal
from src.domains.auth.jwt import InvalidTokenError, JWTManager, TokenExpiredError
from src.domains.auth.password import PasswordError, PasswordHasher
from src.domains.errors import (
    ConflictError,
    PermissionDeniedError,
    UnauthenticatedError,
    ValidationFailureError,
)
from src.infrastructure.database.models import User, UserSession
from src.infrastructure.database.models.base import generate_uuid
from src.models.auth import SessionResponse, SessionUser, SignInRequest, SignUpRequest

logger = logging.getLogger(__name__)


class AuthenticationError(UnauthenticatedError):
    """Base exception for authentication failures."""

    pass


class InvalidCredentialsError(AuthenticationError):
    """Raised when email or password is wrong."""

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class SessionInvalidError(AuthenticationError):
    """Raised when a token does not resolve to a live session."""

    def __init__(self) -> None:
        super().__init__("Not authenticated")


class UserBannedError(PermissionDeniedError):
    """Raised when a banned user tries to sign in."""

    def __init__(self) -> None:
        super().__init__("Your account has been banned")


class EmailExistsError(ConflictError):
    """Raised when signing up with an email that is already registered."""

    def __init__(self) -> None:
        super().__init__("An account with this email already exists")


class AuthService:
    """Sign-up, sign-in, sign-out and session resolution.

    Attributes:
        _db: Database session for queries.
        _jwt_manager: Session token manager.
        _hasher: Password hasher.
    """

    def __init__(
        self,
        db: AsyncSession,
        jwt_manager: JWTManager,
        hasher: PasswordHasher | None = None,
    ) -> None:
        self._db = db
        self._jwt_manager = jwt_manager
        self._hasher = hasher or PasswordHasher()

    async def sign_up(self, request: SignUpRequest) -> SessionUser:
        """Create an account with the global role member.

        Raises:
            EmailExistsError: If the email is already registered.
            ValidationFailureError: If the password cannot be hashed.
        """
        email = request.email.strip().lower()

        existing = await self._get_user_by_email(email)
        if existing:
            raise EmailExistsError()

        try:
            password_hash = self._hasher.hash(request.password)
        except PasswordError as e:
            raise ValidationFailureError(str(e)) from e

        user = User(
            email=email,
            name=request.name.strip(),
            password_hash=password_hash,
            role=GlobalRole.MEMBER.value,
        )
        self._db.add(user)
        try:
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            raise EmailExistsError() from e

        logger.info("User signed up: %s", user.id)
        return self._to_session_user(user)

    async def sign_in(
        self,
        request: SignInRequest,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> SessionResponse:
        """Verify credentials and open a session.

        Returns:
            SessionResponse including the signed token.

        Raises:
            InvalidCredentialsError: If email or password is wrong.
            UserBannedError: If the user is currently banned.
        """
        user = await self._get_user_by_email(request.email.strip().lower())
        if not user or not self._hasher.verify(request.password, user.password_hash):
            logger.info("Sign-in failed for %s", request.email)
            raise InvalidCredentialsError()

        if user.is_banned:
            logger.info("Sign-in refused for banned user %s", user.id)
            raise UserBannedError()

        session_id = generate_uuid()
        issued = self._jwt_manager.create_session_token(user.id, session_id)

        self._db.add(
            UserSession(
                id=session_id,
                user_id=user.id,
                token_hash=self._jwt_manager.hash_token(issued.token),
                expires_at=issued.expires_at,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        await self._db.commit()

        logger.info("User signed in: %s (session %s)", user.id, session_id)
        return SessionResponse(
            user=self._to_session_user(user),
            expires_at=issued.expires_at,
            token=issued.token,
        )

    async def sign_out(self, token: str) -> None:
        """Delete the session named by a token. Unknown tokens are ignored."""
        token_hash = self._jwt_manager.hash_token(token)
        result = await self._db.execute(
            delete(UserSession).where(UserSession.token_hash == token_hash)
        )
        await self._db.commit()
        if result.rowcount:
            logger.info("Session signed out")

    async def resolve_session(self, token: str | None) -> Principal:
        """Resolve a token into the authenticated caller.

        The user id and global role always come from the database.

        Raises:
            SessionInvalidError: If any check fails.
        """
        if not token:
            raise SessionInvalidError()

        try:
            payload = self._jwt_manager.decode_token(token)
        except (TokenExpiredError, InvalidTokenError):
            raise SessionInvalidError()

        result = await self._db.execute(
            select(UserSession).where(
                UserSession.token_hash == self._jwt_manager.hash_token(token)
            )
        )
        session = result.scalar_one_or_none()
        if (
            session is None
            or session.id != payload.sid
            or session.user_id != payload.sub
            or session.is_expired
        ):
            raise SessionInvalidError()

        user = await self._db.get(User, session.user_id)
        if user is None or user.is_banned:
            raise SessionInvalidError()

        return Principal(
            id=user.id,
            email=user.email,
            name=user.name,
            role=GlobalRole(user.role),
            session_id=session.id,
        )

    async def get_session(self, principal: Principal) -> SessionResponse:
        """Describe the caller's current session."""
        session = (
            await self._db.get(UserSession, principal.session_id)
            if principal.session_id
            else None
        )
        return SessionResponse(
            user=SessionUser(
                id=principal.id,
                email=principal.email,
                name=principal.name,
                role=principal.role.value,
            ),
            expires_at=session.expires_at if session else None,
        )

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_user_by_email(self, email: str) -> User | None:
        result = await self._db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    def _to_session_user(user: User) -> SessionUser:
        return SessionUser(id=user.id, email=user.email, name=user.name, role=user.role)
