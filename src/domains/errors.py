# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain error taxonomy.

Every service raises subclasses of these. The API layer maps each family to
an HTTP status and renders the message in the response envelope.
"""


class DomainError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: Human-readable message returned to the client.
    """

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthenticatedError(DomainError):
    """No valid session."""

    status_code = 401


class PermissionDeniedError(DomainError):
    """Authenticated but lacking role or membership."""

    status_code = 403

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """Referenced entity does not exist."""

    status_code = 404


class ValidationFailureError(DomainError):
    """Input violates a business rule."""

    status_code = 422


class ConflictError(DomainError):
    """Entity already exists."""

    status_code = 409
