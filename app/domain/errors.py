"""Error taxonomy shared by the domain and application layers.

Services raise these exceptions directly; the HTTP layer maps each kind to a
status code and a user-safe message (see ``app.presentation.api.errors``).
"""

from __future__ import annotations

from enum import Enum


class AppError(Exception):
    """Base class for every error the request boundary knows how to render."""

    kind = "internal"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or duplicate input, weak password."""

    kind = "validation"


class ConflictError(ValidationError):
    """Unique constraint violation (surfaced to callers as a validation error)."""


class AuthenticationError(AppError):
    """Wrong password or unusable credential."""

    kind = "authentication"


class AuthorizationError(AppError):
    """The actor lacks permission for the requested action or field."""

    kind = "authorization"


class NotFoundError(AppError):
    """Account or token absent or soft-deleted."""

    kind = "not_found"


class TokenFailure(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    TYPE_MISMATCH = "type_mismatch"


class TokenError(AppError):
    """A single-use token could not be redeemed.

    ``reason`` tells tests and logs which check failed; callers only ever see a
    generic invalid-token message.
    """

    kind = "invalid_token"

    def __init__(self, reason: TokenFailure) -> None:
        super().__init__(f"Token rejected: {reason.value}")
        self.reason = reason


class InternalError(AppError):
    """Cryptographic or infrastructure fault."""

    kind = "internal"
