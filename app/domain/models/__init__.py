"""Domain models for the account service."""

from .token import TokenType, VerificationToken
from .user import Role, User

__all__ = [
    "Role",
    "TokenType",
    "User",
    "VerificationToken",
]
