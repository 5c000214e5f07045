from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol
from uuid import UUID

from ..models import Role, TokenType, User, VerificationToken


class UserRepository(Protocol):
    """Account directory. Soft-deleted rows are invisible unless asked for."""

    def create_user(
        self,
        email: str,
        username: str,
        password_hash: str,
        role: Role,
        is_verified: bool = False,
    ) -> User:
        """Raises ``ConflictError`` when the email belongs to a live account."""
        ...

    def get_user_by_id(self, user_id: UUID, *, include_deleted: bool = False) -> Optional[User]:
        ...

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def list_users(self, limit: int, offset: int) -> List[User]:
        ...

    def count_users(self) -> int:
        ...

    def update_user(
        self,
        user_id: UUID,
        *,
        email: Optional[str] = None,
        username: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Optional[User]:
        """Returns ``None`` when the account is absent or deleted."""
        ...

    def update_user_password(self, user_id: UUID, password_hash: str) -> bool:
        ...

    def set_email_verified(self, user_id: UUID) -> Optional[User]:
        ...

    def soft_delete_user(self, user_id: UUID) -> bool:
        ...


class TokenRepository(Protocol):
    """Token store for single-use verification and reset tokens."""

    def create_token(
        self,
        user_id: Optional[UUID],
        token_hash: str,
        token_type: TokenType,
        expires_at: datetime,
    ) -> VerificationToken:
        ...

    def get_token_by_hash(self, token_hash: str) -> Optional[VerificationToken]:
        ...

    def consume_token(self, token_id: UUID, consumed_at: datetime) -> bool:
        """Atomically flag an unconsumed token as used.

        Returns ``False`` when the token was already consumed, so at most one
        caller ever observes ``True`` for a given token.
        """
        ...


class PersistenceGateway(
    UserRepository,
    TokenRepository,
    Protocol,
):
    """Composite gateway combining every persistence concern used by the app."""

    pass
