"""Single-use token model for email verification and password reset."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class TokenType(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class VerificationToken:
    """
    VerificationToken entity for out-of-band account flows.

    Attributes:
        id: Unique identifier
        user_id: Owning account (``None`` for tokens not bound to an account)
        token_hash: SHA-256 digest of the opaque token string
        token_type: Flow the token was issued for
        created_at: Issue timestamp
        expires_at: Expiry timestamp
        consumed: Whether the token has already been redeemed
        consumed_at: Redemption timestamp
    """

    def __init__(
        self,
        id: UUID,
        user_id: Optional[UUID],
        token_hash: str,
        token_type: TokenType,
        created_at: datetime,
        expires_at: datetime,
        consumed: bool = False,
        consumed_at: Optional[datetime] = None,
    ):
        self.id = id
        self.user_id = user_id
        self.token_hash = token_hash
        self.token_type = token_type
        self.created_at = created_at
        self.expires_at = expires_at
        self.consumed = consumed
        self.consumed_at = consumed_at

    def is_expired(self, now: datetime) -> bool:
        """Check if the token is past its expiry at ``now``."""
        return now >= self.expires_at

    def __repr__(self) -> str:
        return (
            f"<VerificationToken id={self.id} user_id={self.user_id} "
            f"type={self.token_type.value} consumed={self.consumed}>"
        )
