"""User domain model for account management and authentication."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID


class Role(str, Enum):
    """Closed set of account roles."""

    USER = "user"
    ADMIN = "admin"


class User:
    """
    User entity representing both ordinary and administrator accounts.

    Attributes:
        id: Unique identifier
        email: User email address (unique among non-deleted accounts)
        username: Display name
        password_hash: Algorithm-tagged password hash
        role: Account role
        is_active: Whether the account may authenticate
        is_verified: Whether the email address has been verified
        created_at: Account creation timestamp
        updated_at: Last update timestamp
        deleted_at: Soft-delete marker, ``None`` while the account is live
    """

    def __init__(
        self,
        id: UUID,
        email: str,
        username: str,
        password_hash: str,
        role: Role = Role.USER,
        is_active: bool = True,
        is_verified: bool = False,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        deleted_at: Optional[datetime] = None,
    ):
        self.id = id
        self.email = email
        self.username = username
        self.password_hash = password_hash
        self.role = role
        self.is_active = is_active
        self.is_verified = is_verified
        self.created_at = created_at or datetime.now(timezone.utc)
        self.updated_at = updated_at or datetime.now(timezone.utc)
        self.deleted_at = deleted_at

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def __repr__(self) -> str:
        return (
            f"<User id={self.id} email={self.email} role={self.role.value} "
            f"active={self.is_active} verified={self.is_verified}>"
        )
