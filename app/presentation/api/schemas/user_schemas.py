"""Pydantic schemas for user API endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.domain.contracts import CreateUserInput, UpdateUserInput
from app.domain.models import Role, User


class UserResponse(BaseModel):
    """Response schema for user data."""

    id: UUID
    email: str
    username: str
    role: Role
    is_active: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            username=user.username,
            role=user.role,
            is_active=user.is_active,
            is_verified=user.is_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class CreateUserRequest(BaseModel):
    """Request schema for administrator-created accounts."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., max_length=128)
    role: Role = Role.USER

    def to_input(self) -> CreateUserInput:
        return CreateUserInput(
            email=self.email,
            username=self.username,
            password=self.password,
            role=self.role,
        )


class UpdateUserRequest(BaseModel):
    """Request schema for basic-field updates."""

    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    is_active: Optional[bool] = None

    def to_input(self) -> UpdateUserInput:
        return UpdateUserInput(
            email=self.email,
            username=self.username,
            is_active=self.is_active,
        )


class UpdatePasswordRequest(BaseModel):
    """Request schema for password changes.

    ``current_password`` is required when changing your own password and
    ignored when an administrator resets another account.
    """

    current_password: Optional[str] = None
    new_password: str = Field(..., max_length=128)


class PaginatedUsersResponse(BaseModel):
    """Response schema for the paginated user listing."""

    data: List[UserResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str
