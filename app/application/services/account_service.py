from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email

from ...domain.contracts import CreateUserInput, UpdateUserInput
from ...domain.errors import AuthorizationError, NotFoundError, ValidationError
from ...domain.models import User
from ...domain.policies.authorization import Action, AuthorizationPolicy, Claims
from ...domain.ports.persistence import UserRepository
from ...services.credential_service import CredentialManager

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


@dataclass(slots=True)
class UserPage:
    items: List[User]
    total: int
    page: int
    limit: int
    total_pages: int


class AccountLifecycleService:
    """Registration, lookup, update, credential rotation and soft-deletion of accounts."""

    def __init__(
        self,
        users: UserRepository,
        credentials: CredentialManager,
        policy: AuthorizationPolicy,
    ) -> None:
        self._users = users
        self._credentials = credentials
        self._policy = policy

    # Registration ---------------------------------------------------------
    async def register(self, data: CreateUserInput, *, is_verified: bool = False) -> User:
        email = self._clean_email(data.email)
        username = self._clean_username(data.username)
        self._credentials.check_strength(data.password)

        password_hash = await self._credentials.hash(data.password)
        user = self._users.create_user(
            email=email,
            username=username,
            password_hash=password_hash,
            role=data.role,
            is_verified=is_verified,
        )
        logger.info("Registered account %s (%s) with role %s", user.id, user.email, user.role.value)
        return user

    # Queries --------------------------------------------------------------
    async def lookup_by_id(self, user_id: UUID) -> User:
        user = self._users.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def lookup_by_email(self, email: str) -> User:
        user = self._users.get_user_by_email(email.strip().lower())
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def get_for_actor(self, actor: Claims, user_id: UUID) -> User:
        action = Action.READ_SELF if actor.subject == user_id else Action.READ_ANY
        self._policy.require(actor, action, user_id, "Access denied. You can only view your own data.")
        return await self.lookup_by_id(user_id)

    async def list_paged(self, page: int, limit: int) -> UserPage:
        if page < 1:
            raise ValidationError("Page must be greater than or equal to 1.")
        if limit < 1:
            raise ValidationError("Limit must be greater than or equal to 1.")
        offset = (page - 1) * limit
        items = self._users.list_users(limit, offset)
        total = self._users.count_users()
        return UserPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )

    # Mutations ------------------------------------------------------------
    async def update(self, actor: Claims, target_id: UUID, data: UpdateUserInput) -> User:
        if actor.subject == target_id:
            action = Action.UPDATE_OWN_BASIC_FIELDS
        else:
            action = Action.UPDATE_ANY_BASIC_FIELDS
        self._policy.require(actor, action, target_id, "Access denied. You can only modify your own data.")
        if data.is_active is not None and not self._policy.can_act(actor, Action.UPDATE_ACTIVE_FLAG, target_id):
            raise AuthorizationError("Access denied. Only administrators can change a user's active status.")

        email = self._clean_email(data.email) if data.email is not None else None
        username = self._clean_username(data.username) if data.username is not None else None

        user = self._users.update_user(
            target_id,
            email=email,
            username=username,
            is_active=data.is_active,
        )
        if user is None:
            raise NotFoundError("User not found")
        if not data.is_empty():
            logger.info("Account %s updated by %s", target_id, actor.subject)
        return user

    async def change_own_password(self, user_id: UUID, current_password: str, new_password: str) -> None:
        self._credentials.check_strength(new_password)
        user = await self.lookup_by_id(user_id)
        await self._credentials.verify(current_password, user.password_hash)
        await self._store_password(user_id, new_password)
        logger.info("Account %s changed its password", user_id)

    async def force_password_change(self, user_id: UUID, new_password: str) -> None:
        self._credentials.check_strength(new_password)
        await self._store_password(user_id, new_password)
        logger.info("Password for account %s was reset without the current password", user_id)

    async def change_password(
        self,
        actor: Claims,
        target_id: UUID,
        current_password: Optional[str],
        new_password: str,
    ) -> None:
        """Route a password change to the self-service or privileged path."""
        if actor.subject == target_id:
            self._policy.require(actor, Action.CHANGE_OWN_PASSWORD, target_id)
            if not current_password:
                raise ValidationError("Current password is required.")
            await self.change_own_password(target_id, current_password, new_password)
            return

        self._policy.require(
            actor,
            Action.CHANGE_ANY_PASSWORD,
            target_id,
            "Access denied. You can only change your own password.",
        )
        await self.force_password_change(target_id, new_password)

    async def soft_delete(self, user_id: UUID) -> None:
        if not self._users.soft_delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("Account %s soft-deleted", user_id)

    async def mark_email_verified(self, user_id: UUID) -> User:
        user = self._users.set_email_verified(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def store_password_hash(self, user_id: UUID, password_hash: str) -> None:
        if not self._users.update_user_password(user_id, password_hash):
            raise NotFoundError("User not found")

    # Helpers --------------------------------------------------------------
    async def _store_password(self, user_id: UUID, password: str) -> None:
        password_hash = await self._credentials.hash(password)
        await self.store_password_hash(user_id, password_hash)

    @staticmethod
    def _clean_email(email: str) -> str:
        try:
            validated = validate_email(email.strip(), check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValidationError(f"Invalid email address: {exc}") from exc
        return validated.normalized.lower()

    @staticmethod
    def _clean_username(username: str) -> str:
        cleaned = username.strip()
        if not USERNAME_PATTERN.match(cleaned):
            raise ValidationError(
                "Username must be 3 to 50 characters of letters, digits, '.', '_' or '-'."
            )
        return cleaned
