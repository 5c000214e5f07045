"""Role-based authorization decisions for account actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID

from ..errors import AuthorizationError
from ..models import Role


class Action(str, Enum):
    READ_SELF = "read-self"
    READ_ANY = "read-any"
    LIST_ALL = "list-all"
    CREATE = "create"
    UPDATE_OWN_BASIC_FIELDS = "update-own-basic-fields"
    UPDATE_ANY_BASIC_FIELDS = "update-any-basic-fields"
    UPDATE_ACTIVE_FLAG = "update-active-flag"
    DELETE_ANY = "delete-any"
    CHANGE_OWN_PASSWORD = "change-own-password"
    CHANGE_ANY_PASSWORD = "change-any-password"


# Ordinary actors may perform these on their own account only.
OWNER_ACTIONS = frozenset(
    {
        Action.READ_SELF,
        Action.UPDATE_OWN_BASIC_FIELDS,
        Action.CHANGE_OWN_PASSWORD,
    }
)

ADMIN_ACTIONS = frozenset(Action) - OWNER_ACTIONS


@dataclass(frozen=True, slots=True)
class Claims:
    """Authenticated identity carried by a single request."""

    subject: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class AuthorizationPolicy:
    """Pure decision function: may ``actor`` perform ``action`` on ``target_id``?"""

    def can_act(self, actor: Claims, action: Action, target_id: Optional[UUID] = None) -> bool:
        if actor.role is Role.ADMIN:
            return True
        if actor.role is Role.USER:
            if action in OWNER_ACTIONS:
                return target_id is not None and actor.subject == target_id
            if action in ADMIN_ACTIONS:
                return False
            raise ValueError(f"Unhandled action: {action!r}")
        raise ValueError(f"Unhandled role: {actor.role!r}")

    def require(
        self,
        actor: Claims,
        action: Action,
        target_id: Optional[UUID] = None,
        message: str = "Access denied.",
    ) -> None:
        if not self.can_act(actor, action, target_id):
            raise AuthorizationError(message)
