"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .models import Role


@dataclass(slots=True)
class CreateUserInput:
    """Inputs required to register an account."""

    email: str
    username: str
    password: str
    role: Role = Role.USER


@dataclass(slots=True)
class UpdateUserInput:
    """Basic-field changes; ``None`` leaves a field untouched."""

    email: Optional[str] = None
    username: Optional[str] = None
    is_active: Optional[bool] = None

    def is_empty(self) -> bool:
        return self.email is None and self.username is None and self.is_active is None
