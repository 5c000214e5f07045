"""Service for password hashing, verification and strength policy."""

from __future__ import annotations

import asyncio
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from ..domain.errors import AuthenticationError, InternalError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

_STRENGTH_RULES = (
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter."),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter."),
    (re.compile(r"[0-9]"), "Password must contain at least one digit."),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character."),
)

AUTHENTICATION_FAILED = "Email or password incorrect"
UNENCODABLE_PASSWORD = "Password must be valid UTF-8 text."


def _encodable(password: str) -> bool:
    try:
        password.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class CredentialManager:
    """Hashes and verifies passwords off the event loop.

    Argon2id hashing is CPU bound, so every hash/verify call is dispatched to a
    dedicated bounded thread pool instead of running on the I/O scheduler.
    """

    def __init__(self, max_workers: int = 2, context: Optional[CryptContext] = None) -> None:
        self._pwd = context or CryptContext(schemes=["argon2"], deprecated="auto")
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="password-hash")

    # ------------------------------------------------------------------
    async def hash(self, password: str) -> str:
        """Return a salted, algorithm-tagged hash of ``password``."""
        if not _encodable(password):
            raise ValidationError(UNENCODABLE_PASSWORD)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._hash_sync, password)

    async def verify(self, password: str, stored_hash: str) -> None:
        """Raise ``AuthenticationError`` unless ``password`` matches ``stored_hash``."""
        if not _encodable(password):
            raise AuthenticationError(AUTHENTICATION_FAILED)
        loop = asyncio.get_running_loop()
        matches = await loop.run_in_executor(self._executor, self._verify_sync, password, stored_hash)
        if not matches:
            raise AuthenticationError(AUTHENTICATION_FAILED)

    def needs_rehash(self, stored_hash: str) -> bool:
        try:
            return self._pwd.needs_update(stored_hash)
        except (UnknownHashError, ValueError):
            return False

    @staticmethod
    def check_strength(password: str) -> None:
        if not _encodable(password):
            raise ValidationError(UNENCODABLE_PASSWORD)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        if len(password) > MAX_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_LENGTH} characters long.")
        for pattern, message in _STRENGTH_RULES:
            if not pattern.search(password):
                raise ValidationError(message)

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    def _hash_sync(self, password: str) -> str:
        try:
            return self._pwd.hash(password)
        except Exception as exc:
            logger.error("Password hashing primitive failed: %s", type(exc).__name__)
            raise InternalError("Failed to hash password") from exc

    def _verify_sync(self, password: str, stored_hash: str) -> bool:
        try:
            return self._pwd.verify(password, stored_hash)
        except (UnknownHashError, ValueError, TypeError) as exc:
            raise InternalError("Invalid password hash format") from exc
