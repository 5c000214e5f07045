"""Service for issuing and redeeming single-use expiring tokens."""

from __future__ import annotations

import hashlib
import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from ..domain.errors import TokenError, TokenFailure, ValidationError
from ..domain.models import TokenType
from ..domain.ports.persistence import TokenRepository

logger = logging.getLogger(__name__)

TOKEN_LENGTH = 32
TOKEN_ALPHABET = string.ascii_letters + string.digits
_TOKEN_CHARS = frozenset(TOKEN_ALPHABET)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenLifecycleManager:
    """Mints opaque tokens, persists their digests and redeems them exactly once."""

    def __init__(self, token_repository: TokenRepository, clock: Clock = _utcnow) -> None:
        self._tokens = token_repository
        self._clock = clock

    async def issue(self, account_id: Optional[UUID], token_type: TokenType, ttl_seconds: int) -> str:
        """
        Create and persist a new token.

        Args:
            account_id: Account the token is bound to, if any
            token_type: Flow the token is valid for
            ttl_seconds: Lifetime in seconds

        Returns:
            The raw token string. Only its SHA-256 digest is stored, so this is
            the one and only time the value is available.
        """
        if ttl_seconds <= 0:
            raise ValidationError("Token lifetime must be positive.")

        token = self._generate_token()
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        record = self._tokens.create_token(
            user_id=account_id,
            token_hash=self._hash_token(token),
            token_type=token_type,
            expires_at=expires_at,
        )
        logger.info(
            "Issued %s token %s for account %s (expires %s)",
            token_type.value,
            record.id,
            account_id,
            expires_at.isoformat(),
        )
        return token

    async def validate_and_consume(self, token: str, expected_type: TokenType) -> Optional[UUID]:
        """
        Redeem a token, returning the account it is bound to.

        Raises:
            TokenError: NOT_FOUND, EXPIRED, ALREADY_USED or TYPE_MISMATCH
        """
        if not token or len(token) != TOKEN_LENGTH or not set(token) <= _TOKEN_CHARS:
            raise TokenError(TokenFailure.NOT_FOUND)

        record = self._tokens.get_token_by_hash(self._hash_token(token))
        if record is None:
            raise TokenError(TokenFailure.NOT_FOUND)

        now = self._clock()
        if record.is_expired(now):
            raise TokenError(TokenFailure.EXPIRED)
        if record.consumed:
            raise TokenError(TokenFailure.ALREADY_USED)
        if record.token_type is not expected_type:
            logger.warning(
                "Token %s presented as %s but was issued as %s",
                record.id,
                expected_type.value,
                record.token_type.value,
            )
            raise TokenError(TokenFailure.TYPE_MISMATCH)

        # Lost a concurrent race for the same token.
        if not self._tokens.consume_token(record.id, now):
            raise TokenError(TokenFailure.ALREADY_USED)

        logger.info("Consumed %s token %s", record.token_type.value, record.id)
        return record.user_id

    @staticmethod
    def _generate_token() -> str:
        return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))

    @staticmethod
    def _hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
