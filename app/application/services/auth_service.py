from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from ...domain.contracts import CreateUserInput
from ...domain.errors import AuthenticationError, NotFoundError
from ...domain.models import Role, TokenType, User
from ...domain.policies.authorization import Claims
from ...services.credential_service import AUTHENTICATION_FAILED, CredentialManager
from ...services.notification_dispatcher import NotificationDispatcher
from ...services.token_service import TokenLifecycleManager
from .account_service import AccountLifecycleService

logger = logging.getLogger(__name__)

PASSWORD_RESET_TOKEN_TTL_SECONDS = 60 * 60


@dataclass(slots=True)
class AccessToken:
    access_token: str
    expires_in: int
    token_type: str = "bearer"


class AuthService:
    """Login, request identity resolution and the out-of-band account flows."""

    def __init__(
        self,
        accounts: AccountLifecycleService,
        credentials: CredentialManager,
        tokens: TokenLifecycleManager,
        notifications: NotificationDispatcher,
        secret_key: str,
        token_exp_minutes: int = 60,
        reset_ttl_seconds: int = PASSWORD_RESET_TOKEN_TTL_SECONDS,
        algorithm: str = "HS256",
    ) -> None:
        if not secret_key:
            raise RuntimeError("ACCESS_TOKEN_SECRET is not configured.")
        if secret_key == "change-me":
            logger.warning("ACCESS_TOKEN_SECRET is using the default value. Configure a real secret in production.")
        self._accounts = accounts
        self._credentials = credentials
        self._tokens = tokens
        self._notifications = notifications
        self._secret_key = secret_key
        self._token_exp_minutes = token_exp_minutes
        self._reset_ttl_seconds = reset_ttl_seconds
        self._algorithm = algorithm
        self._dummy_hash: Optional[str] = None

    # ------------------------------------------------------------------
    async def ensure_default_admin(
        self, email: Optional[str], username: Optional[str], password: Optional[str]
    ) -> Optional[User]:
        if not email or not password:
            return None
        try:
            return await self._accounts.lookup_by_email(email)
        except NotFoundError:
            pass
        logger.info("Creating default administrator account for %s", email)
        return await self._accounts.register(
            CreateUserInput(email=email, username=username or "admin", password=password, role=Role.ADMIN),
            is_verified=True,
        )

    async def login(self, email: str, password: str) -> AccessToken:
        """Authenticate by email and password.

        Unknown, deleted and disabled accounts fail exactly like a wrong
        password so the endpoint cannot be used to probe for accounts.
        """
        try:
            user = await self._accounts.lookup_by_email(email)
        except NotFoundError:
            await self._burn_verification(password)
            raise AuthenticationError(AUTHENTICATION_FAILED) from None

        await self._credentials.verify(password, user.password_hash)
        if not user.is_active:
            raise AuthenticationError(AUTHENTICATION_FAILED)

        if self._credentials.needs_rehash(user.password_hash):
            await self._accounts.store_password_hash(user.id, await self._credentials.hash(password))
            logger.info("Upgraded password hash for account %s", user.id)

        return self._create_token(user)

    async def resolve_claims(self, token: str) -> Claims:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise AuthenticationError("Invalid or expired token") from exc
        try:
            subject = UUID(str(payload.get("sub")))
        except (TypeError, ValueError) as exc:
            logger.warning("Rejected access token with malformed subject claim")
            raise AuthenticationError("Invalid token subject") from exc
        try:
            user = await self._accounts.lookup_by_id(subject)
        except NotFoundError as exc:
            raise AuthenticationError("User not found") from exc
        if not user.is_active:
            raise AuthenticationError("Account disabled")
        return Claims(subject=user.id, role=user.role)

    # Email verification -----------------------------------------------------
    async def register(self, data: CreateUserInput) -> User:
        user = await self._accounts.register(replace(data, role=Role.USER))
        await self._notifications.send_verification_email(user.id, user.email, user.username)
        return user

    async def verify_email(self, token: str) -> User:
        account_id = await self._tokens.validate_and_consume(token, TokenType.EMAIL_VERIFICATION)
        if account_id is None:
            raise NotFoundError("User not found")
        user = await self._accounts.mark_email_verified(account_id)
        logger.info("Email verified for account %s", account_id)
        return user

    async def resend_verification(self, email: str) -> None:
        try:
            user = await self._accounts.lookup_by_email(email)
        except NotFoundError:
            logger.info("Verification resend requested for unknown email")
            return
        if user.is_verified:
            return
        await self._notifications.send_verification_email(user.id, user.email, user.username)

    # Password reset -------------------------------------------------------
    async def request_password_reset(self, email: str) -> None:
        try:
            user = await self._accounts.lookup_by_email(email)
        except NotFoundError:
            logger.info("Password reset requested for unknown email")
            return
        token = await self._tokens.issue(user.id, TokenType.PASSWORD_RESET, self._reset_ttl_seconds)
        await self._notifications.send_password_reset_email(user.email, user.username, token)

    async def reset_password(self, token: str, new_password: str) -> None:
        # Checked before redemption so a weak password does not burn the token.
        self._credentials.check_strength(new_password)
        account_id = await self._tokens.validate_and_consume(token, TokenType.PASSWORD_RESET)
        if account_id is None:
            raise NotFoundError("User not found")
        await self._accounts.force_password_change(account_id, new_password)

    # ------------------------------------------------------------------
    def _create_token(self, user: User) -> AccessToken:
        now = datetime.now(tz=timezone.utc)
        expire = now + timedelta(minutes=self._token_exp_minutes)
        payload = {"sub": str(user.id), "role": user.role.value, "iat": now, "exp": expire}
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        return AccessToken(access_token=token, expires_in=self._token_exp_minutes * 60)

    async def _burn_verification(self, password: str) -> None:
        if self._dummy_hash is None:
            self._dummy_hash = await self._credentials.hash(secrets.token_urlsafe(16))
        try:
            await self._credentials.verify(password, self._dummy_hash)
        except AuthenticationError:
            pass
