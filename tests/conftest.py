from __future__ import annotations

import re
import threading
from datetime import datetime, timedelta, timezone
from typing import List

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext

from app.application.services.account_service import AccountLifecycleService
from app.application.services.auth_service import AuthService
from app.core.app_factory import create_application
from app.core.config import Settings
from app.domain.contracts import CreateUserInput
from app.domain.models import Role
from app.domain.policies.authorization import AuthorizationPolicy, Claims
from app.infrastructure.persistence.sqlite import SQLitePersistence
from app.services.credential_service import CredentialManager
from app.services.email_service import EmailMessage
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.token_service import TokenLifecycleManager

FRONTEND_URL = "https://accounts.example.test"
STRONG_PASSWORD = "Str0ng!Passw0rd"
ADMIN_EMAIL = "root@example.com"
ADMIN_PASSWORD = "Adm1n!Passw0rd"

TOKEN_IN_URL = re.compile(r"/auth/(?:verify-email|reset-password)/([A-Za-z0-9]{32})")


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingSender:
    """Email sender that keeps every message instead of talking SMTP."""

    def __init__(self) -> None:
        self.messages: List[EmailMessage] = []
        self.fail = False
        self._cond = threading.Condition()

    def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP server unavailable")
        with self._cond:
            self.messages.append(message)
            self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 5.0) -> List[EmailMessage]:
        with self._cond:
            if not self._cond.wait_for(lambda: len(self.messages) >= count, timeout=timeout):
                raise AssertionError(f"expected {count} emails, got {len(self.messages)}")
            return list(self.messages)

    def last_token(self) -> str:
        match = TOKEN_IN_URL.search(self.messages[-1].text_body)
        assert match, self.messages[-1].text_body
        return match.group(1)


def fast_context() -> CryptContext:
    return CryptContext(
        schemes=["argon2"],
        deprecated="auto",
        argon2__memory_cost=1024,
        argon2__rounds=1,
        argon2__parallelism=1,
    )


@pytest.fixture()
def persistence(tmp_path):
    store = SQLitePersistence(tmp_path / "accounts.db")
    yield store
    store.close()


@pytest.fixture()
def credentials():
    manager = CredentialManager(max_workers=2, context=fast_context())
    yield manager
    manager.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def token_manager(persistence, clock) -> TokenLifecycleManager:
    return TokenLifecycleManager(persistence, clock=clock)


@pytest.fixture()
def policy() -> AuthorizationPolicy:
    return AuthorizationPolicy()


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
async def dispatcher(token_manager, sender):
    instance = NotificationDispatcher(token_manager, sender, FRONTEND_URL)
    await instance.start()
    yield instance
    await instance.stop()


@pytest.fixture()
def accounts(persistence, credentials, policy) -> AccountLifecycleService:
    return AccountLifecycleService(persistence, credentials, policy)


@pytest.fixture()
async def auth_service(accounts, credentials, token_manager, dispatcher) -> AuthService:
    return AuthService(
        accounts=accounts,
        credentials=credentials,
        tokens=token_manager,
        notifications=dispatcher,
        secret_key="test-secret",
    )


@pytest.fixture()
async def alice(accounts):
    return await accounts.register(
        CreateUserInput(email="alice@example.com", username="alice", password=STRONG_PASSWORD)
    )


@pytest.fixture()
async def admin(accounts):
    return await accounts.register(
        CreateUserInput(email="admin@example.com", username="admin", password=STRONG_PASSWORD, role=Role.ADMIN),
        is_verified=True,
    )


def claims_for(user) -> Claims:
    return Claims(subject=user.id, role=user.role)


@pytest.fixture()
def api_sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def api_client(tmp_path, monkeypatch, api_sender):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("ACCESS_TOKEN_SECRET", "api-test-secret")
    monkeypatch.setenv("FRONTEND_BASE_URL", FRONTEND_URL)
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("ADMIN_USERNAME", "root")
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    app = create_application(settings=Settings(), email_sender=api_sender)
    with TestClient(app) as client:
        yield client
