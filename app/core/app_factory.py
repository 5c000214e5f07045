from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.account_service import AccountLifecycleService
from ..application.services.auth_service import AuthService
from ..domain.policies.authorization import AuthorizationPolicy
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.errors import register_exception_handlers
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import user_router
from ..services.credential_service import CredentialManager
from ..services.email_service import EmailService
from ..services.notification_dispatcher import EmailSender, NotificationDispatcher
from ..services.token_service import TokenLifecycleManager

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    email_sender: Optional[EmailSender] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Account Service", lifespan=_create_lifespan(settings, email_sender))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(auth_router.router)
    app.include_router(user_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {"ok": True, "pending_emails": container.notification_dispatcher.pending}

    return app


def _create_lifespan(settings: Settings, email_sender: Optional[EmailSender]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        persistence = SQLitePersistence(settings.database_path)
        credential_manager = CredentialManager(max_workers=settings.password_hash_workers)
        token_manager = TokenLifecycleManager(persistence)
        policy = AuthorizationPolicy()
        sender = email_sender or EmailService(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_username=settings.smtp_username,
            smtp_password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            timeout_seconds=settings.smtp_timeout_seconds,
        )
        dispatcher = NotificationDispatcher(
            token_manager,
            sender,
            settings.frontend_base_url,
            verification_ttl_seconds=settings.verification_token_ttl_seconds,
            max_workers=settings.email_workers,
        )
        account_service = AccountLifecycleService(persistence, credential_manager, policy)
        auth_service = AuthService(
            accounts=account_service,
            credentials=credential_manager,
            tokens=token_manager,
            notifications=dispatcher,
            secret_key=settings.access_token_secret,
            token_exp_minutes=settings.access_token_exp_minutes,
            reset_ttl_seconds=settings.password_reset_token_ttl_seconds,
        )

        container = ApplicationContainer(
            settings=settings,
            persistence=persistence,
            credential_manager=credential_manager,
            token_manager=token_manager,
            authorization_policy=policy,
            notification_dispatcher=dispatcher,
            account_service=account_service,
            auth_service=auth_service,
        )

        app.state.container = container  # type: ignore[attr-defined]

        await dispatcher.start()
        await auth_service.ensure_default_admin(
            settings.admin_default_email,
            settings.admin_default_username,
            settings.admin_default_password,
        )
        logger.info("Account service started (database: %s)", settings.database_path)

        try:
            yield
        finally:
            await dispatcher.stop()
            credential_manager.close()
            persistence.close()

    return lifespan
