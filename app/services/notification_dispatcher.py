from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol
from uuid import UUID

from ..domain.models import TokenType
from .email_service import EmailMessage
from .email_templates import render
from .token_service import TokenLifecycleManager

logger = logging.getLogger(__name__)

VERIFICATION_TOKEN_TTL_SECONDS = 24 * 60 * 60


def describe_lifetime(seconds: int) -> str:
    """Human-readable lifetime for email copy, e.g. ``24 hours`` or ``30 minutes``."""
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    minutes = max(1, seconds // 60)
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> None:
        ...


class NotificationDispatcher:
    """Composes account emails and delivers them on background workers.

    Callers get control back as soon as a message is queued; delivery
    outcomes are only visible in the logs and ``failed_deliveries``.
    """

    def __init__(
        self,
        token_manager: TokenLifecycleManager,
        sender: EmailSender,
        frontend_base_url: str,
        *,
        verification_ttl_seconds: int = VERIFICATION_TOKEN_TTL_SECONDS,
        max_workers: int = 2,
    ) -> None:
        self._tokens = token_manager
        self._sender = sender
        self._frontend_base_url = frontend_base_url.rstrip("/")
        self._verification_ttl = verification_ttl_seconds
        self._max_workers = max_workers
        self._queue: asyncio.Queue[Optional[EmailMessage]] = asyncio.Queue()
        self._workers: List[asyncio.Task[None]] = []
        self._shutdown = asyncio.Event()
        self.failed_deliveries = 0

    async def start(self) -> None:
        if self._workers:
            return
        logger.info("Starting notification dispatcher with %s workers.", self._max_workers)
        self._shutdown.clear()
        loop = asyncio.get_running_loop()
        for _ in range(self._max_workers):
            task = loop.create_task(self._worker(), name="notification-dispatcher")
            self._workers.append(task)

    async def stop(self) -> None:
        """Deliver what is already queued, then stop the workers."""
        if not self._workers:
            return
        logger.info("Stopping notification dispatcher.")
        self._shutdown.set()
        for _ in self._workers:
            await self._queue.put(None)
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def join(self) -> None:
        """Wait until every queued message has been handled."""
        await self._queue.join()

    # ------------------------------------------------------------------
    async def send_verification_email(self, account_id: UUID, email: str, username: str) -> None:
        token = await self._tokens.issue(account_id, TokenType.EMAIL_VERIFICATION, self._verification_ttl)
        verification_url = f"{self._frontend_base_url}/auth/verify-email/{token}"
        rendered = render(
            "verification",
            {
                "username": username,
                "verification_url": verification_url,
                "expires_in": describe_lifetime(self._verification_ttl),
            },
        )
        self._schedule(EmailMessage(email, rendered.subject, rendered.html_body, rendered.text_body))

    async def send_password_reset_email(self, email: str, username: str, token: str) -> None:
        reset_url = f"{self._frontend_base_url}/auth/reset-password/{token}"
        rendered = render("password_reset", {"username": username, "reset_url": reset_url})
        self._schedule(EmailMessage(email, rendered.subject, rendered.html_body, rendered.text_body))

    # ------------------------------------------------------------------
    def _schedule(self, message: EmailMessage) -> None:
        if self._shutdown.is_set():
            logger.warning("Notification dispatcher is shutting down; dropping email to %s.", message.to_email)
            return
        self._queue.put_nowait(message)
        logger.debug("Queued email to %s (%s)", message.to_email, message.subject)

    async def _worker(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                self._queue.task_done()
                break
            try:
                await asyncio.to_thread(self._sender.send, message)
            except Exception:
                self.failed_deliveries += 1
                logger.exception("Failed to send email to %s (%s).", message.to_email, message.subject)
            finally:
                self._queue.task_done()
