"""Service for sending emails."""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmailMessage:
    to_email: str
    subject: str
    html_body: str
    text_body: str


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "Account Service",
        timeout_seconds: float = 30.0,
    ):
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.timeout_seconds = timeout_seconds
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def send(self, message: EmailMessage) -> None:
        """
        Send an email via SMTP.

        Blocking; callers on the event loop must run it in a thread.

        Raises:
            smtplib.SMTPException: If the SMTP exchange fails
            OSError: If the server cannot be reached
        """
        if not self.enabled:
            # Development fallback: no SMTP configured, surface the message in the logs.
            logger.warning(
                "SMTP not configured; email to %s (%s) was not sent.",
                message.to_email,
                message.subject,
            )
            logger.debug("Undelivered email body for %s:\n%s", message.to_email, message.text_body)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = message.to_email

        msg.attach(MIMEText(message.text_body, "plain", "utf-8"))
        msg.attach(MIMEText(message.html_body, "html", "utf-8"))

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout_seconds) as server:
            server.starttls()
            server.login(self.smtp_username, self.smtp_password)
            server.send_message(msg)

        logger.info("Email sent to %s (%s)", message.to_email, message.subject)
