import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/app.db")).resolve()
        self.access_token_secret = os.getenv("ACCESS_TOKEN_SECRET", "change-me")
        self.access_token_exp_minutes = self._get_int("ACCESS_TOKEN_EXP_MINUTES", default=60)
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL", "")
        self.smtp_from_name = os.getenv("SMTP_FROM_NAME", "Account Service")
        self.smtp_timeout_seconds = self._get_int("SMTP_TIMEOUT_SECONDS", default=30)
        self.frontend_base_url = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
        self.verification_token_ttl_seconds = self._get_int(
            "VERIFICATION_TOKEN_TTL_SECONDS", default=24 * 60 * 60
        )
        self.password_reset_token_ttl_seconds = self._get_int(
            "PASSWORD_RESET_TOKEN_TTL_SECONDS", default=60 * 60
        )
        self.password_hash_workers = self._get_int("PASSWORD_HASH_WORKERS", default=2)
        self.email_workers = self._get_int("EMAIL_WORKERS", default=2)
        self.admin_default_email = os.getenv("ADMIN_EMAIL")
        self.admin_default_username = os.getenv("ADMIN_USERNAME", "admin")
        self.admin_default_password = os.getenv("ADMIN_PASSWORD")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
