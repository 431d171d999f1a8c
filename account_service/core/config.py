import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/accounts.db")).resolve()
        self.session_token_secret = os.getenv("SESSION_TOKEN_SECRET", "change-me")
        self.session_token_algorithm = os.getenv("SESSION_TOKEN_ALGORITHM", "HS256")
        self.session_token_exp_minutes = self._get_int("SESSION_TOKEN_EXP_MINUTES", default=60 * 24)
        self.verification_token_ttl_hours = self._get_int("VERIFICATION_TOKEN_TTL_HOURS", default=24)
        self.reset_token_ttl_minutes = self._get_int("RESET_TOKEN_TTL_MINUTES", default=60)
        self.password_hash_rounds = self._get_int("PASSWORD_HASH_ROUNDS", default=12)
        self.frontend_base_url = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000").rstrip("/")
        self.api_host = os.getenv("API_HOST", "127.0.0.1")
        self.api_port = self._get_int("API_PORT", default=8000)

        self.email_transport = (os.getenv("EMAIL_TRANSPORT") or "").strip().lower() or None
        self.email_from_name = os.getenv("EMAIL_FROM_NAME", "Bank of Atlantic")
        self.email_timeout_seconds = self._get_int("EMAIL_TIMEOUT_SECONDS", default=20)
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL", "")
        self.resend_api_key = os.getenv("RESEND_API_KEY", "").strip()
        self.resend_from = os.getenv("RESEND_FROM", "Bank of Atlantic <no-reply@bankofatlantic.co.uk>").strip()

        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None or value == "":
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
