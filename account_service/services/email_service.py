"""Outbound email transports."""

import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

import httpx

from account_service.core.config import Settings
from account_service.domain.ports.notifications import DeliveryResult, EmailDispatcher

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def html_to_text(html: str) -> str:
    """Rough plain-text alternative for an HTML body."""
    text = _TAG_RE.sub("", html)
    lines = (line.strip() for line in text.splitlines())
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


class SMTPEmailDispatcher(EmailDispatcher):
    """Send emails via SMTP with STARTTLS."""

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int = 587,
        smtp_username: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = "Bank of Atlantic",
        timeout: float = 20,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout

    def open(self) -> None:
        # A connection is opened per message.
        logger.info("SMTP email transport ready (%s:%s)", self.smtp_host, self.smtp_port)

    def close(self) -> None:
        pass

    def send(self, to: str, subject: str, html: str) -> DeliveryResult:
        """
        Send an email via SMTP.

        Args:
            to: Recipient email
            subject: Email subject
            html: HTML body, a plain text part is derived from it

        Returns:
            DeliveryResult describing the outcome
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(html_to_text(html), "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                if self.smtp_username:
                    server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s via SMTP: %s", to, exc)
            return DeliveryResult.failure(str(exc))

        logger.info("Email '%s' sent to %s via SMTP", subject, to)
        return DeliveryResult.success()


class ResendEmailDispatcher(EmailDispatcher):
    """Send emails through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        from_address: str,
        timeout: float = 20,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not api_key:
            raise RuntimeError("RESEND_API_KEY not set")
        self._api_key = api_key
        self._from = from_address
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def open(self) -> None:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def send(self, to: str, subject: str, html: str) -> DeliveryResult:
        if self._client is None:
            self.open()
        try:
            response = self._client.post(
                RESEND_API_URL,
                json={"from": self._from, "to": [to], "subject": subject, "html": html},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Resend rejected email to %s: %s %s",
                to,
                exc.response.status_code,
                exc.response.text[:200],
            )
            return DeliveryResult.failure(f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.error("Failed to reach Resend for %s: %s", to, exc)
            return DeliveryResult.failure(str(exc))

        logger.info("Email '%s' sent to %s via Resend", subject, to)
        return DeliveryResult.success()


class ConsoleEmailDispatcher(EmailDispatcher):
    """Development transport: logs the message instead of delivering it."""

    def open(self) -> None:
        logger.warning("No email transport configured; emails will only be logged.")

    def close(self) -> None:
        pass

    def send(self, to: str, subject: str, html: str) -> DeliveryResult:
        logger.info("[EMAIL] To: %s | Subject: %s\n%s", to, subject, html_to_text(html))
        return DeliveryResult.success()


def build_email_dispatcher(settings: Settings) -> EmailDispatcher:
    """Pick the transport named by EMAIL_TRANSPORT, or infer it from configured credentials."""
    transport = settings.email_transport
    if transport is None:
        if settings.resend_api_key:
            transport = "resend"
        elif settings.smtp_host:
            transport = "smtp"
        else:
            transport = "console"

    if transport == "resend":
        return ResendEmailDispatcher(
            api_key=settings.resend_api_key,
            from_address=settings.resend_from,
            timeout=settings.email_timeout_seconds,
        )
    if transport == "smtp":
        if not settings.smtp_host or not settings.smtp_from_email:
            raise RuntimeError("SMTP_HOST and SMTP_FROM_EMAIL are required for the smtp transport")
        return SMTPEmailDispatcher(
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_username=settings.smtp_username,
            smtp_password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.email_from_name,
            timeout=settings.email_timeout_seconds,
        )
    if transport == "console":
        return ConsoleEmailDispatcher()
    raise RuntimeError(f"Unknown EMAIL_TRANSPORT: {transport}")
