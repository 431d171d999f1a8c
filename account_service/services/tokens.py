"""One-time and session token handling."""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from account_service.domain.errors import InvalidToken
from account_service.domain.models import Identity, UserAccount

logger = logging.getLogger(__name__)

ONE_TIME_TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenGenerator:
    """Issues opaque one-time tokens and signed session tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        session_expiration_minutes: int = 60 * 24,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not secret_key:
            raise RuntimeError("SESSION_TOKEN_SECRET is not configured.")
        if secret_key == "change-me":
            logger.warning(
                "SESSION_TOKEN_SECRET is using the default value. Configure a strong secret in production."
            )
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._session_expiration = timedelta(minutes=session_expiration_minutes)
        self._clock = clock

    @staticmethod
    def new_one_time_token() -> str:
        """Random URL-safe token with 256 bits of entropy."""
        return secrets.token_urlsafe(ONE_TIME_TOKEN_BYTES)

    @staticmethod
    def digest(token: str) -> str:
        """Storage form of a one-time token."""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def issue_session_token(self, account: UserAccount) -> str:
        """
        Create a signed session token for an account.

        Args:
            account: Authenticated account

        Returns:
            JWT carrying ``sub``, ``email``, ``iat`` and ``exp``
        """
        now = self._clock()
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "iat": now,
            "exp": now + self._session_expiration,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_session_token(self, token: str) -> Identity:
        """
        Verify a session token and return the identity it asserts.

        Raises:
            InvalidToken: On a bad signature, malformed token, missing claims
                or expiry. The cause is only logged.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            logger.debug("Rejected expired session token")
            raise InvalidToken() from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected session token: %s", exc)
            raise InvalidToken() from exc

        email = payload.get("email")
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            logger.debug("Rejected session token with non-numeric subject")
            raise InvalidToken() from exc
        if not isinstance(email, str) or not email:
            logger.debug("Rejected session token without email claim")
            raise InvalidToken()
        return Identity(
            id=user_id,
            email=email,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
