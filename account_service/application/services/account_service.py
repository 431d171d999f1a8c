from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from ...domain.errors import (
    AlreadyVerified,
    Conflict,
    DispatchFailure,
    Expired,
    InvalidCredentials,
    InvalidInput,
    InvalidOrExpiredToken,
    NotFound,
    NotVerified,
    StoreUnavailable,
)
from ...domain.models import DEFAULT_ACCOUNT_TYPE, UserAccount
from ...domain.ports.notifications import EmailDispatcher
from ...domain.ports.persistence import CredentialStore
from ...services import email_templates
from ...services.passwords import PasswordHasher
from ...services.tokens import TokenGenerator, utcnow

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass(slots=True)
class RegistrationResult:
    account: UserAccount
    verification_token: str


@dataclass(slots=True)
class LoginResult:
    account: UserAccount
    session_token: str


class AccountLifecycleService:
    """Owns the account state machine: register, verify, login, forgot and reset password.

    The service keeps no state between calls. Every consuming write is a
    conditional update on the store, filtered on the token still being
    present, so a token can only ever be redeemed once.
    """

    def __init__(
        self,
        store: CredentialStore,
        password_hasher: PasswordHasher,
        token_generator: TokenGenerator,
        email_dispatcher: EmailDispatcher,
        frontend_base_url: str,
        verification_ttl: timedelta = timedelta(hours=24),
        reset_ttl: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._passwords = password_hasher
        self._tokens = token_generator
        self._email = email_dispatcher
        self._frontend_base_url = frontend_base_url.rstrip("/")
        self._verification_ttl = verification_ttl
        self._reset_ttl = reset_ttl
        self._clock = clock

    # Registration -----------------------------------------------------------
    def register(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        account_type: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        country: Optional[str] = None,
        zip_code: Optional[str] = None,
    ) -> RegistrationResult:
        """
        Create an unverified account and email its verification link.

        Returns:
            RegistrationResult with the stored account and the raw verification token

        Raises:
            InvalidInput: Missing or malformed email, missing or oversized password
            Conflict: An account already uses this email
            DispatchFailure: The verification email could not be sent; the
                account has been removed again
        """
        email_clean = normalize_email(email)
        if not email_clean or not password:
            raise InvalidInput("Email and password are required")
        try:
            validate_email(email_clean, check_deliverability=False)
        except EmailNotValidError as exc:
            raise InvalidInput(f"Invalid email address: {exc}") from exc
        if not self._passwords.is_acceptable(password):
            raise InvalidInput("Password must be at most 72 bytes long")

        logger.info("Registration attempt for %s", email_clean)
        if self._store.find_one({"email": email_clean}):
            raise Conflict()

        now = self._clock()
        verification_token = self._tokens.new_one_time_token()
        record = {
            "email": email_clean,
            "password_hash": self._passwords.hash(password),
            "first_name": (first_name or "").strip() or None,
            "last_name": (last_name or "").strip() or None,
            "phone": phone or "",
            "address": address or "",
            "country": country or "",
            "zip_code": zip_code or "",
            "account_type": account_type or DEFAULT_ACCOUNT_TYPE,
            "verified": False,
            "verification_token": self._tokens.digest(verification_token),
            "verification_expires_at": now + self._verification_ttl,
            "created_at": now,
            "updated_at": now,
        }
        # Raises Conflict when a concurrent registration inserted first.
        user_id = self._store.insert_one(record)

        link = f"{self._frontend_base_url}/verify?token={verification_token}"
        subject, html = email_templates.verification_email(
            link,
            first_name=record["first_name"] or "",
            ttl_minutes=int(self._verification_ttl.total_seconds() // 60),
        )
        result = self._email.send(email_clean, subject, html)
        if not result.ok:
            logger.error(
                "Verification email to %s failed (%s); rolling back account %s",
                email_clean,
                result.reason,
                user_id,
            )
            self._discard_account(user_id, email_clean)
            raise DispatchFailure(f"Verification email could not be sent: {result.reason}")

        account = self._store.find_one({"id": user_id})
        if account is None:
            raise StoreUnavailable(f"Account {user_id} vanished after insert")
        logger.info("Account %s registered for %s, verification pending", user_id, email_clean)
        return RegistrationResult(account=account, verification_token=verification_token)

    def _discard_account(self, user_id: int, email: str) -> None:
        try:
            if not self._store.delete_one({"id": user_id}):
                logger.critical("Rollback found no account %s for %s to delete", user_id, email)
        except StoreUnavailable:
            logger.exception(
                "Rollback of account %s for %s failed; the account is left unreachable",
                user_id,
                email,
            )

    # Verification -----------------------------------------------------------
    def verify_account(self, token: Optional[str]) -> UserAccount:
        """
        Redeem a verification token.

        Raises:
            NotFound: No account holds this token, or it was consumed concurrently
            Expired: The token's expiry is not in the future
            AlreadyVerified: The holding account is already verified
        """
        if not token:
            raise NotFound()
        token_digest = self._tokens.digest(token)
        account = self._store.find_one({"verification_token": token_digest})
        if account is None:
            raise NotFound()

        now = self._clock()
        if account.verification_expires_at is None or account.verification_expires_at <= now:
            raise Expired()
        if account.verified:
            raise AlreadyVerified()

        consumed = self._store.update_one(
            {
                "id": account.id,
                "verification_token": token_digest,
                "verification_expires_at": {"$gt": now},
            },
            set={"verified": True},
            unset=("verification_token", "verification_expires_at"),
        )
        if not consumed:
            raise NotFound()

        logger.info("Account %s verified", account.id)
        verified = self._store.find_one({"id": account.id})
        return verified if verified is not None else account

    # Login ------------------------------------------------------------------
    def login(self, email: Optional[str], password: Optional[str]) -> LoginResult:
        """
        Check credentials and issue a session token.

        An unknown email and a wrong password raise the same
        :class:`InvalidCredentials`. An unverified account raises
        :class:`NotVerified` before the password is checked, which does reveal
        that the email is registered.
        """
        email_clean = normalize_email(email)
        password = password or ""
        account = self._store.find_one({"email": email_clean}) if email_clean else None
        if account is None:
            self._passwords.burn(password)
            logger.info("Login failed for %s: unknown email", email_clean)
            raise InvalidCredentials()

        if not account.verified:
            logger.info("Login refused for %s: email not verified", email_clean)
            raise NotVerified()

        if not self._passwords.verify(password, account.password_hash):
            logger.info("Login failed for %s: wrong password", email_clean)
            raise InvalidCredentials()

        session_token = self._tokens.issue_session_token(account)
        logger.info("Login successful for account %s", account.id)
        return LoginResult(account=account, session_token=session_token)

    # Password reset ---------------------------------------------------------
    def forgot_password(self, email: Optional[str]) -> None:
        """
        Start a password reset.

        Returns normally whether or not the email belongs to an account, and
        never reports email delivery problems.
        """
        email_clean = normalize_email(email)
        if not email_clean:
            return
        account = self._store.find_one({"email": email_clean})
        if account is None:
            logger.info("Password reset requested for unknown email")
            return

        reset_token = self._tokens.new_one_time_token()
        stored = self._store.update_one(
            {"id": account.id},
            set={
                "reset_token": self._tokens.digest(reset_token),
                "reset_expires_at": self._clock() + self._reset_ttl,
            },
        )
        if not stored:
            logger.info("Account %s disappeared before its reset token was stored", account.id)
            return

        link = f"{self._frontend_base_url}/reset-password?token={reset_token}"
        subject, html = email_templates.password_reset_email(
            link, ttl_minutes=int(self._reset_ttl.total_seconds() // 60)
        )
        result = self._email.send(account.email, subject, html)
        if result.ok:
            logger.info("Password reset email sent for account %s", account.id)
        else:
            logger.warning(
                "Password reset email for account %s failed: %s", account.id, result.reason
            )

    def reset_password(self, token: Optional[str], new_password: Optional[str]) -> None:
        """
        Redeem a reset token and store a new password.

        Raises:
            InvalidInput: The new password is missing or longer than 72 bytes
            InvalidOrExpiredToken: No unexpired reset is pending for this token
        """
        if not new_password or not self._passwords.is_acceptable(new_password):
            raise InvalidInput("A new password of at most 72 bytes is required")
        if not token:
            raise InvalidOrExpiredToken()

        token_digest = self._tokens.digest(token)
        now = self._clock()
        pending = {"reset_token": token_digest, "reset_expires_at": {"$gt": now}}
        account = self._store.find_one(pending)
        if account is None:
            raise InvalidOrExpiredToken()

        consumed = self._store.update_one(
            {"id": account.id, **pending},
            set={"password_hash": self._passwords.hash(new_password)},
            unset=("reset_token", "reset_expires_at"),
        )
        if not consumed:
            raise InvalidOrExpiredToken()
        logger.info("Password reset completed for account %s", account.id)
