"""Error taxonomy for the account lifecycle.

Domain errors carry a stable machine-readable ``code`` and the HTTP status the
API layer answers with. Infrastructure errors (:class:`DispatchFailure`,
:class:`StoreUnavailable`) are reported to callers as a generic server error.
"""

from __future__ import annotations

from typing import Optional


class AccountError(Exception):
    """Base class for every error raised by the account service."""

    code = "server_error"
    status_code = 500
    default_message = "Internal server error"
    internal = False

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        if self.internal:
            return AccountError.default_message
        return self.message


class InvalidInput(AccountError):
    code = "invalid_input"
    status_code = 400
    default_message = "Missing or invalid fields"


class Conflict(AccountError):
    code = "email_taken"
    status_code = 400
    default_message = "Email already registered"


class NotFound(AccountError):
    code = "token_not_found"
    status_code = 400
    default_message = "Verification token not found"


class Expired(AccountError):
    code = "token_expired"
    status_code = 400
    default_message = "Verification token has expired"


class AlreadyVerified(AccountError):
    code = "already_verified"
    status_code = 400
    default_message = "Account already verified"


class InvalidCredentials(AccountError):
    code = "invalid_credentials"
    status_code = 401
    default_message = "Invalid email or password"


class NotVerified(AccountError):
    code = "not_verified"
    status_code = 403
    default_message = "Email not verified. Please verify your email first."


class InvalidOrExpiredToken(AccountError):
    code = "invalid_or_expired_token"
    status_code = 400
    default_message = "Invalid or expired reset token"


class Unauthenticated(AccountError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Invalid or expired token"


class InvalidToken(AccountError):
    """Session token failed signature, structure or expiry checks."""

    code = "unauthenticated"
    status_code = 401
    default_message = "Invalid or expired token"


class DispatchFailure(AccountError):
    internal = True
    default_message = "Failed to send email"


class StoreUnavailable(AccountError):
    internal = True
    default_message = "Credential store unavailable"
