"""User account domain model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

DEFAULT_ACCOUNT_TYPE = "domiciliary"


@dataclass(slots=True)
class UserAccount:
    """
    One registrant.

    Attributes:
        id: Store-assigned identifier
        email: Normalised email address (unique, immutable)
        password_hash: bcrypt hash of the password
        verified: Whether the email address has been confirmed
        verification_token: Digest of the pending verification token
        verification_expires_at: Expiry of the pending verification token
        reset_token: Digest of the pending password reset token
        reset_expires_at: Expiry of the pending password reset token
    """

    id: int
    email: str
    password_hash: str
    verified: bool
    created_at: datetime
    updated_at: datetime
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: str = ""
    address: str = ""
    country: str = ""
    zip_code: str = ""
    account_type: str = DEFAULT_ACCOUNT_TYPE
    verification_token: Optional[str] = None
    verification_expires_at: Optional[datetime] = None
    reset_token: Optional[str] = None
    reset_expires_at: Optional[datetime] = None

    def to_public_dict(self) -> Dict[str, Any]:
        """Projection safe to return to clients: no hash, no tokens."""
        return {
            "_id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "accountType": self.account_type or DEFAULT_ACCOUNT_TYPE,
            "verified": self.verified,
            "accountActivated": self.verified,
            "createdAt": self.created_at.isoformat(),
        }

    def __repr__(self) -> str:
        return f"<UserAccount id={self.id} email={self.email} verified={self.verified}>"
