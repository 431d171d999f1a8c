"""Domain models for the account service."""

from .identity import Identity
from .user import DEFAULT_ACCOUNT_TYPE, UserAccount

__all__ = [
    "DEFAULT_ACCOUNT_TYPE",
    "Identity",
    "UserAccount",
]
