from __future__ import annotations

import logging
from typing import Optional

from ...domain.errors import InvalidToken, Unauthenticated
from ...domain.models import Identity
from ...services.tokens import TokenGenerator

logger = logging.getLogger(__name__)


class AuthGate:
    """Stateless request-time check of bearer session tokens."""

    def __init__(self, token_generator: TokenGenerator) -> None:
        self._tokens = token_generator

    def authenticate(self, header: Optional[str]) -> Identity:
        if not header:
            raise Unauthenticated("Token missing")
        scheme, _, credentials = header.strip().partition(" ")
        credentials = credentials.strip()
        if scheme.lower() != "bearer" or not credentials or " " in credentials:
            raise Unauthenticated("Invalid authorization header")
        try:
            return self._tokens.decode_session_token(credentials)
        except InvalidToken as exc:
            raise Unauthenticated() from exc
