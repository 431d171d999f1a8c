from typing import Optional

from fastapi import Depends, Header

from ...application.services.auth_gate import AuthGate
from ...core.dependencies import get_auth_gate
from ...domain.models import Identity


def require_identity(
    authorization: Optional[str] = Header(default=None),
    auth_gate: AuthGate = Depends(get_auth_gate),
) -> Identity:
    return auth_gate.authenticate(authorization)
