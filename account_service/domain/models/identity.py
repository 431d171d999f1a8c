from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True, slots=True)
class Identity:
    """Subject asserted by a verified session token."""

    id: int
    email: str
    expires_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email}
