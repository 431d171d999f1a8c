from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls) -> "DeliveryResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "DeliveryResult":
        return cls(ok=False, reason=reason)


class EmailDispatcher(Protocol):
    """Outbound transactional email capability."""

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def send(self, to: str, subject: str, html: str) -> DeliveryResult:
        ...
