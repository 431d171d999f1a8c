from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

from ..models import UserAccount

Filter = Mapping[str, Any]
"""Document-style filter: ``{"field": value}`` or ``{"field": {"$gt": value}}``."""


class CredentialStore(Protocol):
    """Abstract storage for user account records.

    Implementations raise :class:`~account_service.domain.errors.StoreUnavailable`
    for any driver failure and :class:`~account_service.domain.errors.Conflict`
    when an insert would duplicate an email address.
    """

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def find_one(self, filter: Filter) -> Optional[UserAccount]:
        ...

    def insert_one(self, record: Dict[str, Any]) -> int:
        ...

    def update_one(
        self,
        filter: Filter,
        set: Optional[Dict[str, Any]] = None,
        unset: Iterable[str] = (),
    ) -> bool:
        """Apply ``set``/``unset`` to the first matching record.

        Returns ``True`` when a record matched the filter. The match and the
        write happen atomically, so the filter doubles as a precondition.
        """
        ...

    def delete_one(self, filter: Filter) -> bool:
        ...
