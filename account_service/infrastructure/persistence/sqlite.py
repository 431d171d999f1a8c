import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ...domain.errors import Conflict, StoreUnavailable
from ...domain.models import UserAccount
from ...domain.ports.persistence import CredentialStore, Filter

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "email",
    "password_hash",
    "first_name",
    "last_name",
    "phone",
    "address",
    "country",
    "zip_code",
    "account_type",
    "verified",
    "verification_token",
    "verification_expires_at",
    "reset_token",
    "reset_expires_at",
    "created_at",
    "updated_at",
)

_NULLABLE = {
    "first_name",
    "last_name",
    "verification_token",
    "verification_expires_at",
    "reset_token",
    "reset_expires_at",
}

_OPERATORS = {
    "$eq": "=",
    "$ne": "!=",
    "$gt": ">",
    "$gte": ">=",
    "$lt": "<",
    "$lte": "<=",
}


class SQLiteCredentialStore(CredentialStore):
    """SQLite-backed implementation of the credential store."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    # Lifecycle --------------------------------------------------------------
    def open(self) -> None:
        if self._conn is not None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path, check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Unable to open credential store at {self._path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        self._conn = conn
        self._initialize()
        logger.info("Credential store opened at %s", self._path)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _initialize(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    first_name TEXT,
                    last_name TEXT,
                    phone TEXT NOT NULL DEFAULT '',
                    address TEXT NOT NULL DEFAULT '',
                    country TEXT NOT NULL DEFAULT '',
                    zip_code TEXT NOT NULL DEFAULT '',
                    account_type TEXT NOT NULL DEFAULT 'domiciliary',
                    verified INTEGER NOT NULL DEFAULT 0,
                    verification_token TEXT,
                    verification_expires_at TEXT,
                    reset_token TEXT,
                    reset_expires_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                CREATE UNIQUE INDEX IF NOT EXISTS idx_users_verification_token
                    ON users(verification_token);
                CREATE UNIQUE INDEX IF NOT EXISTS idx_users_reset_token
                    ON users(reset_token);
                """
            )

    # Queries ----------------------------------------------------------------
    def find_one(self, filter: Filter) -> Optional[UserAccount]:
        where, params = self._compile_filter(filter)
        with self._transaction() as conn:
            cur = conn.execute(f"SELECT * FROM users WHERE {where} LIMIT 1", params)
            row = cur.fetchone()
        if not row:
            return None
        return self._row_to_account(row)

    def insert_one(self, record: Dict[str, Any]) -> int:
        values = dict(record)
        values.pop("id", None)
        now = self._now()
        values.setdefault("created_at", now)
        values.setdefault("updated_at", now)
        for column in values:
            self._column(column)
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        params = [self._to_db(value) for value in values.values()]
        with self._transaction() as conn:
            cur = conn.execute(f"INSERT INTO users ({columns}) VALUES ({placeholders})", params)
            user_id = cur.lastrowid
        if user_id is None:
            raise StoreUnavailable("Failed to persist user.")
        return user_id

    def update_one(
        self,
        filter: Filter,
        set: Optional[Dict[str, Any]] = None,
        unset: Iterable[str] = (),
    ) -> bool:
        assignments: List[str] = []
        params: List[Any] = []
        for column, value in (set or {}).items():
            assignments.append(f"{self._column(column)} = ?")
            params.append(self._to_db(value))
        for column in unset:
            if self._column(column) not in _NULLABLE:
                raise ValueError(f"Field {column} cannot be unset")
            assignments.append(f"{column} = NULL")
        if not assignments:
            raise ValueError("update_one requires at least one field to set or unset")
        assignments.append("updated_at = ?")
        params.append(self._now())

        where, where_params = self._compile_filter(filter)
        sql = (
            f"UPDATE users SET {', '.join(assignments)} "
            f"WHERE id = (SELECT id FROM users WHERE {where} LIMIT 1)"
        )
        with self._transaction() as conn:
            cur = conn.execute(sql, params + where_params)
            return cur.rowcount > 0

    def delete_one(self, filter: Filter) -> bool:
        where, params = self._compile_filter(filter)
        with self._transaction() as conn:
            cur = conn.execute(
                f"DELETE FROM users WHERE id = (SELECT id FROM users WHERE {where} LIMIT 1)",
                params,
            )
            return cur.rowcount > 0

    # Helpers ----------------------------------------------------------------
    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self._conn
            if conn is None:
                raise StoreUnavailable("Credential store is not open.")
            try:
                with conn:
                    yield conn
            except sqlite3.IntegrityError as exc:
                if "users.email" in str(exc):
                    raise Conflict() from exc
                raise StoreUnavailable(f"Integrity error: {exc}") from exc
            except sqlite3.Error as exc:
                raise StoreUnavailable(f"Credential store error: {exc}") from exc

    def _compile_filter(self, filter: Filter) -> Tuple[str, List[Any]]:
        if not filter:
            raise ValueError("An empty filter would match every record")
        clauses: List[str] = []
        params: List[Any] = []
        for field, condition in filter.items():
            column = self._column(field)
            if isinstance(condition, Mapping):
                for operator, operand in condition.items():
                    sql_operator = _OPERATORS.get(operator)
                    if sql_operator is None:
                        raise ValueError(f"Unsupported filter operator: {operator}")
                    clauses.append(f"{column} {sql_operator} ?")
                    params.append(self._to_db(operand))
            elif condition is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(self._to_db(condition))
        return " AND ".join(clauses), params

    @staticmethod
    def _column(field: str) -> str:
        if field not in _COLUMNS:
            raise ValueError(f"Unknown user field: {field}")
        return field

    @classmethod
    def _to_db(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return cls._format_datetime(value)
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _format_datetime(value: datetime) -> str:
        # Fixed-width UTC text so that string comparison matches time order.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="microseconds")

    @classmethod
    def _now(cls) -> str:
        return cls._format_datetime(datetime.now(timezone.utc))

    @staticmethod
    def _parse_datetime(value: str) -> datetime:
        result = datetime.fromisoformat(value)
        if result.tzinfo is None:
            return result.replace(tzinfo=timezone.utc)
        return result.astimezone(timezone.utc)

    def _row_to_account(self, row: sqlite3.Row) -> UserAccount:
        def optional_datetime(column: str) -> Optional[datetime]:
            return self._parse_datetime(row[column]) if row[column] else None

        return UserAccount(
            id=row["id"],
            email=row["email"],
            password_hash=row["password_hash"],
            verified=bool(row["verified"]),
            created_at=self._parse_datetime(row["created_at"]),
            updated_at=self._parse_datetime(row["updated_at"]),
            first_name=row["first_name"],
            last_name=row["last_name"],
            phone=row["phone"],
            address=row["address"],
            country=row["country"],
            zip_code=row["zip_code"],
            account_type=row["account_type"],
            verification_token=row["verification_token"],
            verification_expires_at=optional_datetime("verification_expires_at"),
            reset_token=row["reset_token"],
            reset_expires_at=optional_datetime("reset_expires_at"),
        )
