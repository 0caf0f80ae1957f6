"""SQLite-backed collections for users, quotes and comments."""
from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, ContextManager, Dict, Generic, Iterator, List, Optional, Protocol, Type, TypeVar

from .errors import StorageFault
from .models import Comment, Quote, User

logger = logging.getLogger("quotebook.storage")

DEFAULT_MAX_RECORD_BYTES = 1024
USER_KEY_BYTES = 144
ENTITY_KEY_BYTES = 44


class _Record(Protocol):
    def to_record(self) -> Dict[str, Any]:
        ...


R = TypeVar("R", bound=_Record)


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the quotebook database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "quotebook.sqlite3").resolve(strict=False)


def _serialize(record: Dict[str, Any]) -> str:
    return json.dumps(record, separators=(",", ":"), ensure_ascii=False)


class CollectionStore(Generic[R]):
    """Durable, insertion-ordered ``key -> record`` map stored in one table.

    Each collection enforces an upper bound on the encoded size of keys and
    records. Oversized writes raise :class:`StorageFault` and leave the table
    untouched. Every method runs in its own transaction.
    """

    def __init__(
        self,
        connect: Callable[[], ContextManager[sqlite3.Connection]],
        table: str,
        record_type: Type[R],
        *,
        max_key_bytes: int,
        max_record_bytes: int,
    ) -> None:
        self._connect = connect
        self._table = table
        self._record_type = record_type
        self.max_key_bytes = max_key_bytes
        self.max_record_bytes = max_record_bytes

    @property
    def name(self) -> str:
        return self._table

    def get(self, key: str) -> Optional[R]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT value FROM {self._table} WHERE key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return self._decode(row["value"])

    def insert(self, key: str, record: R) -> Optional[R]:
        """Store ``record`` under ``key`` and return the value it replaced."""

        encoded_key = key.encode("utf-8")
        if len(encoded_key) > self.max_key_bytes:
            raise StorageFault(
                f"Key for {self._table} is {len(encoded_key)} bytes; the limit is {self.max_key_bytes}"
            )
        payload = _serialize(record.to_record())
        size = len(payload.encode("utf-8"))
        if size > self.max_record_bytes:
            raise StorageFault(
                f"Record for {self._table} is {size} bytes; the limit is {self.max_record_bytes}"
            )

        with self._connect() as conn:
            row = conn.execute(
                f"SELECT value FROM {self._table} WHERE key = ?",
                (key,),
            ).fetchone()
            # An overwrite keeps the original row so insertion order is stable.
            conn.execute(
                f"""
                INSERT INTO {self._table} (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, payload),
            )
        if row is None:
            return None
        return self._decode(row["value"])

    def remove(self, key: str) -> Optional[R]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT value FROM {self._table} WHERE key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            conn.execute(f"DELETE FROM {self._table} WHERE key = ?", (key,))
        return self._decode(row["value"])

    def values(self) -> List[R]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT value FROM {self._table} ORDER BY seq").fetchall()
        return [self._decode(row["value"]) for row in rows]

    def __len__(self) -> int:
        with self._connect() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS total FROM {self._table}").fetchone()
        return int(row["total"])

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.get(key) is not None

    def _decode(self, raw: str) -> R:
        try:
            data = json.loads(raw)
            return self._record_type.from_record(data)  # type: ignore[attr-defined]
        except (ValueError, TypeError) as exc:
            raise StorageFault(f"Stored {self._table} record could not be decoded") from exc


class Database:
    """Simple wrapper around SQLite holding the three quotebook collections."""

    _TABLES = ("users", "quotes", "comments")

    def __init__(
        self,
        path: Path,
        *,
        max_user_bytes: int = DEFAULT_MAX_RECORD_BYTES,
        max_quote_bytes: int = DEFAULT_MAX_RECORD_BYTES,
        max_comment_bytes: int = DEFAULT_MAX_RECORD_BYTES,
    ) -> None:
        _ensure_directory(path)
        self._path = path
        self.users: CollectionStore[User] = CollectionStore(
            self._connection,
            "users",
            User,
            max_key_bytes=USER_KEY_BYTES,
            max_record_bytes=max_user_bytes,
        )
        self.quotes: CollectionStore[Quote] = CollectionStore(
            self._connection,
            "quotes",
            Quote,
            max_key_bytes=ENTITY_KEY_BYTES,
            max_record_bytes=max_quote_bytes,
        )
        self.comments: CollectionStore[Comment] = CollectionStore(
            self._connection,
            "comments",
            Comment,
            max_key_bytes=ENTITY_KEY_BYTES,
            max_record_bytes=max_comment_bytes,
        )

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection, committing on success and always closing it."""

        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            logger.error("Unable to open database %s: %s", self._path, exc)
            raise StorageFault(f"Unable to open database at {self._path}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("Database operation failed on %s: %s", self._path, exc)
            raise StorageFault(str(exc)) from exc
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self._connection() as conn:
            for table in self._TABLES:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        key TEXT NOT NULL UNIQUE,
                        value TEXT NOT NULL
                    )
                    """
                )


__all__ = ["CollectionStore", "Database", "resolve_database_path"]
