"""Persistence media for the key/value store.

A backend is a synchronous, string-addressable key/value facility with an
optional size limit. The store layer above it owns envelopes, expiry and
notification; backends only move strings.

Two implementations ship:
- MemoryBackend: dict-backed, used by tests and ephemeral sessions.
- SQLBackend: SQLAlchemy engine over a SQLite database.

Notes
- Sizes are measured as UTF-8 bytes of key + value.
- Do not log database URLs (they may contain credentials).
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised by a backend when a read or write cannot be completed."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the backend's capacity."""


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class StorageBackend(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        """Return the raw string for key, or None if absent."""

    def set_item(self, key: str, value: str) -> None:
        """Insert or replace key. Raises StorageQuotaExceeded when full."""

    def remove_item(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""

    def keys(self) -> list[str]:
        """All keys in insertion order."""


class MemoryBackend:
    """In-process backend with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        if quota_bytes is not None and quota_bytes < 0:
            raise ValueError(f"quota_bytes must be >= 0, got {quota_bytes}")
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def used_bytes(self) -> int:
        return sum(_entry_size(k, v) for k, v in self._items.items())

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            current = self._items.get(key)
            used = self.used_bytes() - (_entry_size(key, current) if current is not None else 0)
            if used + _entry_size(key, value) > self._quota_bytes:
                raise StorageQuotaExceeded(
                    f"writing {key!r} needs {_entry_size(key, value)} bytes, "
                    f"{self._quota_bytes - used} of {self._quota_bytes} available"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class SQLBackend:
    """SQLAlchemy-backed key/value table.

    The table is created on first use. Key order follows an explicit `seq`
    column assigned on first insert, so a key keeps its first position
    across updates, matching MemoryBackend, on any database with upsert.
    """

    def __init__(
        self,
        database_url: str,
        *,
        quota_bytes: Optional[int] = None,
        table: str = "kv_store",
    ) -> None:
        if not table.isidentifier():
            raise ValueError(f"table must be a plain identifier, got {table!r}")
        self._database_url = database_url
        self._quota_bytes = quota_bytes
        self._table = table
        self._engine: Any | None = None

    def _get_engine(self) -> Any:
        if self._engine is None:
            # Do not log the URL (it may contain secrets).
            self._engine = create_engine(self._database_url, echo=False, pool_pre_ping=True)
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        f"""
                        CREATE TABLE IF NOT EXISTS {self._table} (
                            key TEXT PRIMARY KEY,
                            value TEXT NOT NULL,
                            seq INTEGER NOT NULL
                        )
                        """
                    )
                )
            logger.debug(f"Initialized SQL key/value table {self._table}")
        return self._engine

    def _execute(self, sql: str, params: dict[str, Any] | None = None) -> list[Any]:
        try:
            with self._get_engine().begin() as conn:
                result = conn.execute(text(sql), params or {})
                return result.fetchall() if result.returns_rows else []
        except SQLAlchemyError as exc:
            raise StorageError(f"{self._table}: {exc.__class__.__name__}: {exc}") from exc

    def used_bytes(self) -> int:
        rows = self._execute(f"SELECT key, value FROM {self._table}")
        return sum(_entry_size(row[0], row[1]) for row in rows)

    def get_item(self, key: str) -> Optional[str]:
        rows = self._execute(f"SELECT value FROM {self._table} WHERE key = :key", {"key": key})
        return None if not rows else rows[0][0]

    def set_item(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            current = self.get_item(key)
            used = self.used_bytes() - (_entry_size(key, current) if current is not None else 0)
            if used + _entry_size(key, value) > self._quota_bytes:
                raise StorageQuotaExceeded(
                    f"writing {key!r} needs {_entry_size(key, value)} bytes, "
                    f"{self._quota_bytes - used} of {self._quota_bytes} available"
                )

        # WHERE keeps SQLite from reading ON CONFLICT as a join constraint.
        self._execute(
            f"""
            INSERT INTO {self._table} (key, value, seq)
            SELECT :key, :value, COALESCE(MAX(seq), 0) + 1 FROM {self._table} WHERE true
            ON CONFLICT (key) DO UPDATE SET value = excluded.value
            """,
            {"key": key, "value": value},
        )

    def remove_item(self, key: str) -> None:
        self._execute(f"DELETE FROM {self._table} WHERE key = :key", {"key": key})

    def keys(self) -> list[str]:
        rows = self._execute(f"SELECT key FROM {self._table} ORDER BY seq")
        return [row[0] for row in rows]

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
