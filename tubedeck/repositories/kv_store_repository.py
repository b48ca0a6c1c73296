from __future__ import annotations

import sqlite3
from typing import Protocol

from tubedeck.repositories.common import utc_now_iso
from tubedeck.repositories.database import Database


class KeyValueStoreError(Exception):
    """Raised by key-value backends when a read or write cannot be completed."""


class KeyValueBackend(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class SqliteKeyValueRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    def get(self, key: str) -> str | None:
        try:
            with self._db.connection() as conn:
                row = conn.execute(
                    """
                    SELECT value_text
                    FROM kv_store
                    WHERE store_key = ?
                    """,
                    (key,),
                ).fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise KeyValueStoreError(f"read failed key={key}: {exc}") from exc

        if row is None:
            return None
        return str(row["value_text"])

    def set(self, key: str, value: str) -> None:
        try:
            with self._db.connection() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store (store_key, value_text, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(store_key) DO UPDATE SET
                        value_text = excluded.value_text,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, utc_now_iso()),
                )
        except (sqlite3.Error, OSError) as exc:
            raise KeyValueStoreError(f"write failed key={key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._db.connection() as conn:
                conn.execute("DELETE FROM kv_store WHERE store_key = ?", (key,))
        except (sqlite3.Error, OSError) as exc:
            raise KeyValueStoreError(f"delete failed key={key}: {exc}") from exc


class InMemoryKeyValueStore:
    """
    Process-local backend.

    `max_value_bytes` emulates a storage quota: values whose UTF-8 encoding is
    larger are rejected the same way a full browser storage area would be.
    """

    def __init__(self, *, max_value_bytes: int | None = None) -> None:
        self._values: dict[str, str] = {}
        self._max_value_bytes = max_value_bytes

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if self._max_value_bytes is not None:
            size = len(value.encode("utf-8"))
            if size > self._max_value_bytes:
                raise KeyValueStoreError(
                    f"quota exceeded key={key} size={size} limit={self._max_value_bytes}"
                )
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
