from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Optional

from .preferences import PreferenceBackend
from .store import PersistenceError


@dataclass(frozen=True)
class _Cols:
    table: str = "preferences"
    key: str = "key"
    value: str = "value"


_COLS = _Cols()


class SQLitePreferences(PreferenceBackend):
    """
    Lightweight SQLite preference store implementing the PreferenceBackend interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.key} TEXT PRIMARY KEY,
                    {_COLS.value} BLOB NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[bytes]:
        try:
            with self._conn() as conn:
                row = conn.execute(
                    f"SELECT {_COLS.value} FROM {_COLS.table} WHERE {_COLS.key} = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"could not read preference {key!r}: {e}") from e
        return bytes(row[0]) if row else None

    def set(self, key: str, value: bytes) -> None:
        try:
            with self._conn() as conn:
                conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.key}, {_COLS.value})
                    VALUES (?, ?)
                    ON CONFLICT({_COLS.key}) DO UPDATE SET {_COLS.value} = excluded.{_COLS.value}
                    """,
                    (key, sqlite3.Binary(value)),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"could not write preference {key!r}: {e}") from e
