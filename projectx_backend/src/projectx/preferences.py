from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Optional

from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class PreferenceBackend(ABC):
    """
    Durable key-value namespace the record stores persist into.

    Values are opaque encoded blobs. There are no transactions and no partial
    updates; the last write for a key wins.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under key, or None if nothing was written yet."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Store value under key. Raise PersistenceError if the write fails."""


class InMemoryPreferences(PreferenceBackend):
    """
    Thread-safe in-memory preference store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._values: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._values[key] = bytes(value)


# PUBLIC_INTERFACE
def get_preferences(settings: Optional[Settings] = None) -> PreferenceBackend:
    """
    Factory to return the configured preference backend based on settings.
    - memory: InMemoryPreferences
    - sqlite: SQLitePreferences stored at settings.sqlite_db_path
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLitePreferences

        logger.info("Using sqlite preferences at %s", settings.sqlite_db_path)
        return SQLitePreferences(settings.sqlite_db_path)
    return InMemoryPreferences()
