"""Key/value persistence for the four named state records."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import closing
from pathlib import Path
from typing import Any

from task_analyzer.exceptions import StorageError

logger = logging.getLogger(__name__)

ACTIVITIES_KEY = "activities"
SETTINGS_KEY = "settings"
LAST_ANALYSIS_KEY = "lastAnalysis"
HISTORY_KEY = "analysisHistory"


class StateStorage(ABC):
    """Abstract interface for persisted, JSON-compatible state records."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the record stored under ``key`` or ``default``."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Replace the record stored under ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a record. Missing keys are ignored."""
        ...

    def close(self) -> None:
        """Release any underlying resources."""


class MemoryStateStorage(StateStorage):
    """In-process storage. Values are round-tripped through JSON on write."""

    def __init__(self) -> None:
        self._records: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            raw = self._records.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Record {key!r} is not JSON serializable: {e}") from e
        with self._lock:
            self._records[key] = raw

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)


class SQLiteStateStorage(StateStorage):
    """Persist state records as JSON text in a single SQLite table."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self._ensure_schema()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open state database {self.db_path}: {e}") from e

    def _ensure_schema(self) -> None:
        with closing(self.conn.cursor()) as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            self.conn.commit()

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with self._lock, closing(self.conn.cursor()) as cur:
                cur.execute("SELECT value FROM state WHERE key = ?", (key,))
                row = cur.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed reading record {key!r}: {e}") from e
        if not row:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise StorageError(f"Record {key!r} is corrupt: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            raw = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Record {key!r} is not JSON serializable: {e}") from e
        try:
            with self._lock, closing(self.conn.cursor()) as cur:
                cur.execute(
                    """
                    INSERT INTO state (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value
                    """,
                    (key, raw),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed writing record {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._lock, closing(self.conn.cursor()) as cur:
                cur.execute("DELETE FROM state WHERE key = ?", (key,))
                self.conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed deleting record {key!r}: {e}") from e

    def close(self) -> None:
        self.conn.close()
