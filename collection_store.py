"""
Persisted collection store for incident, alert, guide and admin records.

This module provides:
- Key-value backends (SQLite for durable storage, in-memory for tests)
- A collection store that keeps named, JSON-serialized, ordered lists of records

The store holds no business semantics. Reads of absent or corrupt collections
degrade to an empty list; every write replaces the whole collection.
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from exceptions import ConcurrencyError, StorageError

logger = logging.getLogger(__name__)

INCIDENTS = "incidents"
ALERTS = "alerts"
GUIDES = "guides"
REGIONAL_ADMINS = "regional_admins"

COLLECTIONS = (INCIDENTS, ALERTS, GUIDES, REGIONAL_ADMINS)


class KeyValueBackend(ABC):
    """Durable medium addressable by string keys."""

    @abstractmethod
    def read(self, key: str) -> Optional[Tuple[str, int]]:
        """Return (value, version) for a key, or None if the key is absent."""

    @abstractmethod
    def write(self, key: str, value: str, expected_version: Optional[int] = None) -> int:
        """
        Store a value and return its new version.

        Raises:
            ConcurrencyError: If expected_version is given and does not match
        """

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys."""

    def close(self):
        """Release backend resources."""


class InMemoryKeyValueBackend(KeyValueBackend):
    """Process-local backend, used in tests and for ephemeral runs."""

    def __init__(self):
        self._data: Dict[str, Tuple[str, int]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[Tuple[str, int]]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str, expected_version: Optional[int] = None) -> int:
        with self._lock:
            current = self._data.get(key, (None, 0))[1]
            if expected_version is not None and expected_version != current:
                raise ConcurrencyError(
                    f"Collection {key} was modified concurrently",
                    collection=key,
                    expected_version=expected_version,
                    actual_version=current
                )
            self._data[key] = (value, current + 1)
            return current + 1

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def set_raw(self, key: str, value: str):
        """Store a raw value without going through the collection codec."""
        self.write(key, value)


class SQLiteKeyValueBackend(KeyValueBackend):
    """
    SQLite-backed key-value medium.

    One row per key in the kv_store table; each write runs in its own
    transaction so readers never observe a partially written collection.
    """

    def __init__(self, db_path: str = "urgences.db", timeout: float = 5.0):
        """
        Initialize database connection and create schema if needed.

        Args:
            db_path: Path to SQLite database file (created if doesn't exist)
            timeout: Seconds to wait for another writer's lock before failing
        """
        self.db_path = db_path
        self.timeout = timeout
        self._local = threading.local()  # Thread-local storage for connections
        self._write_lock = threading.Lock()
        logger.info(f"Initializing key-value database: {db_path}")
        self._create_schema()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'connection') or self._local.connection is None:
            self._local.connection = sqlite3.connect(
                self.db_path, timeout=self.timeout, check_same_thread=False
            )
            self._local.connection.row_factory = sqlite3.Row  # Enable column access by name
            logger.debug(f"Created new database connection for thread {threading.current_thread().ident}")
        return self._local.connection

    def _create_schema(self):
        """Create the kv_store table."""
        with self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    version INTEGER NOT NULL DEFAULT 1,
                    updated_at TEXT NOT NULL
                )
            """)

    def read(self, key: str) -> Optional[Tuple[str, int]]:
        row = self.conn.execute(
            "SELECT value, version FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return row["value"], row["version"]

    def write(self, key: str, value: str, expected_version: Optional[int] = None) -> int:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._write_lock, self.conn:
                # Take the database write lock before the version check so no
                # other connection can commit between the compare and the swap
                self.conn.execute("BEGIN IMMEDIATE")
                row = self.conn.execute(
                    "SELECT version FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                current = row["version"] if row else 0
                if expected_version is not None and expected_version != current:
                    raise ConcurrencyError(
                        f"Collection {key} was modified concurrently",
                        collection=key,
                        expected_version=expected_version,
                        actual_version=current
                    )
                self.conn.execute(
                    """
                    INSERT INTO kv_store (key, value, version, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        version = excluded.version,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, current + 1, now)
                )
                return current + 1
        except sqlite3.Error as e:
            raise StorageError(
                f"Failed to write {key}: {e}",
                collection=key,
                operation="write"
            ) from e

    def keys(self) -> List[str]:
        rows = self.conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def set_raw(self, key: str, value: str):
        """Store a raw value without going through the collection codec."""
        self.write(key, value)

    def close(self):
        """Close database connection for current thread."""
        if hasattr(self._local, 'connection') and self._local.connection:
            self._local.connection.close()
            self._local.connection = None
            logger.info(f"Database connection closed for thread {threading.current_thread().ident}")


class CollectionStore:
    """
    Generic get-all/save-all primitive over named collections.

    Collection names are mapped to persisted keys with a prefix, so
    "incidents" is stored under "urgences_incidents" by default.
    """

    def __init__(self, backend: KeyValueBackend, key_prefix: str = "urgences_"):
        self.backend = backend
        self.key_prefix = key_prefix

    def key_for(self, collection: str) -> str:
        return f"{self.key_prefix}{collection}"

    def exists(self, collection: str) -> bool:
        """Whether the collection has ever been written."""
        return self.backend.read(self.key_for(collection)) is not None

    def version(self, collection: str) -> int:
        """Current version of a collection (0 if absent)."""
        stored = self.backend.read(self.key_for(collection))
        return stored[1] if stored else 0

    def get_all(self, collection: str) -> List[Dict[str, Any]]:
        """Return the records of a collection, or [] if absent or corrupt."""
        return self.get_all_with_version(collection)[0]

    def get_all_with_version(self, collection: str) -> Tuple[List[Dict[str, Any]], int]:
        """Return (records, version); corrupt content reads as an empty list."""
        key = self.key_for(collection)
        try:
            stored = self.backend.read(key)
        except sqlite3.Error as e:
            logger.error(f"Failed to read collection {key}: {e}")
            return [], 0
        if stored is None:
            return [], 0

        raw, version = stored
        try:
            records = json.loads(raw)
        except (TypeError, ValueError) as e:
            error = StorageError(f"Corrupt collection {key}: {e}", collection=key, operation="read")
            logger.warning(f"{error} - treating as empty")
            return [], version

        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            logger.warning(f"Collection {key} is not a list of records - treating as empty")
            return [], version
        return records, version

    def save_all(
        self,
        collection: str,
        records: List[Dict[str, Any]],
        expected_version: Optional[int] = None
    ) -> int:
        """
        Overwrite a collection with the given records.

        Args:
            collection: Collection name
            records: JSON-serializable records, in order
            expected_version: If given, only write when the stored version matches

        Returns:
            New version of the collection

        Raises:
            StorageError: If the records cannot be serialized or written
            ConcurrencyError: If expected_version no longer matches
        """
        key = self.key_for(collection)
        try:
            payload = json.dumps(list(records), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(
                f"Failed to serialize collection {key}: {e}",
                collection=key,
                operation="serialize"
            ) from e

        version = self.backend.write(key, payload, expected_version=expected_version)
        logger.debug(f"Saved {len(records)} records to {key} (version {version})")
        return version
