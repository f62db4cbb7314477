"""
Key-value stores for persisted deck snapshots and small preferences.

Values are opaque strings (JSON documents in practice). Stores raise
StorageError subclasses; deciding whether a failure matters is left to the
caller.
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

import duckdb

from ..exceptions import SchemaInitializationError, StorageError
from .connection import ConnectionHandler

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Abstract string-to-string store keyed by e.g. "<prefix><lesson_id>".
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Insert or overwrite the value stored under `key`."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key`; absent keys are ignored."""

    @abstractmethod
    def keys(self, prefix: str = "") -> List[str]:
        """Stored keys starting with `prefix`, sorted."""

    def close(self) -> None:
        pass

    def __enter__(self) -> "KeyValueStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class DuckDBKeyValueStore(KeyValueStore):
    """
    Key-value store persisted in a single DuckDB table.

    The schema is created lazily on first use. Intended for use as a
    context manager.
    """

    _SCHEMA_SQL = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key VARCHAR PRIMARY KEY,
            value VARCHAR NOT NULL,
            updated_at TIMESTAMP NOT NULL DEFAULT current_timestamp
        );
        """

    _UPSERT_SQL = """
        INSERT INTO kv_store (key, value, updated_at)
        VALUES ($1, $2, current_timestamp)
        ON CONFLICT (key) DO UPDATE SET
            value = EXCLUDED.value,
            updated_at = EXCLUDED.updated_at;
        """

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Args:
            db_path: Path to the database file, or ':memory:'.
            read_only: Open the database read-only; writes then fail with
                StorageError.
        """
        self._handler = ConnectionHandler(db_path=db_path, read_only=read_only)
        self._schema_ready = False
        self._lock = threading.Lock()

    @property
    def db_path_resolved(self) -> Path:
        return self._handler.db_path_resolved

    def _connection(self) -> duckdb.DuckDBPyConnection:
        conn = self._handler.get_connection()
        if not self._schema_ready:
            self.initialize_schema()
        return conn

    def initialize_schema(self) -> None:
        """
        Creates the kv_store table if needed. Skipped for read-only file
        databases, which must already contain it.

        Raises:
            SchemaInitializationError: If DuckDB rejects the schema.
        """
        if self._handler.read_only and not self._handler.is_memory:
            self._schema_ready = True
            return
        conn = self._handler.get_connection()
        try:
            conn.execute(self._SCHEMA_SQL)
        except duckdb.Error as e:
            logger.error(
                f"Error initializing schema at {self._handler.db_path_resolved}: {e}"
            )
            raise SchemaInitializationError(
                f"Failed to initialize schema: {e}", original_exception=e
            ) from e
        self._schema_ready = True
        logger.debug(
            f"Key-value schema ready at {self._handler.db_path_resolved}."
        )

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            try:
                row = (
                    self._connection()
                    .execute("SELECT value FROM kv_store WHERE key = $1;", [key])
                    .fetchone()
                )
            except duckdb.Error as e:
                raise StorageError(
                    f"Failed to read key '{key}': {e}", original_exception=e
                ) from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                self._connection().execute(self._UPSERT_SQL, [key, value])
            except duckdb.Error as e:
                raise StorageError(
                    f"Failed to write key '{key}': {e}", original_exception=e
                ) from e
        logger.debug(f"Stored {len(value)} chars under '{key}'.")

    def delete(self, key: str) -> None:
        with self._lock:
            try:
                self._connection().execute(
                    "DELETE FROM kv_store WHERE key = $1;", [key]
                )
            except duckdb.Error as e:
                raise StorageError(
                    f"Failed to delete key '{key}': {e}", original_exception=e
                ) from e

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            try:
                rows = (
                    self._connection()
                    .execute(
                        "SELECT key FROM kv_store WHERE starts_with(key, $1) ORDER BY key;",
                        [prefix],
                    )
                    .fetchall()
                )
            except duckdb.Error as e:
                raise StorageError(
                    f"Failed to list keys: {e}", original_exception=e
                ) from e
        return [row[0] for row in rows]

    def close(self) -> None:
        self._handler.close_connection()
        self._schema_ready = False
