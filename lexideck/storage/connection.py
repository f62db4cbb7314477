import logging
from pathlib import Path
from typing import Optional, Union

import duckdb

from ..exceptions import StorageConnectionError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class ConnectionHandler:
    """Opens the deck database lazily and hands out a single connection."""

    def __init__(self, db_path: Union[str, Path], read_only: bool = False):
        """
        Parameters:
            db_path (Union[str, Path]): Database file, or ":memory:" (any case)
                for a throwaway in-process database.
            read_only (bool): Open the file read-only. The file must exist.
        """
        if str(db_path).lower() == MEMORY_PATH:
            self.db_path_resolved = Path(MEMORY_PATH)
        else:
            self.db_path_resolved = Path(db_path).expanduser().resolve()
        self.read_only = read_only
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        logger.debug(
            f"Deck database at {self.db_path_resolved} (read_only={read_only})."
        )

    @property
    def is_memory(self) -> bool:
        return str(self.db_path_resolved) == MEMORY_PATH

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def get_connection(self) -> duckdb.DuckDBPyConnection:
        """
        Return the open connection, connecting on first use. A writable file
        database gets its parent directory created.

        Raises:
            StorageConnectionError: If the file is missing in read-only mode
                or DuckDB cannot open it.
        """
        if self._connection is not None:
            return self._connection

        if not self.is_memory:
            if self.read_only and not self.db_path_resolved.exists():
                raise StorageConnectionError(
                    f"Deck database not found: {self.db_path_resolved}"
                )
            try:
                if not self.read_only:
                    self.db_path_resolved.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageConnectionError(
                    f"Cannot create directory for {self.db_path_resolved}: {e}",
                    original_exception=e,
                ) from e

        try:
            self._connection = duckdb.connect(
                database=str(self.db_path_resolved), read_only=self.read_only
            )
        except duckdb.Error as e:
            raise StorageConnectionError(
                f"Failed to open deck database {self.db_path_resolved}: {e}",
                original_exception=e,
            ) from e
        logger.info(f"Opened deck database {self.db_path_resolved}.")
        return self._connection

    def close_connection(self) -> None:
        """Close the connection if open; the next call reconnects."""
        if self._connection is None:
            return
        try:
            self._connection.close()
            logger.debug(f"Closed deck database {self.db_path_resolved}.")
        except duckdb.Error as e:
            logger.error(f"Error closing deck database: {e}")
        finally:
            self._connection = None
