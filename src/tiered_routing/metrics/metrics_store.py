"""
Metrics persistence behind a narrow key-value interface.

The recorder only needs ``get``, ``put``, ``list_all`` and ``delete`` keyed by
provider name. Two stores are provided: an in-process dictionary and SQLite.
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from ..utils.error_handlers import MetricsStoreError
from .api_metrics import ApiMetrics

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_TIMEOUT = 30.0


class MetricsStore(ABC):
    """Key-value store of ApiMetrics rows keyed by provider name."""

    @abstractmethod
    def get(self, provider_name: str) -> Optional[ApiMetrics]:
        """Return the row for a provider, or None if there is none."""

    @abstractmethod
    def put(self, metrics: ApiMetrics) -> None:
        """Insert or replace the row for ``metrics.provider_name``."""

    @abstractmethod
    def list_all(self) -> List[ApiMetrics]:
        """Return every row, ordered by provider name."""

    @abstractmethod
    def delete(self, provider_name: str) -> bool:
        """Delete a provider's row. Returns True if a row existed."""

    def close(self) -> None:
        """Release store resources."""


class InMemoryMetricsStore(MetricsStore):
    """Process-local store; rows are lost when the process exits."""

    def __init__(self) -> None:
        self._rows: Dict[str, ApiMetrics] = {}
        self._lock = threading.Lock()

    def get(self, provider_name: str) -> Optional[ApiMetrics]:
        with self._lock:
            return self._rows.get(provider_name)

    def put(self, metrics: ApiMetrics) -> None:
        with self._lock:
            self._rows[metrics.provider_name] = metrics

    def list_all(self) -> List[ApiMetrics]:
        with self._lock:
            return [self._rows[name] for name in sorted(self._rows)]

    def delete(self, provider_name: str) -> bool:
        with self._lock:
            return self._rows.pop(provider_name, None) is not None


class SQLiteMetricsStore(MetricsStore):
    """
    SQLite-backed store with thread-local connections.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS api_metrics (
            provider_name TEXT PRIMARY KEY,
            request_count INTEGER NOT NULL,
            success_count INTEGER NOT NULL,
            error_count INTEGER NOT NULL,
            total_latency_ms INTEGER NOT NULL,
            avg_latency_ms INTEGER NOT NULL,
            min_latency_ms INTEGER NOT NULL,
            max_latency_ms INTEGER NOT NULL,
            last_request_at TEXT NOT NULL,
            last_error_at TEXT,
            last_error_message TEXT,
            created_at TEXT,
            CHECK (success_count + error_count = request_count)
        )
    """

    _COLUMNS = (
        "provider_name",
        "request_count",
        "success_count",
        "error_count",
        "total_latency_ms",
        "avg_latency_ms",
        "min_latency_ms",
        "max_latency_ms",
        "last_request_at",
        "last_error_at",
        "last_error_message",
        "created_at",
    )

    def __init__(self, db_path: str) -> None:
        """
        Initialize the store and create the schema.

        Args:
            db_path: Path to the database file; parent directories are created.

        Raises:
            MetricsStoreError: If the schema cannot be created.
        """
        self.db_path = str(db_path)
        self._local: threading.local = threading.local()
        self._connections: Set[sqlite3.Connection] = set()
        self._connections_lock = threading.Lock()

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.initialize_database()

    def __enter__(self) -> "SQLiteMetricsStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get or create thread-local database connection.

        Raises:
            MetricsStoreError: If connection cannot be established.
        """
        connection = getattr(self._local, "connection", None)
        with self._connections_lock:
            is_open = connection in self._connections
        if not is_open:
            try:
                connection = sqlite3.connect(
                    self.db_path,
                    timeout=DEFAULT_CONNECTION_TIMEOUT,
                    check_same_thread=False,
                )
                mode = connection.execute("PRAGMA journal_mode = WAL").fetchone()[0]
                if str(mode).upper() != "WAL":
                    logger.warning(f"Failed to enable WAL mode, using {mode} instead")
                connection.execute("PRAGMA synchronous = NORMAL")
                connection.row_factory = sqlite3.Row
                self._local.connection = connection
                with self._connections_lock:
                    self._connections.add(connection)
            except sqlite3.Error as e:
                raise MetricsStoreError(
                    message=f"Failed to connect to metrics database: {e}",
                    operation="connect",
                    original_error=e,
                ) from e
        return self._local.connection

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize_database(self) -> None:
        try:
            with self._transaction() as conn:
                conn.execute(self._SCHEMA)
        except sqlite3.Error as e:
            raise MetricsStoreError(
                message=f"Failed to initialize metrics schema: {e}",
                operation="initialize",
                original_error=e,
            ) from e
        logger.debug(f"Metrics database ready at {self.db_path}")

    def get(self, provider_name: str) -> Optional[ApiMetrics]:
        try:
            row = (
                self._get_connection()
                .execute(
                    "SELECT * FROM api_metrics WHERE provider_name = ?", (provider_name,)
                )
                .fetchone()
            )
        except sqlite3.Error as e:
            raise MetricsStoreError(
                message=f"Failed to read metrics for {provider_name}: {e}",
                operation="get",
                original_error=e,
            ) from e
        return ApiMetrics.from_dict(dict(row)) if row else None

    def put(self, metrics: ApiMetrics) -> None:
        record = metrics.to_dict()
        placeholders = ", ".join("?" for _ in self._COLUMNS)
        try:
            with self._transaction() as conn:
                conn.execute(
                    f"INSERT OR REPLACE INTO api_metrics ({', '.join(self._COLUMNS)}) "
                    f"VALUES ({placeholders})",
                    tuple(record[column] for column in self._COLUMNS),
                )
        except sqlite3.Error as e:
            raise MetricsStoreError(
                message=f"Failed to write metrics for {metrics.provider_name}: {e}",
                operation="put",
                original_error=e,
            ) from e

    def list_all(self) -> List[ApiMetrics]:
        try:
            rows = (
                self._get_connection()
                .execute("SELECT * FROM api_metrics ORDER BY provider_name")
                .fetchall()
            )
        except sqlite3.Error as e:
            raise MetricsStoreError(
                message=f"Failed to list metrics: {e}",
                operation="list",
                original_error=e,
            ) from e
        return [ApiMetrics.from_dict(dict(row)) for row in rows]

    def delete(self, provider_name: str) -> bool:
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM api_metrics WHERE provider_name = ?", (provider_name,)
                )
        except sqlite3.Error as e:
            raise MetricsStoreError(
                message=f"Failed to delete metrics for {provider_name}: {e}",
                operation="delete",
                original_error=e,
            ) from e
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close every connection opened by any thread."""
        with self._connections_lock:
            connections = list(self._connections)
            self._connections.clear()
        for connection in connections:
            connection.close()
        self._local.connection = None
        if connections:
            logger.debug(f"Closed {len(connections)} metrics database connection(s)")
