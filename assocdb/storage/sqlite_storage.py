"""
SQLite storage backend for the association store.

Provides durable key-value storage with:
- One row per key, replaced in a single statement
- Atomic per-key writes via transactions
- Concurrent read access via WAL mode

This is the SQLite implementation of the KeyValueStorage interface.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Iterator, List
import threading

from .base import KeyValueStorage
from .exceptions import StorageError, StorageWriteError, SchemaError


class SQLiteStorage(KeyValueStorage):
    """
    SQLite-backed key-value storage.
    Thread-safe with connection per thread.

    Implements the KeyValueStorage abstract base class.
    """

    SCHEMA_VERSION = 1
    name = 'sqlite'

    def __init__(self, db_path: str = "data/association.db"):
        """
        Create SQLite storage instance.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()
        self._initialized = False

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def initialize(self) -> None:
        """Create the database file and schema."""
        if self._initialized:
            return

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._init_schema()
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to initialize schema at {self.db_path}: {e}") from e
        self._initialized = True

    def close(self) -> None:
        """Close every connection opened by this instance."""
        with self._connections_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local = threading.local()
        self._initialized = False

    def health_check(self) -> bool:
        """Check if the database connection is healthy."""
        try:
            conn = self._get_connection()
            conn.execute("SELECT 1")
            return True
        except sqlite3.Error:
            return False

    # =========================================================================
    # CONNECTION MANAGEMENT
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=30.0
            )
            # Enable WAL mode for better concurrent access
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            self._local.conn = conn
            with self._connections_lock:
                self._connections.append(conn)
        return self._local.conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _init_schema(self) -> None:
        """Initialize database schema."""
        with self.transaction() as conn:
            conn.executescript('''
                -- Metadata table
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                -- Encoded collections, one row per storage key
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );
            ''')

            conn.execute(
                "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                ('schema_version', str(self.SCHEMA_VERSION))
            )

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    def get(self, key: str) -> Optional[str]:
        self.initialize()
        try:
            row = self._get_connection().execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageWriteError(f"Value for {key} must be a string, got {type(value).__name__}")

        self.initialize()
        try:
            with self.transaction() as conn:
                conn.execute('''
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                ''', (key, value))
        except sqlite3.Error as e:
            raise StorageWriteError(f"Failed to write {key}: {e}") from e

    def remove(self, key: str) -> None:
        self.initialize()
        try:
            with self.transaction() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageWriteError(f"Failed to remove {key}: {e}") from e

    def keys(self) -> List[str]:
        self.initialize()
        try:
            rows = self._get_connection().execute("SELECT key FROM kv_store").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list keys: {e}") from e
        return [row[0] for row in rows]

    def size(self) -> int:
        self.initialize()
        try:
            row = self._get_connection().execute(
                "SELECT COALESCE(SUM(LENGTH(value)), 0) FROM kv_store"
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to compute storage size: {e}") from e
        return int(row[0])
