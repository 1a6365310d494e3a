"""
Ledger Store Module

Provides the key/value interface the token record is persisted through, with
implementations for in-memory (testing) and SQLite (persistence). Values are
opaque byte blobs grouped into named tables; a missing key reads as b"".
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union
from datetime import datetime, timezone
import re
import sqlite3
import threading
from pathlib import Path
from contextlib import contextmanager

from .logging_config import get_logger


_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _check_table(table: str) -> str:
    """Table names are interpolated into SQL, so only identifiers are allowed"""
    if not _TABLE_NAME.match(table):
        raise ValueError(f"Invalid table name: {table!r}")
    return table


class LedgerStore(ABC):
    """Abstract interface for ledger storage backends"""

    @abstractmethod
    def get(self, table: str, key: str) -> bytes:
        """Load a blob; returns b"" when the key is absent"""
        pass

    @abstractmethod
    def set(self, table: str, key: str, value: bytes) -> None:
        """Store a blob, replacing any previous value"""
        pass

    @abstractmethod
    def exists(self, table: str, key: str) -> bool:
        """Check if a key holds a value"""
        pass

    @abstractmethod
    def delete(self, table: str, key: str) -> bool:
        """Delete a key; returns True if it existed"""
        pass

    @abstractmethod
    def keys(self, table: str) -> List[str]:
        """List the keys of a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


class InMemoryLedgerStore(LedgerStore):
    """In-memory store for testing, with transaction support via snapshots"""

    def __init__(self):
        self._data: Dict[str, Dict[str, bytes]] = {}
        self._lock = threading.RLock()
        self._snapshot: Optional[Dict[str, Dict[str, bytes]]] = None

    def _table(self, table: str) -> Dict[str, bytes]:
        return self._data.setdefault(_check_table(table), {})

    def get(self, table: str, key: str) -> bytes:
        with self._lock:
            return bytes(self._table(table).get(key, b""))

    def set(self, table: str, key: str, value: bytes) -> None:
        with self._lock:
            # Copy to prevent external mutation
            self._table(table)[key] = bytes(value)

    def exists(self, table: str, key: str) -> bool:
        with self._lock:
            return key in self._table(table)

    def delete(self, table: str, key: str) -> bool:
        with self._lock:
            return self._table(table).pop(key, None) is not None

    def keys(self, table: str) -> List[str]:
        with self._lock:
            return list(self._table(table))

    def begin_transaction(self) -> None:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = {t: dict(rows) for t, rows in self._data.items()}

    def commit(self) -> None:
        with self._lock:
            self._snapshot = None

    def rollback(self) -> None:
        with self._lock:
            if self._snapshot is not None:
                self._data = self._snapshot
                self._snapshot = None

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLiteLedgerStore(LedgerStore):
    """SQLite store for persistence, one BLOB row per key"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level='DEFERRED')
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._in_transaction = False
        self._known_tables = set()
        self.logger = get_logger("token_ledger.storage")

        # Enable WAL mode for better concurrent access
        if self.db_path != ":memory:":
            with self._lock:
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
                self._connection.commit()

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists with proper schema"""
        _check_table(table)
        if table in self._known_tables:
            return
        self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                key TEXT PRIMARY KEY,
                value BLOB NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        if not self._in_transaction:
            self._connection.commit()
        self._known_tables.add(table)

    def get(self, table: str, key: str) -> bytes:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT value FROM {table} WHERE key = ?
            """, (key,))
            row = cursor.fetchone()
            if row:
                return bytes(row['value'])
            return b""

    def set(self, table: str, key: str, value: bytes) -> None:
        with self._lock:
            self._ensure_table(table)
            now = datetime.now(timezone.utc).isoformat()
            self._connection.execute(f"""
                INSERT OR REPLACE INTO {table} (key, value, updated_at)
                VALUES (?, ?, ?)
            """, (key, sqlite3.Binary(bytes(value)), now))

            # Only commit if not in transaction
            if not self._in_transaction:
                self._connection.commit()

    def exists(self, table: str, key: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                SELECT 1 FROM {table} WHERE key = ? LIMIT 1
            """, (key,))
            return cursor.fetchone() is not None

    def delete(self, table: str, key: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"""
                DELETE FROM {table} WHERE key = ?
            """, (key,))

            if not self._in_transaction:
                self._connection.commit()
            return cursor.rowcount > 0

    def keys(self, table: str) -> List[str]:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"SELECT key FROM {table} ORDER BY key")
            return [row['key'] for row in cursor.fetchall()]

    def begin_transaction(self) -> None:
        with self._lock:
            if not self._in_transaction:
                # isolation_level='DEFERRED' opens the transaction on the first write
                self._in_transaction = True

    def commit(self) -> None:
        with self._lock:
            if self._in_transaction:
                self._connection.commit()
                self._in_transaction = False

    def rollback(self) -> None:
        with self._lock:
            if self._in_transaction:
                self._connection.rollback()
                self._in_transaction = False
                # A rolled back CREATE TABLE must be issued again
                self._known_tables.clear()

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_store(backend: str = "memory", database_path: Union[str, Path] = ":memory:") -> LedgerStore:
    """Build the store named by configuration ("memory" or "sqlite")"""
    backend = backend.lower()
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "sqlite":
        return SQLiteLedgerStore(database_path)
    raise ValueError(f"Unknown storage backend: {backend}")
