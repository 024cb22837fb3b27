import sqlite3
import threading
from pathlib import Path
from typing import Optional

from cmtree.core.errors import StoreUnavailable
from cmtree.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    A single key-value table holds both tree nodes (bucket 'nodes', keyed by
    digest) and tree metadata (bucket 'meta', keyed by tree name). Every
    sqlite3 failure is re-raised as StoreUnavailable.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn_local = threading.local()

        # Ensure directory exists
        if not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()
        logger.debug(f"SQLiteAdapter opened at {self.db_path}")

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            try:
                conn = sqlite3.connect(
                    self.db_path,
                    timeout=30.0,
                    check_same_thread=False,
                )
                conn.row_factory = sqlite3.Row
                # Enable WAL mode for better concurrency
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA synchronous=NORMAL;")
            except sqlite3.Error as e:
                logger.error(f"Cannot open {self.db_path}: {e}")
                raise StoreUnavailable(f"Cannot open {self.db_path}: {e}") from e
            self._conn_local.conn = conn
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        try:
            with conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key BLOB PRIMARY KEY,
                        value BLOB NOT NULL,
                        bucket TEXT NOT NULL DEFAULT 'default'
                    )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_kv_bucket ON kv_store(bucket);")
        except sqlite3.Error as e:
            logger.error(f"Schema initialization failed: {e}")
            raise StoreUnavailable(f"Schema initialization failed: {e}") from e

    # =========================================================================
    # Key-Value Operations
    # =========================================================================

    def put(self, key: bytes, value: bytes, bucket: str = "default"):
        """Save a key-value pair."""
        conn = self._get_conn()
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, bucket) VALUES (?, ?, ?)",
                    (bytes(key), bytes(value), bucket)
                )
        except sqlite3.Error as e:
            logger.error(f"put failed for key {bytes(key).hex()[:16]}: {e}")
            raise StoreUnavailable(f"put failed: {e}") from e

    def get(self, key: bytes) -> Optional[bytes]:
        """Get value by key."""
        conn = self._get_conn()
        try:
            cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (bytes(key),))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"get failed for key {bytes(key).hex()[:16]}: {e}")
            raise StoreUnavailable(f"get failed: {e}") from e
        return bytes(row['value']) if row else None

    def has(self, key: bytes) -> bool:
        return self.get(key) is not None

    def count(self, bucket: Optional[str] = None) -> int:
        """Number of stored entries, optionally restricted to one bucket."""
        conn = self._get_conn()
        try:
            if bucket is None:
                cursor = conn.execute("SELECT COUNT(*) as cnt FROM kv_store")
            else:
                cursor = conn.execute(
                    "SELECT COUNT(*) as cnt FROM kv_store WHERE bucket = ?", (bucket,)
                )
            return cursor.fetchone()['cnt']
        except sqlite3.Error as e:
            raise StoreUnavailable(f"count failed: {e}") from e

    def close(self):
        """Close the connection owned by the calling thread."""
        conn = getattr(self._conn_local, "conn", None)
        if conn is not None:
            conn.close()
            del self._conn_local.conn
