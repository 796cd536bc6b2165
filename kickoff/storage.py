"""Local key-value store backing history, favorites and the wallet."""
import json
import logging
import math
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Generator, List, Optional

from .config import STORE_PATH

logger = logging.getLogger(__name__)


def get_connection(db_path: Path = STORE_PATH) -> sqlite3.Connection:
    """Create a database connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database transactions."""
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def init_store(conn: sqlite3.Connection) -> None:
    """Initialize the store schema."""
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );
    """)
    conn.commit()


class KeyValueStore:
    """String values under namespaced keys, persisted in sqlite.

    Every operation opens its own connection, so the store can be shared by
    the refresh thread and the caller.
    """

    def __init__(self, db_path: Path = STORE_PATH):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(get_connection(self.db_path)) as conn:
            init_store(conn)

    def get(self, key: str) -> Optional[str]:
        with closing(get_connection(self.db_path)) as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with closing(get_connection(self.db_path)) as conn, transaction(conn):
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
                """,
                (key, value)
            )

    def remove(self, key: str) -> None:
        with closing(get_connection(self.db_path)) as conn, transaction(conn):
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def clear(self) -> None:
        with closing(get_connection(self.db_path)) as conn, transaction(conn):
            conn.execute("DELETE FROM kv_store")

    def keys(self) -> List[str]:
        with closing(get_connection(self.db_path)) as conn:
            return [row["key"] for row in conn.execute("SELECT key FROM kv_store ORDER BY key")]

    def get_json(self, key: str, default: Any = None) -> Any:
        """Read a JSON value, returning default when missing or corrupt."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring corrupt value stored under {key}")
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))

    def get_float(self, key: str, default: float) -> float:
        raw = self.get(key)
        if raw is None:
            return default
        try:
            value = float(raw)
        except ValueError:
            value = math.nan
        if not math.isfinite(value):
            logger.warning(f"Ignoring non-numeric value stored under {key}")
            return default
        return value
