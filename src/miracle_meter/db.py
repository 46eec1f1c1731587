"""SQLite database layer for miracle-meter."""

import logging
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".miracle-meter" / "data.db"

DELIVERY_TYPES = ("vaginal", "c-section")
EVENT_TYPES = ("delivery", "transition")


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self._in_transaction = False
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT
            );

            CREATE TABLE IF NOT EXISTS deliveries (
                id TEXT PRIMARY KEY,
                timestamp TEXT NOT NULL,
                delivery_type TEXT NOT NULL,
                baby_count INTEGER DEFAULT 1,
                event_type TEXT DEFAULT 'delivery',
                notes TEXT
            );
        """)
        self.conn.commit()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Group writes into one commit. Any exception rolls all of them back."""
        self._in_transaction = True
        try:
            yield self
            self.conn.commit()
        except BaseException:
            self.conn.rollback()
            raise
        finally:
            self._in_transaction = False

    def _commit(self) -> None:
        if not self._in_transaction:
            self.conn.commit()

    def get_value(self, key: str) -> str | None:
        """Get a stored value by key."""
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def set_value(self, key: str, value: str) -> None:
        """Set a stored value (upsert). Rolls back on failure."""
        try:
            self.conn.execute(
                "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, str(value)),
            )
            self._commit()
        except sqlite3.Error:
            if not self._in_transaction:
                self.conn.rollback()
            raise

    def delete_value(self, key: str) -> None:
        """Remove a stored value. Missing keys are ignored."""
        self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self._commit()

    def add_delivery(
        self,
        timestamp: str,
        delivery_type: str = "vaginal",
        baby_count: int = 1,
        event_type: str = "delivery",
        notes: str | None = None,
    ) -> str:
        """Insert a delivery record and return its id."""
        if delivery_type not in DELIVERY_TYPES:
            raise ValueError(f"Unknown delivery type: {delivery_type!r}")
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type!r}")
        if baby_count < 1:
            raise ValueError("baby_count must be at least 1")
        delivery_id = uuid.uuid4().hex
        self.conn.execute(
            "INSERT INTO deliveries (id, timestamp, delivery_type, baby_count, event_type, notes) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (delivery_id, timestamp, delivery_type, baby_count, event_type, notes),
        )
        self._commit()
        logger.debug("Stored delivery %s at %s", delivery_id, timestamp)
        return delivery_id

    def get_deliveries(self, limit: int | None = None) -> list[dict]:
        """Return deliveries, newest first."""
        query = "SELECT * FROM deliveries ORDER BY timestamp DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)
        rows = self.conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_deliveries(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) AS n FROM deliveries").fetchone()
        return int(row["n"])

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
