"""
Database module for storing completed detection sessions.

Sessions are append-only: rows are inserted once and only ever removed by
clearing the whole table. Schema versioning recreates the tables when the
stored version does not match.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from typing import List, Mapping, Optional

from models.session_record import SessionRecord
from ops.errors import StorageError, StoreUnavailableError

# Schema version - increment when schema changes
EXPECTED_SCHEMA_VERSION = 1

SESSIONS_TABLE = "detection_sessions"


class Database:
    """
    SQLite database for detection session history.

    Tables:
    - schema_meta: tracks schema version
    - detection_sessions: one row per completed session

    Every write runs in its own transaction; a failed statement rolls back
    and leaves earlier rows untouched.
    """

    def __init__(self, local_database_path: str):
        """
        Args:
            local_database_path: Path to the SQLite database file.
        """
        self.local_database_path = local_database_path
        self.conn: Optional[sqlite3.Connection] = None

        db_dir = os.path.dirname(local_database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get the open connection."""
        if self.conn is None:
            raise StoreUnavailableError("Database not initialized")
        return self.conn

    def _get_schema_version(self) -> Optional[int]:
        """Get current schema version from database."""
        try:
            cursor = self._get_connection().cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_meta'"
            )
            if cursor.fetchone() is None:
                return None

            cursor.execute("SELECT schema_version FROM schema_meta LIMIT 1")
            row = cursor.fetchone()
            return row[0] if row else None
        except sqlite3.Error:
            return None

    def _create_schema(self) -> None:
        """Drop stale tables and create the current schema in one transaction."""
        conn = self._get_connection()
        with conn:
            conn.execute(f"DROP TABLE IF EXISTS {SESSIONS_TABLE}")
            conn.execute("DROP TABLE IF EXISTS schema_meta")

            conn.execute("""
                CREATE TABLE schema_meta (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    schema_version INTEGER NOT NULL,
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)

            # AUTOINCREMENT keeps ids increasing even after a clear.
            conn.execute(f"""
                CREATE TABLE {SESSIONS_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    duration INTEGER NOT NULL CHECK (duration >= 0),
                    counts TEXT NOT NULL,
                    people INTEGER NOT NULL DEFAULT 0,
                    cars INTEGER NOT NULL DEFAULT 0,
                    trucks INTEGER NOT NULL DEFAULT 0,
                    buses INTEGER NOT NULL DEFAULT 0,
                    total INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute(
                f"CREATE INDEX idx_sessions_timestamp ON {SESSIONS_TABLE}(timestamp)"
            )
            conn.execute(
                f"CREATE INDEX idx_sessions_duration ON {SESSIONS_TABLE}(duration)"
            )
            conn.execute(
                "INSERT INTO schema_meta (id, schema_version) VALUES (1, ?)",
                (EXPECTED_SCHEMA_VERSION,),
            )
        logging.info(f"Created schema version {EXPECTED_SCHEMA_VERSION}")

    def initialize(self) -> None:
        """
        Open the connection and make sure the schema is current.

        If schema_meta is missing or the version doesn't match
        EXPECTED_SCHEMA_VERSION, drops the session tables and recreates them.
        """
        try:
            if self.conn is None:
                # Calls are serialized by HistoryStore but may come from worker threads.
                self.conn = sqlite3.connect(self.local_database_path, check_same_thread=False)

            current_version = self._get_schema_version()

            if current_version != EXPECTED_SCHEMA_VERSION:
                if current_version is not None:
                    logging.warning(
                        f"Schema version mismatch: found {current_version}, "
                        f"expected {EXPECTED_SCHEMA_VERSION}. Dropping old tables."
                    )
                else:
                    logging.info("No schema found, creating fresh database.")
                self._create_schema()
            else:
                logging.info(f"Schema version {current_version} is current")

            logging.info(f"Database initialized at {self.local_database_path}")

        except sqlite3.Error as e:
            logging.error(f"Database initialization error: {e}")
            self.close()
            raise StorageError(str(e)) from e

    @property
    def is_open(self) -> bool:
        return self.conn is not None

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def insert_session(
        self,
        counts: Mapping[str, int],
        duration: int,
        timestamp: str,
    ) -> SessionRecord:
        """
        Insert one completed session.

        Args:
            counts: Final displayed counts of the session.
            duration: Whole seconds, non-negative.
            timestamp: ISO-8601 save time.

        Returns:
            The stored SessionRecord with its new id.
        """
        conn = self._get_connection()
        derived = SessionRecord.derive_fields(counts)
        try:
            with conn:
                cursor = conn.execute(
                    f"""
                    INSERT INTO {SESSIONS_TABLE} (
                        timestamp, duration, counts,
                        people, cars, trucks, buses, total
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        timestamp,
                        duration,
                        json.dumps(dict(counts)),
                        derived["people"],
                        derived["cars"],
                        derived["trucks"],
                        derived["buses"],
                        derived["total"],
                    ),
                )
        except sqlite3.Error as e:
            logging.error(f"Error saving session: {e}")
            raise StorageError(str(e)) from e

        record_id = cursor.lastrowid
        logging.debug(f"Session saved: id={record_id}, duration={duration}s, total={derived['total']}")
        return SessionRecord.from_counts(record_id, timestamp, duration, counts)

    def clear_sessions(self) -> int:
        """
        Delete every session.

        Returns:
            Number of rows deleted.
        """
        conn = self._get_connection()
        try:
            with conn:
                cursor = conn.execute(f"DELETE FROM {SESSIONS_TABLE}")
        except sqlite3.Error as e:
            logging.error(f"Error clearing history: {e}")
            raise StorageError(str(e)) from e

        deleted = cursor.rowcount
        logging.info(f"Cleared {deleted} sessions from history")
        return deleted

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def list_sessions(self, newest_first: bool = False, limit: Optional[int] = None) -> List[SessionRecord]:
        """
        Get stored sessions.

        Args:
            newest_first: Order by timestamp descending (ties by id) instead
                of insertion order.
            limit: Keep only the first `limit` rows of that ordering.
        """
        conn = self._get_connection()
        order = "timestamp DESC, id DESC" if newest_first else "id ASC"
        sql = f"SELECT * FROM {SESSIONS_TABLE} ORDER BY {order}"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)

        try:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(sql, params).fetchall()
            return [SessionRecord.from_row(row) for row in rows]
        except sqlite3.Error as e:
            logging.error(f"Error listing sessions: {e}")
            raise StorageError(str(e)) from e
        finally:
            conn.row_factory = None

    def count_sessions(self) -> int:
        conn = self._get_connection()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {SESSIONS_TABLE}").fetchone()[0]
        except sqlite3.Error as e:
            logging.error(f"Error counting sessions: {e}")
            raise StorageError(str(e)) from e

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logging.info("Database connection closed")
