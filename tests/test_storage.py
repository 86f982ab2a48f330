"""
Tests for storage/database module.

Tests the detection_sessions schema, schema versioning and the synchronous
read/write operations.
"""

import json
import sqlite3

import pytest

from ops.errors import StorageError, StoreUnavailableError
from storage.database import EXPECTED_SCHEMA_VERSION, SESSIONS_TABLE, Database

TS = "2024-03-01T12:00:00.000+00:00"


@pytest.fixture
def db(temp_db):
    database = Database(temp_db)
    database.initialize()
    yield database
    database.close()


class TestSchemaCreation:
    """Tests for schema creation and versioning."""

    def test_creates_tables(self, temp_db):
        """Schema meta and sessions tables are created on init."""
        db = Database(temp_db)
        db.initialize()

        conn = sqlite3.connect(temp_db)
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        db.close()

        assert "schema_meta" in names
        assert SESSIONS_TABLE in names

    def test_sessions_has_expected_columns(self, temp_db):
        db = Database(temp_db)
        db.initialize()

        conn = sqlite3.connect(temp_db)
        columns = {row[1] for row in conn.execute(f"PRAGMA table_info({SESSIONS_TABLE})")}
        conn.close()
        db.close()

        assert columns == {
            "id", "timestamp", "duration", "counts",
            "people", "cars", "trucks", "buses", "total",
        }

    def test_creates_indexes(self, temp_db):
        db = Database(temp_db)
        db.initialize()

        conn = sqlite3.connect(temp_db)
        indexes = {row[1] for row in conn.execute(f"PRAGMA index_list({SESSIONS_TABLE})")}
        conn.close()
        db.close()

        assert "idx_sessions_timestamp" in indexes
        assert "idx_sessions_duration" in indexes

    def test_records_schema_version(self, db, temp_db):
        conn = sqlite3.connect(temp_db)
        version = conn.execute("SELECT schema_version FROM schema_meta").fetchone()[0]
        conn.close()

        assert version == EXPECTED_SCHEMA_VERSION

    def test_reinitialize_keeps_rows(self, temp_db):
        """A current schema is left alone on restart."""
        db = Database(temp_db)
        db.initialize()
        db.insert_session({"person": 1}, 5, TS)
        db.close()

        db = Database(temp_db)
        db.initialize()
        assert db.count_sessions() == 1
        db.close()

    def test_version_mismatch_recreates(self, temp_db):
        db = Database(temp_db)
        db.initialize()
        db.insert_session({"person": 1}, 5, TS)
        db.close()

        conn = sqlite3.connect(temp_db)
        conn.execute("UPDATE schema_meta SET schema_version = 999")
        conn.commit()
        conn.close()

        db = Database(temp_db)
        db.initialize()
        assert db.count_sessions() == 0
        db.close()

    def test_unopenable_path_raises_storage_error(self, tmp_path):
        """A directory cannot be opened as a database file."""
        db = Database(str(tmp_path))

        with pytest.raises(StorageError):
            db.initialize()
        assert db.is_open is False


class TestSessionOperations:
    """Tests for insert/list/clear."""

    def test_insert_returns_record(self, db):
        record = db.insert_session({"person": 2, "car": 1}, 10, TS)

        assert record.id == 1
        assert record.total == 3
        assert record.people == 2
        assert record.cars == 1
        assert dict(record.counts) == {"person": 2, "car": 1}

    def test_counts_stored_as_json(self, db, temp_db):
        db.insert_session({"person": 2, "dog": 1}, 10, TS)

        conn = sqlite3.connect(temp_db)
        row = conn.execute(f"SELECT counts, total FROM {SESSIONS_TABLE}").fetchone()
        conn.close()

        assert json.loads(row[0]) == {"person": 2, "dog": 1}
        assert row[1] == 3

    def test_negative_duration_rejected(self, db):
        with pytest.raises(StorageError):
            db.insert_session({"person": 1}, -1, TS)
        assert db.count_sessions() == 0

    def test_list_insertion_order(self, db):
        db.insert_session({"car": 1}, 1, "2024-03-01T12:00:02.000+00:00")
        db.insert_session({"car": 2}, 1, "2024-03-01T12:00:01.000+00:00")

        records = db.list_sessions()

        assert [r.cars for r in records] == [1, 2]

    def test_list_newest_first_with_id_tiebreak(self, db):
        db.insert_session({"car": 1}, 1, "2024-03-01T12:00:01.000+00:00")
        db.insert_session({"car": 2}, 1, "2024-03-01T12:00:02.000+00:00")
        db.insert_session({"car": 3}, 1, "2024-03-01T12:00:02.000+00:00")

        records = db.list_sessions(newest_first=True)

        assert [r.cars for r in records] == [3, 2, 1]

    def test_list_limit(self, db):
        for i in range(5):
            db.insert_session({"bus": i}, 1, TS)

        assert len(db.list_sessions(newest_first=True, limit=2)) == 2

    def test_clear_deletes_all(self, db):
        db.insert_session({"car": 1}, 1, TS)
        db.insert_session({"car": 2}, 1, TS)

        assert db.clear_sessions() == 2
        assert db.list_sessions() == []

    def test_ids_keep_increasing_after_clear(self, db):
        first = db.insert_session({"car": 1}, 1, TS)
        db.clear_sessions()
        second = db.insert_session({"car": 1}, 1, TS)

        assert second.id > first.id

    def test_operations_need_initialize(self, temp_db):
        db = Database(temp_db)

        with pytest.raises(StoreUnavailableError):
            db.list_sessions()
