"""Tests for the SQLite database layer."""

import pytest

from miracle_meter.db import Database


@pytest.fixture
def db(tmp_path):
    """Create a temporary database for testing."""
    db_path = tmp_path / "test.db"
    database = Database(db_path=db_path)
    yield database
    database.close()


class TestDatabaseCreation:
    def test_creates_db_file(self, tmp_path):
        db_path = tmp_path / "sub" / "test.db"
        database = Database(db_path=db_path)
        assert db_path.exists()
        database.close()

    def test_tables_exist(self, db):
        cursor = db.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        tables = sorted(row["name"] for row in cursor.fetchall())
        assert "kv_store" in tables
        assert "deliveries" in tables

    def test_wal_mode_enabled(self, db):
        result = db.conn.execute("PRAGMA journal_mode").fetchone()
        assert result[0] == "wal"


class TestKeyValue:
    def test_get_nonexistent_key(self, db):
        assert db.get_value("nonexistent") is None

    def test_set_and_get(self, db):
        db.set_value("streak_data", "{}")
        assert db.get_value("streak_data") == "{}"

    def test_upsert_overwrites(self, db):
        db.set_value("streak_data", "a")
        db.set_value("streak_data", "b")
        assert db.get_value("streak_data") == "b"

    def test_delete(self, db):
        db.set_value("streak_data", "a")
        db.delete_value("streak_data")
        assert db.get_value("streak_data") is None

    def test_delete_missing_key(self, db):
        db.delete_value("nothing")
        assert db.get_value("nothing") is None


class TestDeliveries:
    def test_add_and_list(self, db):
        delivery_id = db.add_delivery("2026-01-07T09:30:00", "c-section", baby_count=2, notes="twins")
        [delivery] = db.get_deliveries()
        assert delivery["id"] == delivery_id
        assert delivery["delivery_type"] == "c-section"
        assert delivery["baby_count"] == 2
        assert delivery["event_type"] == "delivery"
        assert delivery["notes"] == "twins"

    def test_unknown_delivery_type(self, db):
        with pytest.raises(ValueError):
            db.add_delivery("2026-01-07T09:30:00", "breech")

    def test_unknown_event_type(self, db):
        with pytest.raises(ValueError):
            db.add_delivery("2026-01-07T09:30:00", event_type="visit")

    def test_zero_babies(self, db):
        with pytest.raises(ValueError):
            db.add_delivery("2026-01-07T09:30:00", baby_count=0)

    def test_newest_first(self, db):
        db.add_delivery("2026-01-05T10:00:00")
        db.add_delivery("2026-01-07T10:00:00")
        db.add_delivery("2026-01-06T10:00:00")
        timestamps = [d["timestamp"] for d in db.get_deliveries()]
        assert timestamps == ["2026-01-07T10:00:00", "2026-01-06T10:00:00", "2026-01-05T10:00:00"]

    def test_limit(self, db):
        for day in range(1, 6):
            db.add_delivery(f"2026-01-0{day}T10:00:00")
        assert len(db.get_deliveries(limit=2)) == 2


class TestTransaction:
    def test_commits_all_writes(self, db):
        with db.transaction():
            db.add_delivery("2026-01-07T09:30:00")
            db.set_value("streak_data", "{}")
        assert db.count_deliveries() == 1
        assert db.get_value("streak_data") == "{}"

    def test_error_rolls_back_all_writes(self, db):
        db.set_value("streak_data", "old")
        with pytest.raises(RuntimeError):
            with db.transaction():
                db.add_delivery("2026-01-07T09:30:00")
                db.set_value("streak_data", "new")
                raise RuntimeError("save failed")
        assert db.count_deliveries() == 0
        assert db.get_value("streak_data") == "old"

    def test_writes_commit_again_afterwards(self, db, tmp_path):
        with pytest.raises(RuntimeError):
            with db.transaction():
                raise RuntimeError("boom")
        db.add_delivery("2026-01-07T09:30:00")
        other = Database(db_path=tmp_path / "test.db")
        try:
            assert other.count_deliveries() == 1
        finally:
            other.close()
