"""Unit tests for TrackerStore, path resolution, seeding and migrations."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone

import pytest
from sqlalchemy import inspect, text

from config import DatabaseSettings
from errors import StorageError
from infrastructure.database import (
    BUSY_TIMEOUT_MS,
    TrackerStore,
    resolve_db_path,
    seed_persistent_db,
)
from infrastructure.migrations import MIGRATIONS, apply_migrations
from repositories import OpenRepository, PixelRepository

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

LEGACY_SCHEMA = """
CREATE TABLE pixels (
    id TEXT PRIMARY KEY,
    email_id TEXT NOT NULL,
    recipient TEXT NOT NULL,
    subject TEXT,
    created_at DATETIME NOT NULL
);
CREATE TABLE opens (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pixel_id TEXT NOT NULL REFERENCES pixels(id),
    opened_at DATETIME NOT NULL,
    ip_address TEXT,
    user_agent TEXT
);
INSERT INTO pixels VALUES ('p-old', 'E-old', 'old@x.com', 'Legacy', '2025-12-01 08:00:00.000000');
INSERT INTO opens (pixel_id, opened_at, ip_address, user_agent)
    VALUES ('p-old', '2025-12-01 09:00:00.000000', '203.0.113.7', 'Googlebot');
"""


# ---------------------------------------------------------------------------
# resolve_db_path / seed_persistent_db
# ---------------------------------------------------------------------------


class TestResolveDbPath:
    def test_explicit_path_wins(self, tmp_path):
        settings = DatabaseSettings(
            tracker_db_path=str(tmp_path / "explicit.db"), data_dir=str(tmp_path)
        )
        assert resolve_db_path(settings) == tmp_path / "explicit.db"

    def test_data_dir_when_present(self, tmp_path):
        settings = DatabaseSettings(tracker_db_path=None, data_dir=str(tmp_path))
        assert resolve_db_path(settings) == tmp_path / "tracker.db"

    def test_default_when_no_volume(self, tmp_path):
        settings = DatabaseSettings(
            tracker_db_path=None,
            data_dir=str(tmp_path / "missing"),
            default_db_path=str(tmp_path / "bundled.db"),
        )
        assert resolve_db_path(settings) == tmp_path / "bundled.db"


class TestSeedPersistentDb:
    def test_copies_seed_to_missing_target(self, tmp_path):
        seed = tmp_path / "seed.db"
        seed.write_bytes(b"seed-bytes")
        target = tmp_path / "volume" / "tracker.db"

        assert seed_persistent_db(target, seed) is True
        assert target.read_bytes() == b"seed-bytes"

    def test_existing_target_left_alone(self, tmp_path):
        seed = tmp_path / "seed.db"
        seed.write_bytes(b"seed-bytes")
        target = tmp_path / "tracker.db"
        target.write_bytes(b"live-data")

        assert seed_persistent_db(target, seed) is False
        assert target.read_bytes() == b"live-data"

    def test_empty_target_is_seeded(self, tmp_path):
        seed = tmp_path / "seed.db"
        seed.write_bytes(b"seed-bytes")
        target = tmp_path / "tracker.db"
        target.touch()

        assert seed_persistent_db(target, seed) is True

    def test_missing_seed(self, tmp_path):
        assert seed_persistent_db(tmp_path / "tracker.db", tmp_path / "nope.db") is False

    def test_same_file(self, tmp_path):
        path = tmp_path / "tracker.db"
        path.write_bytes(b"x")
        assert seed_persistent_db(path, path) is False


# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------


class TestMigrations:
    def test_fresh_database(self, tmp_path):
        store = TrackerStore.from_path(tmp_path / "fresh.db")
        try:
            assert store.initialize() == [m.version for m in MIGRATIONS]
            tables = set(inspect(store.engine).get_table_names())
            assert {"pixels", "opens", "schema_version"} <= tables
        finally:
            store.dispose()

    def test_rerun_is_noop(self, store):
        assert apply_migrations(store.engine) == []
        assert store.initialize() == []

    def test_versions_recorded(self, store):
        with store.engine.connect() as conn:
            versions = [row[0] for row in conn.execute(text("SELECT version FROM schema_version"))]
        assert versions == [1, 2]

    def test_legacy_database_upgraded(self, tmp_path):
        db_path = tmp_path / "legacy.db"
        with sqlite3.connect(db_path) as raw:
            raw.executescript(LEGACY_SCHEMA)
        raw.close()

        store = TrackerStore.from_path(db_path)
        try:
            assert store.initialize() == [1, 2]

            columns = {c["name"] for c in inspect(store.engine).get_columns("opens")}
            assert {"is_bot", "bot_reason"} <= columns

            with store.session("check") as session:
                (event,) = OpenRepository(session).list_for_pixel("p-old")
                # historical rows are not reclassified
                assert event.is_bot is False
                assert event.bot_reason is None
                assert event.opened_at.tzinfo is not None
        finally:
            store.dispose()

    def test_concurrent_startup_applies_each_migration_once(self, tmp_path):
        db_path = tmp_path / "shared.db"
        workers = 6
        barrier = threading.Barrier(workers)
        applied: list[int] = []
        errors: list[BaseException] = []
        lock = threading.Lock()

        def start_worker():
            store = TrackerStore.from_path(db_path)
            try:
                barrier.wait()
                versions = store.initialize()
                with lock:
                    applied.extend(versions)
            except Exception as exc:
                with lock:
                    errors.append(exc)
            finally:
                store.dispose()

        threads = [threading.Thread(target=start_worker) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(applied) == [m.version for m in MIGRATIONS]

    def test_legacy_null_flags_backfilled(self, tmp_path):
        db_path = tmp_path / "legacy.db"
        with sqlite3.connect(db_path) as raw:
            raw.executescript(LEGACY_SCHEMA)
            raw.execute("ALTER TABLE opens ADD COLUMN is_bot INTEGER")
        raw.close()

        store = TrackerStore.from_path(db_path)
        try:
            store.initialize()
            with store.engine.connect() as conn:
                nulls = conn.scalar(text("SELECT COUNT(*) FROM opens WHERE is_bot IS NULL"))
            assert nulls == 0
        finally:
            store.dispose()


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class TestSessions:
    def test_write_then_read(self, store):
        with store.session("insert", write=True) as session:
            PixelRepository(session).insert("p1", "E1", "a@x.com", "Hi", T0)

        with store.session("read") as session:
            pixel = PixelRepository(session).get("p1")
        assert pixel.recipient == "a@x.com"
        assert pixel.created_at == T0

    def test_rollback_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.session("insert", write=True) as session:
                PixelRepository(session).insert("p1", "E1", "a@x.com", "", T0)
                raise RuntimeError("abort")

        with store.session("read") as session:
            assert PixelRepository(session).get("p1") is None

    def test_foreign_key_violation_is_storage_error(self, store):
        with pytest.raises(StorageError):
            with store.session("append", write=True) as session:
                OpenRepository(session).append("missing", T0, None, "", False, None)

    def test_duplicate_pixel_id_is_storage_error(self, store):
        with store.session("insert", write=True) as session:
            PixelRepository(session).insert("p1", "E1", "a@x.com", "", T0)
        with pytest.raises(StorageError):
            with store.session("insert", write=True) as session:
                PixelRepository(session).insert("p1", "E2", "b@x.com", "", T0)

    def test_connection_pragmas(self, store):
        with store.engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA journal_mode").scalar() == "wal"
            assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == BUSY_TIMEOUT_MS
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1

    def test_repr(self, store):
        assert "tracker.db" in repr(store)
