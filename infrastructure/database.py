"""
SQLite store handle.

TrackerStore owns the SQLAlchemy engine and hands out short-lived sessions.
One instance is created per process (in the app lifespan) and passed down
explicitly; nothing reaches for a module-level connection.

Connection setup:
- WAL journal so readers never block on the writer
- busy_timeout so concurrent writers queue instead of failing
- foreign keys on, so an open can only reference an existing pixel
- transactions are begun explicitly: read scopes get a consistent snapshot,
  write scopes take the write lock up front (BEGIN IMMEDIATE) so a
  read-then-insert never fails on lock upgrade
"""

from __future__ import annotations

import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from sqlalchemy import Connection, Engine, create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from config import DatabaseSettings
from errors import StorageError
from infrastructure.migrations import apply_migrations
from shared.logging import get_logger

log = get_logger(__name__)

BUSY_TIMEOUT_MS = 5000
DB_FILENAME = "tracker.db"


def resolve_db_path(settings: DatabaseSettings) -> Path:
    """Pick the database file: explicit path, then the data volume, then default."""
    if settings.tracker_db_path:
        return Path(settings.tracker_db_path)
    data_dir = Path(settings.data_dir)
    if data_dir.is_dir():
        return data_dir / DB_FILENAME
    return Path(settings.default_db_path)


def _is_empty_file(path: Path) -> bool:
    try:
        return path.stat().st_size == 0
    except OSError:
        return True


def seed_persistent_db(db_path: Path, seed_path: Path) -> bool:
    """Copy the bundled database onto a fresh persistent path.

    Only copies when *db_path* is not the seed itself, the seed exists, and
    *db_path* is missing or empty. A failed copy is logged and the store
    starts with an empty database instead.

    Returns:
        True if the seed was copied.
    """
    if db_path.resolve() == seed_path.resolve():
        return False
    if not seed_path.exists():
        return False
    if db_path.exists() and not _is_empty_file(db_path):
        return False

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(seed_path, db_path)
    except OSError as exc:
        log.error(
            "database_seed_failed",
            source=str(seed_path),
            target=str(db_path),
            error=str(exc),
        )
        return False

    log.info("database_seeded", source=str(seed_path), target=str(db_path))
    return True


def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
    # Hand transaction control to SQLAlchemy (see _on_begin)
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _on_begin(conn: Connection) -> None:
    mode = conn.get_execution_options().get("sqlite_begin", "DEFERRED")
    conn.exec_driver_sql(f"BEGIN {mode}")


class TrackerStore:
    """Engine + session factories for the pixel registry and open-event log."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._read_sessions = sessionmaker(bind=engine, expire_on_commit=False)
        self._write_sessions = sessionmaker(
            bind=engine.execution_options(sqlite_begin="IMMEDIATE"),
            expire_on_commit=False,
        )

    @classmethod
    def from_path(cls, path: os.PathLike | str) -> "TrackerStore":
        engine = create_engine(
            f"sqlite:///{os.fspath(path)}",
            connect_args={"check_same_thread": False, "timeout": BUSY_TIMEOUT_MS / 1000},
        )
        event.listen(engine, "connect", _on_connect)
        event.listen(engine, "begin", _on_begin)
        return cls(engine)

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "TrackerStore":
        db_path = resolve_db_path(settings)
        seed_persistent_db(db_path, Path(settings.default_db_path))
        log.info("database_selected", path=str(db_path))
        return cls.from_path(db_path)

    def initialize(self) -> list[int]:
        """Bring the schema up to date. Returns the migration versions applied."""
        try:
            return apply_migrations(self.engine)
        except SQLAlchemyError as exc:
            log.error("storage_failure", operation="migrate", error=str(exc), exc_info=exc)
            raise StorageError("database migration failed") from exc

    @contextmanager
    def session(self, operation: str, *, write: bool = False) -> Iterator[Session]:
        """Transactional session scope.

        Commits on success and rolls back on error. Any SQLAlchemy failure is
        logged and re-raised as ``StorageError``; other exceptions pass through.

        Args:
            operation: Short name of the calling operation, used in logs.
            write: Take the database write lock when the transaction begins.
        """
        factory = self._write_sessions if write else self._read_sessions
        session = factory()
        try:
            with session.begin():
                yield session
        except SQLAlchemyError as exc:
            log.error("storage_failure", operation=operation, error=str(exc), exc_info=exc)
            raise StorageError("storage operation failed") from exc
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"TrackerStore(url={self.engine.url!s})"
