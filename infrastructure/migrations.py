"""
Versioned, idempotent schema migrations for the tracker database.

Applied versions are recorded in ``schema_version``. Every migration checks
the live schema before changing it, so running one against a database that
already has the change (for example a database created by an older deploy
that never recorded versions) is a no-op apart from being recorded.

Columns added after the first release default historical rows to the
non-bot value. Old events are never reclassified with the current rules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from sqlalchemy import Connection, Engine, inspect, text

from schemas.models.base import Base
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    apply: Callable[[Connection], None]


def _create_tables(conn: Connection) -> None:
    # checkfirst: existing tables (and their indexes) are left untouched
    Base.metadata.create_all(conn, checkfirst=True)


def _add_bot_classification(conn: Connection) -> None:
    columns = {col["name"] for col in inspect(conn).get_columns("opens")}

    if "is_bot" not in columns:
        conn.execute(text("ALTER TABLE opens ADD COLUMN is_bot INTEGER DEFAULT 0"))
        log.info("migration_column_added", table="opens", column="is_bot")
    if "bot_reason" not in columns:
        conn.execute(text("ALTER TABLE opens ADD COLUMN bot_reason TEXT"))
        log.info("migration_column_added", table="opens", column="bot_reason")

    updated = conn.execute(text("UPDATE opens SET is_bot = 0 WHERE is_bot IS NULL"))
    if updated.rowcount:
        log.info("migration_backfilled", table="opens", column="is_bot", rows=updated.rowcount)


MIGRATIONS: tuple[Migration, ...] = (
    Migration(1, "create_tables", _create_tables),
    Migration(2, "add_bot_classification", _add_bot_classification),
)


def _ensure_version_table(conn: Connection) -> None:
    conn.execute(
        text(
            "CREATE TABLE IF NOT EXISTS schema_version ("
            " version INTEGER PRIMARY KEY,"
            " name TEXT NOT NULL,"
            " applied_at TEXT NOT NULL)"
        )
    )


def applied_versions(conn: Connection) -> set[int]:
    _ensure_version_table(conn)
    return {row[0] for row in conn.execute(text("SELECT version FROM schema_version"))}


def apply_migrations(engine: Engine) -> list[int]:
    """Apply every pending migration in version order.

    Each migration runs in its own transaction together with its version row.
    The transaction takes the write lock before reading ``schema_version``, so
    processes starting together against one file queue on busy_timeout and
    the later ones find the migration already recorded.

    Returns:
        Versions applied by this call (empty when the schema is current).
    """
    newly_applied: list[int] = []
    locking = engine.execution_options(sqlite_begin="IMMEDIATE")
    for migration in sorted(MIGRATIONS, key=lambda m: m.version):
        with locking.begin() as conn:
            if migration.version in applied_versions(conn):
                continue
            migration.apply(conn)
            conn.execute(
                text(
                    "INSERT INTO schema_version (version, name, applied_at)"
                    " VALUES (:version, :name, :applied_at)"
                ),
                {
                    "version": migration.version,
                    "name": migration.name,
                    "applied_at": utcnow().isoformat(),
                },
            )
        newly_applied.append(migration.version)
        log.info("migration_applied", version=migration.version, name=migration.name)
    return newly_applied
