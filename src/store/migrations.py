"""SQLite schema migrations for the health store."""

import sqlite3
from dataclasses import dataclass

import structlog

from src.config.constants import COMPONENT_STORE
from src.data_model import utc_now
from src.store.errors import MigrationError


logger = structlog.get_logger()

CURRENT_VERSION = 1


@dataclass(frozen=True)
class Migration:
    """A database migration.

    Attributes:
        version: Target version after applying this migration.
        description: Human-readable description.
        up_sql: SQL to apply the migration.
        down_sql: SQL to roll the migration back.
    """

    version: int
    description: str
    up_sql: str
    down_sql: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="User interests, specialist directory and content catalogue",
        up_sql="""
-- One row per (user, normalized topic); rows are never deleted
CREATE TABLE IF NOT EXISTS user_interests (
    user_id TEXT NOT NULL,
    topic TEXT NOT NULL,
    relevance_score REAL NOT NULL,
    mention_count INTEGER NOT NULL,
    first_mentioned TEXT NOT NULL,
    last_engaged TEXT NOT NULL,
    context TEXT NOT NULL DEFAULT '',
    PRIMARY KEY (user_id, topic)
);
CREATE INDEX IF NOT EXISTS idx_user_interests_last_engaged
    ON user_interests(user_id, last_engaged);

CREATE TABLE IF NOT EXISTS specialists (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL DEFAULT '',
    specialty TEXT NOT NULL,
    sub_specialty TEXT,
    experience_years REAL NOT NULL DEFAULT 0,
    rating REAL NOT NULL DEFAULT 0,
    verification_status TEXT,
    verification_level TEXT,
    verification_date TEXT,
    languages TEXT NOT NULL DEFAULT '[]',
    consultation_types TEXT NOT NULL DEFAULT '[]',
    response_time_bucket TEXT NOT NULL DEFAULT '',
    is_active INTEGER NOT NULL DEFAULT 1,
    is_online INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_specialists_active ON specialists(is_active);

CREATE TABLE IF NOT EXISTS content_items (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    author_name TEXT,
    specialty TEXT,
    topics TEXT NOT NULL DEFAULT '[]',
    published_at TEXT NOT NULL,
    views INTEGER NOT NULL DEFAULT 0,
    likes INTEGER NOT NULL DEFAULT 0,
    shares INTEGER NOT NULL DEFAULT 0,
    comments INTEGER NOT NULL DEFAULT 0,
    is_verified_author INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_content_items_published_at ON content_items(published_at);
""",
        down_sql="""
DROP INDEX IF EXISTS idx_content_items_published_at;
DROP TABLE IF EXISTS content_items;
DROP INDEX IF EXISTS idx_specialists_active;
DROP TABLE IF EXISTS specialists;
DROP INDEX IF EXISTS idx_user_interests_last_engaged;
DROP TABLE IF EXISTS user_interests;
""",
    ),
]


def get_migrations_to_apply(current_version: int) -> list[Migration]:
    """Get migrations that need to be applied.

    Args:
        current_version: The current schema version.

    Returns:
        List of migrations to apply in order.
    """
    return [m for m in MIGRATIONS if m.version > current_version]


class MigrationManager:
    """Applies and rolls back schema migrations on one connection."""

    VERSION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL,
    description TEXT
);
"""

    def __init__(self, connection: sqlite3.Connection) -> None:
        """Initialize the migration manager.

        Args:
            connection: SQLite connection to manage.
        """
        self._conn = connection
        self._log = logger.bind(component=COMPONENT_STORE, subcomponent="migrations")

    def get_current_version(self) -> int:
        """Get the current schema version.

        Returns:
            Current version number, or 0 if no migrations applied.
        """
        self._conn.execute(self.VERSION_TABLE_SQL)
        self._conn.commit()
        row = self._conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def apply_migrations(self) -> list[int]:
        """Apply all pending migrations.

        Returns:
            Versions that were applied.

        Raises:
            MigrationError: If a migration cannot be applied.
        """
        pending = get_migrations_to_apply(self.get_current_version())
        applied: list[int] = []

        for migration in pending:
            self._log.info(
                "applying_migration",
                version=migration.version,
                description=migration.description,
            )
            try:
                self._conn.executescript(migration.up_sql)
                self._conn.execute(
                    "INSERT INTO schema_version (version, applied_at, description) "
                    "VALUES (?, ?, ?)",
                    (migration.version, utc_now().isoformat(), migration.description),
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                self._log.error("migration_failed", version=migration.version, error=str(exc))
                raise MigrationError(migration.version, str(exc)) from exc
            applied.append(migration.version)

        return applied

    def rollback_to(self, target_version: int) -> list[int]:
        """Roll back applied migrations above ``target_version``.

        Args:
            target_version: The version to roll back to.

        Returns:
            Versions that were rolled back, newest first.

        Raises:
            ValueError: If target version is negative.
            MigrationError: If a rollback fails.
        """
        if target_version < 0:
            msg = f"Invalid target version: {target_version}"
            raise ValueError(msg)

        current = self.get_current_version()
        rolled_back: list[int] = []
        for migration in reversed(MIGRATIONS):
            if not target_version < migration.version <= current:
                continue
            try:
                self._conn.executescript(migration.down_sql)
                self._conn.execute(
                    "DELETE FROM schema_version WHERE version = ?", (migration.version,)
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise MigrationError(migration.version, str(exc)) from exc
            self._log.info("migration_rolled_back", version=migration.version)
            rolled_back.append(migration.version)

        return rolled_back
