"""Unit tests for schema migrations."""

import sqlite3
from collections.abc import Generator

import pytest

from src.store.migrations import (
    CURRENT_VERSION,
    MIGRATIONS,
    MigrationManager,
    get_migrations_to_apply,
)


def _tables(conn: sqlite3.Connection) -> set[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return {row[0] for row in rows}


class TestMigrationConstants:
    """Tests for migration constants."""

    def test_migrations_in_order(self) -> None:
        """Test migrations are in ascending version order."""
        versions = [m.version for m in MIGRATIONS]
        assert versions == sorted(versions)

    def test_migrations_have_up_and_down(self) -> None:
        """Test all migrations have up and down SQL."""
        for migration in MIGRATIONS:
            assert migration.up_sql.strip()
            assert migration.down_sql.strip()

    def test_current_version_matches_latest_migration(self) -> None:
        """Test current version matches the latest migration."""
        assert MIGRATIONS[-1].version == CURRENT_VERSION

    def test_pending_from_current_is_empty(self) -> None:
        """Test no migrations when at current version."""
        assert get_migrations_to_apply(0) == MIGRATIONS
        assert get_migrations_to_apply(CURRENT_VERSION) == []


class TestMigrationManager:
    """Tests for MigrationManager."""

    @pytest.fixture
    def temp_db(self) -> Generator[sqlite3.Connection]:
        """Create a temporary in-memory database."""
        conn = sqlite3.connect(":memory:")
        yield conn
        conn.close()

    def test_get_current_version_zero_when_empty(self, temp_db: sqlite3.Connection) -> None:
        """Test version is 0 when no migrations applied."""
        assert MigrationManager(temp_db).get_current_version() == 0

    def test_apply_migrations_idempotent(self, temp_db: sqlite3.Connection) -> None:
        """Test applying migrations twice is idempotent."""
        manager = MigrationManager(temp_db)

        assert manager.apply_migrations() == [m.version for m in MIGRATIONS]
        assert manager.apply_migrations() == []
        assert manager.get_current_version() == CURRENT_VERSION

    def test_tables_created_after_migration(self, temp_db: sqlite3.Connection) -> None:
        """Test required tables exist after migration."""
        MigrationManager(temp_db).apply_migrations()

        assert {"user_interests", "specialists", "content_items"} <= _tables(temp_db)

    def test_rollback_drops_tables(self, temp_db: sqlite3.Connection) -> None:
        """Test rolling back to zero removes the schema."""
        manager = MigrationManager(temp_db)
        manager.apply_migrations()

        rolled_back = manager.rollback_to(0)

        assert rolled_back == [CURRENT_VERSION]
        assert manager.get_current_version() == 0
        assert not {"user_interests", "specialists", "content_items"} & _tables(temp_db)

    def test_rollback_negative_raises(self, temp_db: sqlite3.Connection) -> None:
        """Test negative target is rejected."""
        with pytest.raises(ValueError):
            MigrationManager(temp_db).rollback_to(-1)
