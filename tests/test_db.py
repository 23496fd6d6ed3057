"""
Tests for the SQLite helpers in password_vault.core.db.
"""

import sqlite3

import pytest

from password_vault.core.db import (
    BUSY_TIMEOUT_MS,
    apply_migrations,
    connect,
    schema_version,
    transaction,
)

MIGRATIONS = (
    "CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL);",
    "ALTER TABLE items ADD COLUMN note TEXT;",
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


class TestConnect:

    def test_pragmas(self, db_path):
        conn = connect(db_path)
        try:
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
            assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == BUSY_TIMEOUT_MS
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        finally:
            conn.close()

    def test_row_factory(self, db_path):
        conn = connect(db_path, row_factory=True)
        try:
            row = conn.execute("SELECT 1 AS one").fetchone()
            assert row["one"] == 1
        finally:
            conn.close()


class TestTransaction:

    def test_commits_on_success(self, db_path):
        with transaction(db_path) as conn:
            conn.execute("CREATE TABLE t (x INTEGER)")
            conn.execute("INSERT INTO t VALUES (1)")

        with transaction(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 1

    def test_rolls_back_on_error(self, db_path):
        with transaction(db_path) as conn:
            conn.execute("CREATE TABLE t (x INTEGER)")

        with pytest.raises(RuntimeError):
            with transaction(db_path) as conn:
                conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("boom")

        with transaction(db_path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 0


class TestMigrations:

    def test_fresh_database_is_version_zero(self, db_path):
        with transaction(db_path) as conn:
            assert schema_version(conn) == 0

    def test_applies_all_scripts(self, db_path):
        with transaction(db_path) as conn:
            assert apply_migrations(conn, MIGRATIONS) == 2
            conn.execute("INSERT INTO items (name, note) VALUES ('a', 'b')")

        with transaction(db_path) as conn:
            assert schema_version(conn) == 2

    def test_rerun_is_noop(self, db_path):
        with transaction(db_path) as conn:
            apply_migrations(conn, MIGRATIONS)
        with transaction(db_path) as conn:
            # Re-running ALTER TABLE would fail with a duplicate column
            assert apply_migrations(conn, MIGRATIONS) == 2

    def test_applies_only_new_scripts(self, db_path):
        with transaction(db_path) as conn:
            apply_migrations(conn, MIGRATIONS[:1])
            assert schema_version(conn) == 1

        with transaction(db_path) as conn:
            apply_migrations(conn, MIGRATIONS)
            columns = [row["name"] for row in conn.execute("PRAGMA table_info(items)")]

        assert columns == ["id", "name", "note"]

    def test_failed_script_keeps_previous_version(self, db_path):
        broken = MIGRATIONS[:1] + ("CREATE TABLE broken (",)

        with pytest.raises(sqlite3.Error):
            with transaction(db_path) as conn:
                apply_migrations(conn, broken)

        with transaction(db_path) as conn:
            assert schema_version(conn) == 1

    def test_newer_database_is_rejected(self, db_path):
        with transaction(db_path) as conn:
            apply_migrations(conn, MIGRATIONS)

        with pytest.raises(sqlite3.DatabaseError, match="newer"):
            with transaction(db_path) as conn:
                apply_migrations(conn, MIGRATIONS[:1])
