# SQLite Helpers
#
# Every vault SQLite database is opened through connect() so each connection
# gets WAL journaling, a busy timeout and foreign key enforcement.
#
# transaction() wraps one unit of work: open, commit on success, roll back on
# error, always close. apply_migrations() brings a database schema up to date
# from an ordered list of DDL scripts, tracking progress in schema_version.

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Sequence, Union

logger = logging.getLogger(__name__)

BUSY_TIMEOUT_MS = 5000


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = False,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and busy/foreign-key PRAGMAs.

    Args:
        db_path: Path to the database file.
        row_factory: If True, rows are returned as sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: Union[str, Path], *, row_factory: bool = True) -> Iterator[sqlite3.Connection]:
    """Yield a connection whose work is committed as one transaction."""
    conn = connect(db_path, row_factory=row_factory)
    try:
        with conn:
            yield conn
    finally:
        conn.close()


def schema_version(conn: sqlite3.Connection) -> int:
    """Return the recorded schema version (0 for a fresh database)."""
    conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
    row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
    return row[0] if row else 0


def apply_migrations(conn: sqlite3.Connection, migrations: Sequence[str]) -> int:
    """Run the scripts in ``migrations`` the database has not seen yet.

    Script N (1-based) upgrades the schema from version N-1 to N. Each script
    runs in its own transaction together with the version bump.

    Returns:
        The schema version after migrating.
    """
    current = schema_version(conn)
    if current > len(migrations):
        raise sqlite3.DatabaseError(
            f"Database schema version {current} is newer than this code supports ({len(migrations)})"
        )

    for version, script in enumerate(migrations[current:], start=current + 1):
        # executescript() commits first, so wrap the script in BEGIN/COMMIT itself
        conn.executescript(
            "BEGIN;\n"
            f"{script}\n"
            "DELETE FROM schema_version;\n"
            f"INSERT INTO schema_version (version) VALUES ({version});\n"
            "COMMIT;"
        )
        logger.info("Applied schema migration %d", version)

    return len(migrations)
