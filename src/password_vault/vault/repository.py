# Vault - PasswordEntry Repository Adapters
#
# InMemoryPasswordEntryRepository: dict-backed, for tests and --storage memory
# SqlitePasswordEntryRepository:   SQLite file via core.db.transaction()
#
# Both store the to_primitives() projection plus a version number and hand
# out fresh aggregates built with PasswordEntry.from_primitives(). save() is
# compare-and-swap on the version (see PasswordEntryRepository).

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from ..core.db import apply_migrations, transaction
from .exceptions import ConcurrentModificationError, StorageUnavailableError
from .password_entry import PasswordEntry
from .ports import ListCriteria, PasswordEntryRepository
from .value_objects import PasswordEntryId

logger = logging.getLogger(__name__)

# Append new scripts; never edit one that has shipped
SCHEMA_MIGRATIONS = (
    """
    CREATE TABLE IF NOT EXISTS password_entries (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        site_name TEXT NOT NULL,
        site_url TEXT,
        username TEXT NOT NULL,
        encrypted_password TEXT NOT NULL,
        category TEXT NOT NULL,
        notes TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        version INTEGER NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_password_entries_user
        ON password_entries (user_id, category);
    """,
)


# Site names sort by str.casefold() in both adapters; NOCASE folds ASCII only
CASEFOLD_COLLATION = "CASEFOLD"


def _casefold_compare(left: str, right: str) -> int:
    left, right = left.casefold(), right.casefold()
    return (left > right) - (left < right)


def _check_version(entry: PasswordEntry, stored_version: Optional[int]) -> None:
    """Raise unless entry.version matches what is stored (0 == not stored yet)."""
    expected = entry.version
    if stored_version is None:
        if expected != 0:
            raise ConcurrentModificationError(entry.id.value, expected, None)
    elif stored_version != expected:
        raise ConcurrentModificationError(entry.id.value, expected, stored_version)


class InMemoryPasswordEntryRepository(PasswordEntryRepository):
    """Process-local repository keeping primitives in a dict."""

    def __init__(self):
        # entry id -> (version, primitives); dict order is insertion order
        self._rows: Dict[str, Tuple[int, Dict[str, Any]]] = {}

    def save(self, entry: PasswordEntry) -> None:
        stored = self._rows.get(entry.id.value)
        _check_version(entry, stored[0] if stored else None)

        new_version = entry.version + 1
        self._rows[entry.id.value] = (new_version, entry.to_primitives())
        entry.mark_persisted(new_version)

    def find_by_id(
        self, entry_id: PasswordEntryId, user_id: Optional[str] = None
    ) -> Optional[PasswordEntry]:
        stored = self._rows.get(entry_id.value)
        if stored is None:
            return None
        version, data = stored
        if user_id is not None and data["userId"] != user_id:
            return None
        return PasswordEntry.from_primitives(data, version=version)

    def find_by_user_id(self, user_id: str) -> List[PasswordEntry]:
        return [
            PasswordEntry.from_primitives(data, version=version)
            for version, data in self._owned(user_id)
        ]

    def search(self, user_id: str, criteria: ListCriteria) -> List[PasswordEntry]:
        rows = self._owned(user_id, criteria.category)
        rows.sort(
            key=lambda row: self._sort_key(row[1], criteria.sort_by),
            reverse=criteria.sort_order == "desc",
        )
        page = rows[criteria.offset:criteria.offset + criteria.limit]
        return [PasswordEntry.from_primitives(data, version=version) for version, data in page]

    def count_by_user_id(self, user_id: str, category: Optional[str] = None) -> int:
        return len(self._owned(user_id, category))

    def delete(self, entry_id: PasswordEntryId, user_id: str) -> bool:
        stored = self._rows.get(entry_id.value)
        if stored is None or stored[1]["userId"] != user_id:
            return False
        del self._rows[entry_id.value]
        return True

    def clear(self) -> None:
        self._rows.clear()

    def __len__(self) -> int:
        return len(self._rows)

    def _owned(self, user_id: str, category: Optional[str] = None) -> List[Tuple[int, Dict[str, Any]]]:
        wanted = category.upper() if category else None
        return [
            (version, data)
            for version, data in self._rows.values()
            if data["userId"] == user_id and (wanted is None or data["category"] == wanted)
        ]

    @staticmethod
    def _sort_key(data: Dict[str, Any], sort_by: str):
        if sort_by == "createdAt":
            return data["createdAt"]
        if sort_by == "category":
            return data["category"]
        return data["siteName"].casefold()


class SqlitePasswordEntryRepository(PasswordEntryRepository):
    """
    SQLite-backed repository.

    Args:
        db_path: Path to SQLite file. Defaults to data/password_vault.db.
    """

    _SORT_COLUMNS = {
        "siteName": f"site_name COLLATE {CASEFOLD_COLLATION}",
        "createdAt": "created_at",
        "category": "category",
    }

    _COLUMNS = (
        "id, user_id, site_name, site_url, username, encrypted_password, "
        "category, notes, tags, created_at, updated_at, version"
    )

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else Path("data/password_vault.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        with self._connection("init") as conn:
            apply_migrations(conn, SCHEMA_MIGRATIONS)

    @contextmanager
    def _connection(self, operation: str) -> Iterator[sqlite3.Connection]:
        """One transaction; sqlite errors become StorageUnavailableError."""
        try:
            with transaction(self.db_path) as conn:
                conn.create_collation(CASEFOLD_COLLATION, _casefold_compare)
                yield conn
        except sqlite3.Error as e:
            logger.error("Vault database %s failed on %s: %s", operation, self.db_path, e)
            raise StorageUnavailableError(
                operation, f"Vault database error during {operation}: {e}"
            ) from e

    def save(self, entry: PasswordEntry) -> None:
        data = entry.to_primitives()
        values = (
            data["userId"],
            data["siteName"],
            data["siteUrl"],
            data["username"],
            data["encryptedPassword"],
            data["category"],
            data["notes"],
            json.dumps(data["tags"]),
            data["createdAt"].isoformat(timespec="microseconds"),
            data["updatedAt"].isoformat(timespec="microseconds"),
        )
        new_version = entry.version + 1

        with self._connection("save") as conn:
            if entry.version == 0:
                try:
                    conn.execute(
                        f"INSERT INTO password_entries ({self._COLUMNS}) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                        (data["id"],) + values + (new_version,),
                    )
                except sqlite3.IntegrityError:
                    _check_version(entry, self._stored_version(conn, data["id"]))
                    raise
            else:
                cur = conn.execute(
                    """UPDATE password_entries SET
                           user_id = ?, site_name = ?, site_url = ?, username = ?,
                           encrypted_password = ?, category = ?, notes = ?, tags = ?,
                           created_at = ?, updated_at = ?, version = ?
                       WHERE id = ? AND version = ?""",
                    values + (new_version, data["id"], entry.version),
                )
                if cur.rowcount == 0:
                    _check_version(entry, self._stored_version(conn, data["id"]))

        entry.mark_persisted(new_version)

    def find_by_id(
        self, entry_id: PasswordEntryId, user_id: Optional[str] = None
    ) -> Optional[PasswordEntry]:
        query = f"SELECT {self._COLUMNS} FROM password_entries WHERE id = ?"
        params: Tuple[Any, ...] = (entry_id.value,)
        if user_id is not None:
            query += " AND user_id = ?"
            params += (user_id,)

        with self._connection("find_by_id") as conn:
            row = conn.execute(query, params).fetchone()
        return self._to_entry(row) if row else None

    def find_by_user_id(self, user_id: str) -> List[PasswordEntry]:
        with self._connection("find_by_user_id") as conn:
            rows = conn.execute(
                f"SELECT {self._COLUMNS} FROM password_entries WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            ).fetchall()
        return [self._to_entry(row) for row in rows]

    def search(self, user_id: str, criteria: ListCriteria) -> List[PasswordEntry]:
        where, params = self._owner_filter(user_id, criteria.category)
        order = "DESC" if criteria.sort_order == "desc" else "ASC"
        # Ties keep insertion order in both directions
        query = (
            f"SELECT {self._COLUMNS} FROM password_entries WHERE {where} "
            f"ORDER BY {self._SORT_COLUMNS[criteria.sort_by]} {order}, rowid ASC "
            "LIMIT ? OFFSET ?"
        )
        with self._connection("search") as conn:
            rows = conn.execute(query, params + (criteria.limit, criteria.offset)).fetchall()
        return [self._to_entry(row) for row in rows]

    def count_by_user_id(self, user_id: str, category: Optional[str] = None) -> int:
        where, params = self._owner_filter(user_id, category)
        with self._connection("count_by_user_id") as conn:
            row = conn.execute(f"SELECT COUNT(*) FROM password_entries WHERE {where}", params).fetchone()
        return row[0]

    def delete(self, entry_id: PasswordEntryId, user_id: str) -> bool:
        with self._connection("delete") as conn:
            cur = conn.execute(
                "DELETE FROM password_entries WHERE id = ? AND user_id = ?",
                (entry_id.value, user_id),
            )
            return cur.rowcount > 0

    @staticmethod
    def _owner_filter(user_id: str, category: Optional[str]) -> Tuple[str, Tuple[Any, ...]]:
        if category:
            return "user_id = ? AND category = ?", (user_id, category.upper())
        return "user_id = ?", (user_id,)

    @staticmethod
    def _stored_version(conn: sqlite3.Connection, entry_id: str) -> Optional[int]:
        row = conn.execute(
            "SELECT version FROM password_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        return row["version"] if row else None

    @staticmethod
    def _to_entry(row: sqlite3.Row) -> PasswordEntry:
        return PasswordEntry.from_primitives(
            {
                "id": row["id"],
                "userId": row["user_id"],
                "siteName": row["site_name"],
                "siteUrl": row["site_url"],
                "username": row["username"],
                "encryptedPassword": row["encrypted_password"],
                "category": row["category"],
                "notes": row["notes"],
                "tags": json.loads(row["tags"]),
                "createdAt": row["created_at"],
                "updatedAt": row["updated_at"],
            },
            version=row["version"],
        )
