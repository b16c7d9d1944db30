# Storage - SQLite Backend
#
# Persistent identities and records.
# Uses the core.db connect helper (WAL journal, busy_timeout, foreign keys).
#
# Uniqueness of username/email is enforced by UNIQUE constraints so that
# concurrent registrations race inside SQLite, not in application code.
# Records are soft-deleted (deleted_at) and filtered out of every lookup.

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..core.db import transaction
from ..errors import ConflictError, NotFoundError, StorageError
from .base import Storage
from .models import Identity, Record, utcnow

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS identities (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL UNIQUE,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS records (
        id TEXT PRIMARY KEY,
        owner_id TEXT NOT NULL REFERENCES identities(id),
        name TEXT NOT NULL,
        login TEXT NOT NULL DEFAULT '',
        password TEXT NOT NULL DEFAULT '',
        metadata TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        deleted_at TEXT
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_records_owner
    ON records(owner_id)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_records_deleted_at
    ON records(deleted_at)
    """,
)


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_identity(row: sqlite3.Row) -> Identity:
    return Identity(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _row_to_record(row: sqlite3.Row) -> Record:
    return Record(
        id=row["id"],
        owner_id=row["owner_id"],
        name=row["name"],
        login=row["login"],
        password=row["password"],
        metadata=row["metadata"],
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
        deleted_at=_parse_ts(row["deleted_at"]),
    )


def _conflict_field(error: sqlite3.IntegrityError) -> Optional[str]:
    """Pull the column name out of 'UNIQUE constraint failed: identities.email'."""
    message = str(error)
    if "UNIQUE constraint failed" not in message:
        return None
    return message.rsplit(".", 1)[-1].strip()


class SqliteStorage(Storage):
    """SQLite persistence for identities and records.

    Args:
        db_path: Path to SQLite database file. Defaults to data/strongbox.db.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path) if db_path else Path("data/strongbox.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Create tables if they don't exist."""
        with transaction(self.db_path) as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
        logger.info("SQLite storage ready: %s", self.db_path)

    # ── Identities ────────────────────────────────────────────────────

    def create_identity(self, identity: Identity) -> Identity:
        try:
            with transaction(self.db_path) as conn:
                conn.execute(
                    """INSERT INTO identities
                       (id, username, email, password_hash, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        identity.id,
                        identity.username,
                        identity.email,
                        identity.password_hash,
                        identity.created_at.isoformat(),
                        identity.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            field = _conflict_field(e)
            if field is None:
                raise StorageError(f"Failed to create identity: {e}") from e
            raise ConflictError(f"{field.capitalize()} already exists", field=field) from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create identity: {e}") from e

        logger.debug("Identity stored: %s", identity.id)
        return identity

    def _fetch_identity(self, column: str, value: str) -> Optional[Identity]:
        try:
            with transaction(self.db_path) as conn:
                row = conn.execute(
                    f"SELECT * FROM identities WHERE {column} = ?", (value,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read identity: {e}") from e
        return _row_to_identity(row) if row else None

    def get_identity(self, identity_id: str) -> Optional[Identity]:
        return self._fetch_identity("id", identity_id)

    def get_identity_by_username(self, username: str) -> Optional[Identity]:
        return self._fetch_identity("username", username)

    def get_identity_by_email(self, email: str) -> Optional[Identity]:
        return self._fetch_identity("email", email)

    # ── Records ───────────────────────────────────────────────────────

    def create_record(self, record: Record) -> Record:
        try:
            with transaction(self.db_path) as conn:
                conn.execute(
                    """INSERT INTO records
                       (id, owner_id, name, login, password, metadata,
                        created_at, updated_at, deleted_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, NULL)""",
                    (
                        record.id,
                        record.owner_id,
                        record.name,
                        record.login,
                        record.password,
                        record.metadata,
                        record.created_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as e:
            if _conflict_field(e) == "id":
                raise ConflictError("Record already exists", field="id") from e
            raise StorageError(f"Failed to create record: {e}") from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create record: {e}") from e
        return record.copy()

    def get_record(self, record_id: str) -> Optional[Record]:
        try:
            with transaction(self.db_path) as conn:
                row = conn.execute(
                    "SELECT * FROM records WHERE id = ? AND deleted_at IS NULL",
                    (record_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read record: {e}") from e
        return _row_to_record(row) if row else None

    def list_records(self, owner_id: str) -> List[Record]:
        try:
            with transaction(self.db_path) as conn:
                rows = conn.execute(
                    """SELECT * FROM records
                       WHERE owner_id = ? AND deleted_at IS NULL
                       ORDER BY created_at""",
                    (owner_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list records: {e}") from e
        return [_row_to_record(r) for r in rows]

    def update_record(self, record: Record) -> Record:
        try:
            with transaction(self.db_path) as conn:
                cursor = conn.execute(
                    """UPDATE records
                       SET name = ?, login = ?, password = ?, metadata = ?, updated_at = ?
                       WHERE id = ? AND deleted_at IS NULL""",
                    (
                        record.name,
                        record.login,
                        record.password,
                        record.metadata,
                        record.updated_at.isoformat(),
                        record.id,
                    ),
                )
                updated = cursor.rowcount
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update record: {e}") from e

        if updated == 0:
            raise NotFoundError("Record not found")
        return record.copy()

    def delete_record(self, record_id: str) -> bool:
        try:
            with transaction(self.db_path) as conn:
                cursor = conn.execute(
                    "UPDATE records SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                    (utcnow().isoformat(), record_id),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete record: {e}") from e
