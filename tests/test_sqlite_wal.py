"""
Tests for the SQLite layer under SqliteStorage.

Covers: connect() PRAGMAs, transaction() commit/rollback, WAL on the
storage database, reads while another thread writes records.
"""

import sqlite3
import threading

import pytest

from strongbox.core.db import connect as db_connect
from strongbox.core.db import transaction
from strongbox.errors import StorageError
from strongbox.storage import Identity, Record, SqliteStorage


@pytest.fixture
def sqlite_storage(tmp_path):
    return SqliteStorage(db_path=tmp_path / "strongbox.db")


@pytest.fixture
def owner(sqlite_storage):
    return sqlite_storage.create_identity(Identity(
        username="alice",
        email="alice@example.com",
        password_hash="$2b$04$fakehashfakehashfakehu",
    ))


def test_connect_sets_pragmas(tmp_path):
    conn = db_connect(tmp_path / "pragmas.db")
    try:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == 5000
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert conn.row_factory is None
    finally:
        conn.close()


# ===================================================================
# TestTransaction: commit / rollback helper
# ===================================================================


class TestTransaction:
    """Verify transaction() commits on success and rolls back on error."""

    def test_commits_on_success(self, tmp_path):
        db_path = tmp_path / "tx.db"
        with transaction(db_path) as conn:
            conn.execute("CREATE TABLE t (id INTEGER)")
            conn.execute("INSERT INTO t VALUES (1)")

        check = db_connect(db_path)
        assert check.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 1
        check.close()

    def test_rolls_back_on_error(self, tmp_path):
        db_path = tmp_path / "tx.db"
        with transaction(db_path) as conn:
            conn.execute("CREATE TABLE t (id INTEGER)")

        with pytest.raises(RuntimeError):
            with transaction(db_path) as conn:
                conn.execute("INSERT INTO t VALUES (1)")
                raise RuntimeError("abort")

        check = db_connect(db_path)
        assert check.execute("SELECT COUNT(*) FROM t").fetchone()[0] == 0
        check.close()

    def test_yields_row_factory_connection(self, tmp_path):
        with transaction(tmp_path / "tx.db") as conn:
            row = conn.execute("SELECT 1 AS one").fetchone()
            assert row["one"] == 1


# ===================================================================
# TestStorageDatabase: the SQLite backend on disk
# ===================================================================


class TestStorageDatabase:
    def test_storage_uses_wal(self, sqlite_storage):
        conn = sqlite3.connect(str(sqlite_storage.db_path))
        mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        conn.close()
        assert mode == "wal"

    def test_schema_created(self, sqlite_storage):
        conn = db_connect(sqlite_storage.db_path)
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        conn.close()
        assert {"identities", "records"} <= tables

    def test_record_needs_existing_owner(self, sqlite_storage):
        with pytest.raises(StorageError):
            sqlite_storage.create_record(Record(owner_id="no-such-identity", name="orphan"))

    def test_soft_deleted_row_kept_on_disk(self, sqlite_storage, owner):
        record = sqlite_storage.create_record(Record(owner_id=owner.id, name="bank"))
        sqlite_storage.delete_record(record.id)

        conn = db_connect(sqlite_storage.db_path)
        deleted_at = conn.execute(
            "SELECT deleted_at FROM records WHERE id = ?", (record.id,)
        ).fetchone()[0]
        conn.close()
        assert deleted_at is not None


# ===================================================================
# TestConcurrentRecordAccess: readers keep working during writes
# ===================================================================


class TestConcurrentRecordAccess:
    def test_list_while_writing(self, sqlite_storage, owner):
        writes = 50
        errors = []
        seen_counts = []
        done = threading.Event()

        def writer():
            try:
                for i in range(writes):
                    sqlite_storage.create_record(Record(owner_id=owner.id, name=f"r{i}"))
            except Exception as e:
                errors.append(e)
            finally:
                done.set()

        def reader():
            try:
                while not done.is_set():
                    seen_counts.append(len(sqlite_storage.list_records(owner.id)))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert all(0 <= c <= writes for c in seen_counts)
        assert len(sqlite_storage.list_records(owner.id)) == writes

    def test_storage_instances_share_one_file(self, tmp_path):
        db_path = tmp_path / "shared.db"
        first = SqliteStorage(db_path)
        identity = first.create_identity(Identity(
            username="alice", email="alice@example.com", password_hash="x",
        ))

        second = SqliteStorage(db_path)
        second.create_record(Record(owner_id=identity.id, name="bank"))

        assert [r.name for r in first.list_records(identity.id)] == ["bank"]
