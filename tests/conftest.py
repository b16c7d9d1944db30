"""
Shared pytest fixtures for the Strongbox test suite.

Autouse fixtures below isolate tests from live application data:
  - Audit logger -> temp directory (prevents test events in ./audit_logs)

Backend-dependent fixtures are parametrized so every storage test and
every API test runs against both the memory and the SQLite backend.
"""

import pytest
from fastapi.testclient import TestClient

from strongbox.api import create_app
from strongbox.auth import IdentityService, TokenManager
from strongbox.config import StrongboxConfig
from strongbox.core import AuditLogger
from strongbox.storage import MemoryStorage, SqliteStorage
from strongbox.vault import FieldCipher, RecordStore

TEST_JWT_SECRET = "test-signing-secret-with-at-least-32-bytes!"
TEST_CRYPTO_KEY = "test-field-cipher-key-material"
# bcrypt's minimum cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) calls
    ``get_audit_logger().log_event(...)`` writes into the real
    ``./audit_logs/`` directory.
    """
    import strongbox.core.audit_log as audit_mod

    # Reset the singleton so the next call to get_audit_logger() creates
    # a fresh instance pointing at the temp directory.
    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None, level="INFO"):
        orig_init(self, log_dir=log_dir or tmp_path / "audit_logs", level=level)

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    if audit_mod._audit_logger is not None:
        audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture
def audit_logger(tmp_path):
    logger = AuditLogger(log_dir=tmp_path / "audit")
    yield logger
    logger.close()


@pytest.fixture
def cipher():
    return FieldCipher(TEST_CRYPTO_KEY)


@pytest.fixture
def jwt_secret():
    return TEST_JWT_SECRET


@pytest.fixture
def token_manager(jwt_secret):
    return TokenManager(jwt_secret)


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    """Each backend in turn."""
    if request.param == "memory":
        backend = MemoryStorage()
    else:
        backend = SqliteStorage(db_path=tmp_path / "strongbox.db")
    yield backend
    backend.close()


@pytest.fixture
def identity_service(storage, token_manager, audit_logger):
    return IdentityService(
        storage, token_manager, audit_logger=audit_logger, bcrypt_rounds=TEST_BCRYPT_ROUNDS
    )


@pytest.fixture
def record_store(storage, cipher, audit_logger):
    return RecordStore(storage, storage, cipher, audit_logger=audit_logger)


@pytest.fixture
def config(tmp_path):
    return StrongboxConfig(
        jwt_secret=TEST_JWT_SECRET,
        crypto_key=TEST_CRYPTO_KEY,
        database_path=tmp_path / "strongbox.db",
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        log_dir=tmp_path / "audit_logs",
    )


@pytest.fixture
def app(config, storage, audit_logger):
    return create_app(config, storage=storage, audit_logger=audit_logger)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def register_user(client):
    """Register through the API; returns (identity_id, auth headers)."""

    def _register(username="alice", email=None, password="correct horse battery"):
        resp = client.post("/api/v1/register", json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        })
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}

    return _register
