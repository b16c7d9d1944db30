"""
Storage module for Strongbox.

Provides the storage port and its two backends.

Usage:
    storage = create_storage("sqlite", db_path="data/strongbox.db")
    identity = storage.create_identity(Identity(username=..., email=..., password_hash=...))
    records = storage.list_records(identity.id)
"""

from pathlib import Path
from typing import Optional, Union

from .base import IdentityRepository, RecordRepository, Storage
from .memory import MemoryStorage
from .models import Identity, Record, decode_metadata, encode_metadata
from .sqlite import SqliteStorage

BACKENDS = ("memory", "sqlite")


def create_storage(backend: str, db_path: Optional[Union[str, Path]] = None) -> Storage:
    """Build a storage backend by name ("memory" or "sqlite")."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "sqlite":
        return SqliteStorage(db_path=db_path)
    raise ValueError(f"Unknown storage backend '{backend}'. Must be one of: {BACKENDS}")


__all__ = [
    "IdentityRepository",
    "RecordRepository",
    "Storage",
    "MemoryStorage",
    "SqliteStorage",
    "Identity",
    "Record",
    "encode_metadata",
    "decode_metadata",
    "create_storage",
    "BACKENDS",
]
