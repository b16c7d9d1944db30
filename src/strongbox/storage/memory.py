"""
In-memory storage backend.

A single re-entrant lock guards the identity and record maps. Username
and email indexes make identity creation an atomic insert-if-absent, so
two concurrent registrations of the same name can't both succeed.
Stored objects are copied in and out so callers never share mutable state
with the store.
"""

import logging
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from ..errors import ConflictError, NotFoundError
from .base import Storage
from .models import Identity, Record, utcnow

logger = logging.getLogger(__name__)


class MemoryStorage(Storage):
    """Thread-safe in-memory identities and records."""

    def __init__(self):
        self._lock = threading.RLock()
        self._identities: Dict[str, Identity] = {}
        self._by_username: Dict[str, str] = {}
        self._by_email: Dict[str, str] = {}
        self._records: Dict[str, Record] = {}

    # ── Identities ────────────────────────────────────────────────────

    def create_identity(self, identity: Identity) -> Identity:
        with self._lock:
            if identity.username in self._by_username:
                raise ConflictError("Username already exists", field="username")
            if identity.email in self._by_email:
                raise ConflictError("Email already exists", field="email")
            if identity.id in self._identities:
                raise ConflictError("Identity already exists", field="id")

            stored = replace(identity)
            self._identities[stored.id] = stored
            self._by_username[stored.username] = stored.id
            self._by_email[stored.email] = stored.id

        logger.debug("Identity stored: %s", identity.id)
        return replace(stored)

    def get_identity(self, identity_id: str) -> Optional[Identity]:
        with self._lock:
            identity = self._identities.get(identity_id)
            return replace(identity) if identity else None

    def get_identity_by_username(self, username: str) -> Optional[Identity]:
        with self._lock:
            identity_id = self._by_username.get(username)
            return self.get_identity(identity_id) if identity_id else None

    def get_identity_by_email(self, email: str) -> Optional[Identity]:
        with self._lock:
            identity_id = self._by_email.get(email)
            return self.get_identity(identity_id) if identity_id else None

    # ── Records ───────────────────────────────────────────────────────

    def create_record(self, record: Record) -> Record:
        with self._lock:
            if record.id in self._records:
                raise ConflictError("Record already exists", field="id")
            self._records[record.id] = record.copy()
        return record.copy()

    def get_record(self, record_id: str) -> Optional[Record]:
        with self._lock:
            record = self._records.get(record_id)
            if record is None or record.is_deleted:
                return None
            return record.copy()

    def list_records(self, owner_id: str) -> List[Record]:
        with self._lock:
            return [
                record.copy()
                for record in self._records.values()
                if record.owner_id == owner_id and not record.is_deleted
            ]

    def update_record(self, record: Record) -> Record:
        with self._lock:
            existing = self._records.get(record.id)
            if existing is None or existing.is_deleted:
                raise NotFoundError("Record not found")
            self._records[record.id] = record.copy()
        return record.copy()

    def delete_record(self, record_id: str) -> bool:
        with self._lock:
            existing = self._records.get(record_id)
            if existing is None or existing.is_deleted:
                return False
            existing.deleted_at = utcnow()
        return True
