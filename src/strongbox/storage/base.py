"""
Storage port.

Abstract repositories that the core consumes. Two implementations ship:
``MemoryStorage`` (tests, development) and ``SqliteStorage`` (production).
Both apply the same lifecycle: records are soft-deleted and a deleted
record is invisible to every lookup.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Identity, Record


class IdentityRepository(ABC):
    """Identity data access object."""

    @abstractmethod
    def create_identity(self, identity: Identity) -> Identity:
        """
        Insert a new identity.

        Uniqueness of username and email is enforced atomically by the
        backend (insert-if-absent), never by a separate lookup.

        Raises:
            ConflictError: username or email already taken
        """

    @abstractmethod
    def get_identity(self, identity_id: str) -> Optional[Identity]:
        """Get identity by ID."""

    @abstractmethod
    def get_identity_by_username(self, username: str) -> Optional[Identity]:
        """Get identity by username."""

    @abstractmethod
    def get_identity_by_email(self, email: str) -> Optional[Identity]:
        """Get identity by email."""


class RecordRepository(ABC):
    """Record data access object. Knows nothing about ownership rules."""

    @abstractmethod
    def create_record(self, record: Record) -> Record:
        """Insert a new record."""

    @abstractmethod
    def get_record(self, record_id: str) -> Optional[Record]:
        """Get an active record by ID (None if absent or deleted)."""

    @abstractmethod
    def list_records(self, owner_id: str) -> List[Record]:
        """List active records of one owner."""

    @abstractmethod
    def update_record(self, record: Record) -> Record:
        """
        Persist changed fields of an active record.

        Raises:
            NotFoundError: record is absent or deleted
        """

    @abstractmethod
    def delete_record(self, record_id: str) -> bool:
        """Soft-delete. Returns False if the record was absent or already deleted."""


class Storage(IdentityRepository, RecordRepository):
    """A backend that provides both repositories."""

    def close(self) -> None:
        """Release backend resources."""
