# Vault - Ownership-Scoped Record Store
#
# CRUD over records keyed by owner identity.
# Only the owning identity may read, update or delete a record; every
# mutating operation runs check_ownership() before touching record state.
# The password field is encrypted on every write and never decrypted here.

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from ..storage import IdentityRepository, Record, RecordRepository, encode_metadata
from ..storage.models import utcnow
from .encryption import FieldCipher


class RecordNotFoundError(NotFoundError):
    """Record is absent, deleted, or (after concealment) not owned."""


class RecordForbiddenError(AuthorizationError):
    """Record exists but belongs to another identity."""


class OwnershipStatus(str, Enum):
    OK = "ok"
    NOT_OWNED = "not_owned"
    NOT_FOUND = "not_found"


@dataclass
class RecordPatch:
    """
    Fields to change on update.

    An empty string (or None) leaves the stored value unchanged, which
    means a field cannot be cleared through update. ``metadata`` is
    replaced whenever it is not None.
    """
    name: Optional[str] = None
    login: Optional[str] = None
    password: Optional[str] = None
    metadata: Any = None


class RecordStore:
    """
    Manages records on behalf of authenticated callers.

    Security:
    - Ownership verified before any read or mutation
    - Password field encrypted with a fresh nonce on every write
    - Audit logging for all record mutations and denied access
    """

    def __init__(
        self,
        records: RecordRepository,
        identities: IdentityRepository,
        cipher: FieldCipher,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.records = records
        self.identities = identities
        self.cipher = cipher
        self.logger = audit_logger or get_audit_logger()

    def _encrypt(self, raw_password: str) -> str:
        return self.cipher.encrypt(raw_password) if raw_password else ""

    def create(
        self,
        owner_id: str,
        name: str,
        login: str = "",
        raw_password: str = "",
        metadata: Any = None,
    ) -> Record:
        """
        Create a record owned by ``owner_id``.

        Raises:
            ValidationError: name is empty
            AuthenticationError: owner no longer exists
        """
        if not name:
            raise ValidationError("Name is required")

        if self.identities.get_identity(owner_id) is None:
            raise AuthenticationError("Identity not found")

        now = utcnow()
        record = Record(
            owner_id=owner_id,
            name=name,
            login=login or "",
            password=self._encrypt(raw_password),
            metadata=encode_metadata(metadata),
            created_at=now,
            updated_at=now,
        )
        record = self.records.create_record(record)

        self.logger.log_record_event(
            event_type=EventType.RECORD_CREATED,
            record_id=record.id,
            caller_id=owner_id,
        )
        return record

    def get(self, record_id: str, caller_id: str) -> Record:
        """
        Get one record owned by the caller.

        Raises:
            RecordNotFoundError: absent, deleted or owned by someone else
        """
        record = self.records.get_record(record_id)
        if record is None or record.owner_id != caller_id:
            raise RecordNotFoundError("Record not found")
        return record

    def list_by_owner(self, owner_id: str) -> List[Record]:
        """List the caller's active records (order not guaranteed)."""
        return self.records.list_records(owner_id)

    def check_ownership(self, record_id: str, caller_id: str) -> OwnershipStatus:
        """Report whether ``caller_id`` owns the active record ``record_id``."""
        record = self.records.get_record(record_id)
        if record is None:
            return OwnershipStatus.NOT_FOUND
        if record.owner_id != caller_id:
            return OwnershipStatus.NOT_OWNED
        return OwnershipStatus.OK

    def _require_ownership(self, record_id: str, caller_id: str) -> None:
        status = self.check_ownership(record_id, caller_id)
        if status is OwnershipStatus.NOT_FOUND:
            raise RecordNotFoundError("Record not found")
        if status is OwnershipStatus.NOT_OWNED:
            self.logger.log_record_event(
                event_type=EventType.RECORD_ACCESS_DENIED,
                record_id=record_id,
                caller_id=caller_id,
                severity=EventSeverity.ALERT,
            )
            raise RecordForbiddenError("Record belongs to another identity")

    def update(self, record_id: str, caller_id: str, patch: RecordPatch) -> Record:
        """
        Apply ``patch`` to a record owned by the caller.

        Raises:
            RecordForbiddenError: caller does not own the record
            RecordNotFoundError: record is absent or deleted
        """
        self._require_ownership(record_id, caller_id)

        record = self.records.get_record(record_id)
        if record is None:
            raise RecordNotFoundError("Record not found")

        changed = []
        if patch.name:
            record.name = patch.name
            changed.append("name")
        if patch.login:
            record.login = patch.login
            changed.append("login")
        if patch.password:
            record.password = self._encrypt(patch.password)
            changed.append("password")
        if patch.metadata is not None:
            record.metadata = encode_metadata(patch.metadata)
            changed.append("metadata")
        record.updated_at = utcnow()

        try:
            record = self.records.update_record(record)
        except NotFoundError as e:
            # deleted between the ownership check and the write
            raise RecordNotFoundError("Record not found") from e

        self.logger.log_record_event(
            event_type=EventType.RECORD_UPDATED,
            record_id=record_id,
            caller_id=caller_id,
            details={"fields": changed},
        )
        return record

    def delete(self, record_id: str, caller_id: str) -> None:
        """
        Soft-delete a record owned by the caller.

        Raises:
            RecordForbiddenError: caller does not own the record
            RecordNotFoundError: record is absent or already deleted
        """
        self._require_ownership(record_id, caller_id)

        if not self.records.delete_record(record_id):
            raise RecordNotFoundError("Record not found")

        self.logger.log_record_event(
            event_type=EventType.RECORD_DELETED,
            record_id=record_id,
            caller_id=caller_id,
        )
