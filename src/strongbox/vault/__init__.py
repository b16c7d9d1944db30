# Vault Module - Encrypted Record Storage
#
# Per-record AES-256-GCM encryption of the password field
# Ownership-scoped CRUD on top of the storage port

from .encryption import CipherAuthenticationError, FieldCipher
from .record_store import (
    OwnershipStatus,
    RecordForbiddenError,
    RecordNotFoundError,
    RecordPatch,
    RecordStore,
)

__all__ = [
    "FieldCipher",
    "CipherAuthenticationError",
    "RecordStore",
    "RecordPatch",
    "OwnershipStatus",
    "RecordNotFoundError",
    "RecordForbiddenError",
]
