"""
Storage models for Strongbox.

Plain dataclasses shared by every storage backend:
- Identity: a registered user account
- Record: one stored secret entry owned by an identity
"""

import json
import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Identity:
    """
    Registered user account.

    Attributes:
        id: UUID string
        username: Unique login name
        email: Unique email address
        password_hash: bcrypt hash, never returned to callers
        created_at: Registration timestamp
        updated_at: Last password change
    """
    username: str
    email: str
    password_hash: str
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def summary(self) -> Dict[str, str]:
        """Public view: id, username, email."""
        return {"id": self.id, "username": self.username, "email": self.email}


@dataclass
class Record:
    """
    Secret entry owned by exactly one identity.

    Attributes:
        id: UUID string
        owner_id: Identity that owns the record
        name: Display name (required)
        login: Plaintext login
        password: Encrypted password field ("" when no password was given)
        metadata: Opaque JSON text ("" when absent)
        created_at: Creation timestamp
        updated_at: Last update timestamp
        deleted_at: Soft-delete marker (None while active)
    """
    owner_id: str
    name: str
    login: str = ""
    password: str = ""
    metadata: str = ""
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def copy(self) -> "Record":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Response view. ``password`` stays encrypted, ``metadata`` is decoded."""
        data = asdict(self)
        data.pop("deleted_at")
        data["metadata"] = decode_metadata(self.metadata)
        data["user_id"] = data.pop("owner_id")
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data


def encode_metadata(metadata: Any) -> str:
    """Serialize caller metadata to the stored JSON text."""
    if metadata is None:
        return ""
    return json.dumps(metadata)


def decode_metadata(metadata: str) -> Any:
    """Parse stored JSON text back into a value (None when empty)."""
    if not metadata:
        return None
    return json.loads(metadata)
