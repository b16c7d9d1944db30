"""
Registration and login.

Combines the credential verifier, the token manager and identity storage.
Login failures are uniform: an unknown username and a wrong password
produce the same AuthenticationError.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..errors import AuthenticationError, ConflictError, ValidationError
from ..storage import Identity, IdentityRepository
from .passwords import BCRYPT_ROUNDS, hash_password, verify_password
from .tokens import TokenManager


@dataclass(frozen=True)
class AuthResult:
    """Token plus public identity summary."""
    token: str
    identity: Identity

    def to_dict(self) -> Dict[str, object]:
        return {"token": self.token, "user": self.identity.summary()}


class IdentityService:
    """Registers identities and exchanges credentials for session tokens."""

    def __init__(
        self,
        identities: IdentityRepository,
        tokens: TokenManager,
        audit_logger: Optional[AuditLogger] = None,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
    ):
        self.identities = identities
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds
        # verified against for unknown usernames so both failure paths cost the same
        self._dummy_hash = hash_password("strongbox-timing-equalizer", rounds=bcrypt_rounds)
        self.logger = audit_logger or get_audit_logger()

    def register(self, username: str, email: str, password: str) -> AuthResult:
        """
        Create an identity and issue its first token.

        Raises:
            ValidationError: any field is empty
            ConflictError: username or email already taken
        """
        if not username or not email or not password:
            raise ValidationError("Username, email and password are required")

        identity = Identity(
            username=username,
            email=email,
            password_hash=hash_password(password, rounds=self.bcrypt_rounds),
        )

        try:
            identity = self.identities.create_identity(identity)
        except ConflictError as e:
            self.logger.log_identity_event(
                event_type=EventType.USER_REGISTERED,
                username=username,
                severity=EventSeverity.ALERT,
                details={"result": "conflict", "field": e.field},
            )
            raise

        self.logger.log_identity_event(
            event_type=EventType.USER_REGISTERED,
            username=identity.username,
            identity_id=identity.id,
        )

        token = self.tokens.issue(identity.id, identity.username)
        return AuthResult(token=token, identity=identity)

    def login(self, username: str, password: str) -> AuthResult:
        """
        Verify credentials and issue a token.

        Raises:
            ValidationError: username or password is empty
            AuthenticationError: unknown user or wrong password (same error)
        """
        if not username or not password:
            raise ValidationError("Username and password are required")

        identity = self.identities.get_identity_by_username(username)
        password_hash = identity.password_hash if identity else self._dummy_hash

        if not verify_password(password, password_hash) or identity is None:
            self.logger.log_identity_event(
                event_type=EventType.USER_LOGIN_FAILED,
                username=username,
                severity=EventSeverity.ALERT,
            )
            raise AuthenticationError("Invalid credentials")

        self.logger.log_identity_event(
            event_type=EventType.USER_LOGIN,
            username=identity.username,
            identity_id=identity.id,
        )

        token = self.tokens.issue(identity.id, identity.username)
        return AuthResult(token=token, identity=identity)
