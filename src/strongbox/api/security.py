# API Security - Bearer token access gate
#
# Every record endpoint requires "Authorization: Bearer <token>".
# The gate validates the token, attaches the caller identity to the
# request, and makes sure a record owned by someone else looks exactly
# like a record that does not exist.

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from fastapi import Header, Request

from ..auth import Claims, TokenError, TokenManager
from ..core import AuditLogger, EventSeverity, EventType, get_audit_logger
from ..errors import AuthenticationError, AuthorizationError
from ..vault import RecordNotFoundError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer"


@dataclass(frozen=True)
class Caller:
    """Identity attached to an authenticated request."""
    identity_id: str
    username: str
    claims: Claims


class AccessGate:
    """
    Authenticates bearer tokens and hides foreign records.

    Token failures (missing, malformed, expired, bad signature) all
    surface as one AuthenticationError; the reason is only logged.
    """

    def __init__(self, tokens: TokenManager, audit_logger: Optional[AuditLogger] = None):
        self.tokens = tokens
        self.logger = audit_logger or get_audit_logger()

    def _reject(self, reason: str) -> AuthenticationError:
        self.logger.log_event(
            event_type=EventType.TOKEN_REJECTED,
            severity=EventSeverity.ALERT,
            message="Bearer token rejected",
            details={"reason": reason},
        )
        return AuthenticationError("Invalid or missing token")

    def authenticate(self, authorization: Optional[str]) -> Caller:
        """
        Validate an Authorization header value.

        Args:
            authorization: Raw header, expected "Bearer <token>"

        Returns:
            Caller with the identity taken from the verified claims

        Raises:
            AuthenticationError: header missing, malformed, or token invalid
        """
        if not authorization:
            raise self._reject("missing")

        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0] != BEARER_PREFIX or not parts[1]:
            raise self._reject("bad_scheme")

        try:
            claims = self.tokens.validate(parts[1])
        except TokenError as e:
            raise self._reject(type(e).__name__) from e

        return Caller(identity_id=claims.identity_id, username=claims.username, claims=claims)

    @contextmanager
    def conceal_ownership(self) -> Iterator[None]:
        """Re-raise ownership failures from the record store as not-found."""
        try:
            yield
        except AuthorizationError as e:
            raise RecordNotFoundError("Record not found") from e


def get_access_gate(request: Request) -> AccessGate:
    """FastAPI dependency: the gate built by create_app()."""
    return request.app.state.access_gate


async def require_caller(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Caller:
    """
    FastAPI dependency to authenticate the caller.

    Usage in routes:
        @router.get("/data")
        def list_data(caller: Caller = Depends(require_caller)): ...

    Raises:
        AuthenticationError: 401 if the token is missing or invalid
    """
    return get_access_gate(request).authenticate(authorization)
