"""Session token issuance and validation (HS256 JWT)."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=24)
REQUIRED_CLAIMS = ["sub", "username", "iat", "nbf", "exp"]


class TokenError(AuthenticationError):
    """Base exception for token validation failures."""


class InvalidSignatureError(TokenError):
    """Signature does not verify, or the token uses a different algorithm."""


class TokenExpiredError(TokenError):
    """Token is outside its validity window (expired or not yet valid)."""


class MalformedTokenError(TokenError):
    """Token cannot be decoded or is missing required claims."""


@dataclass(frozen=True)
class Claims:
    """Verified payload of a session token."""

    identity_id: str
    username: str
    issued_at: datetime
    not_before: datetime
    expires_at: datetime

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Claims":
        return cls(
            identity_id=payload["sub"],
            username=payload["username"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            not_before=datetime.fromtimestamp(payload["nbf"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


class TokenManager:
    """Issues and validates stateless session tokens.

    Tokens are signed with a server-held symmetric secret. There is no
    refresh and no revocation: rotating the secret invalidates every
    outstanding token.

    Security Features:
    - Only HS256 is accepted on validation (no algorithm downgrade, no ``none``)
    - Full tokens are never logged
    """

    def __init__(
        self,
        secret: str,
        ttl: timedelta = TOKEN_TTL,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize with the signing secret.

        Args:
            secret: Symmetric signing secret from configuration
            ttl: Token lifetime (24 hours unless overridden in tests)
            clock: Returns current Unix time; used when issuing tokens

        Raises:
            ValueError: If secret is empty
        """
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl = ttl
        self._clock = clock or time.time

    def issue(self, identity_id: str, username: str) -> str:
        """Issue a signed token for an identity.

        Returns:
            Compact, URL-safe JWS string
        """
        now = int(self._clock())
        payload = {
            "sub": identity_id,
            "username": username,
            "iat": now,
            "nbf": now,
            "exp": now + int(self.ttl.total_seconds()),
        }

        token = jwt.encode(payload, self._secret, algorithm=TOKEN_ALGORITHM)

        logger.debug("session_token_issued identity_id=%s exp=%s", identity_id, payload["exp"])
        return token

    def validate(self, token: str) -> Claims:
        """Validate signature, algorithm and validity window.

        Raises:
            InvalidSignatureError: Bad signature or non-HS256 algorithm
            TokenExpiredError: exp has passed or nbf is in the future
            MalformedTokenError: Undecodable token or missing claims
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[TOKEN_ALGORITHM],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_nbf": True,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.ImmatureSignatureError as e:
            raise TokenExpiredError("Token not yet valid") from e
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise InvalidSignatureError("Token signature verification failed") from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Malformed token: {e}") from e

        if not isinstance(payload.get("sub"), str) or not isinstance(payload.get("username"), str):
            raise MalformedTokenError("Malformed token: subject claims must be strings")

        return Claims.from_payload(payload)
