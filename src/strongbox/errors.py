"""
Error taxonomy for Strongbox.

Every component raises one of these typed errors. The HTTP boundary
(``api/main.py``) translates them exactly once into a status code and a
public message; internal detail never leaves the process.
"""

from typing import Optional


class StrongboxError(Exception):
    """Base exception for all Strongbox errors."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)

    @property
    def detail(self) -> str:
        """Message safe to show to the caller."""
        return self.public_message


class ValidationError(StrongboxError):
    """Malformed or missing input. Always recoverable by the client."""

    status_code = 400
    public_message = "Invalid request"

    @property
    def detail(self) -> str:
        return str(self)


class AuthenticationError(StrongboxError):
    """Bad credentials or token.

    The public message is uniform so callers can't tell which check failed.
    """

    status_code = 401
    public_message = "Invalid credentials"


class AuthorizationError(StrongboxError):
    """Caller does not own the resource.

    Rendered exactly like NotFoundError so the existence of other users'
    records is never revealed.
    """

    status_code = 404
    public_message = "Record not found"


class ConflictError(StrongboxError):
    """A unique field (username, email) is already taken."""

    status_code = 409
    public_message = "Already exists"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    @property
    def detail(self) -> str:
        return str(self)


class NotFoundError(StrongboxError):
    """Requested resource does not exist."""

    status_code = 404
    public_message = "Record not found"


class InternalError(StrongboxError):
    """Cipher or storage failure. Logged, never exposed."""


class StorageError(InternalError):
    """Backing store failed."""


class ConfigError(StrongboxError):
    """Configuration is missing or invalid (startup only)."""
