# Auth Module - Identities and Session Tokens
#
# bcrypt password hashing, HS256 session tokens, register/login

from .passwords import hash_password, verify_password
from .service import AuthResult, IdentityService
from .tokens import (
    Claims,
    InvalidSignatureError,
    MalformedTokenError,
    TokenError,
    TokenExpiredError,
    TokenManager,
)

__all__ = [
    "hash_password",
    "verify_password",
    "TokenManager",
    "Claims",
    "TokenError",
    "InvalidSignatureError",
    "TokenExpiredError",
    "MalformedTokenError",
    "IdentityService",
    "AuthResult",
]
