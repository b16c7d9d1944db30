# Auth - Credential Verifier
#
# One-way password hashing (bcrypt, salt embedded in the hash)
# Constant-time verification via bcrypt.checkpw

import base64
import hashlib
import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def _prepare(password: str) -> bytes:
    """Encode a password for bcrypt, pre-hashing anything over 72 bytes."""
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raw = base64.b64encode(hashlib.sha256(raw).digest())
    return raw


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password for storage.

    Each call draws a fresh salt, so hashing the same password twice
    yields different strings that both verify.
    """
    return bcrypt.hashpw(_prepare(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash.

    Returns False for a mismatch or a malformed hash; never raises for
    bad input.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_prepare(password), password_hash.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        logger.debug("Rejected malformed password hash")
        return False
