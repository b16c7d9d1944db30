# Tests for session tokens
# Covers: issue/validate, 24h lifetime, expiry, wrong secret,
#         algorithm downgrade (HS512, none), missing claims, garbage input

import time
from datetime import timedelta

import jwt
import pytest

from strongbox.auth import (
    Claims,
    InvalidSignatureError,
    MalformedTokenError,
    TokenError,
    TokenExpiredError,
    TokenManager,
)
from strongbox.errors import AuthenticationError

IDENTITY_ID = "8c1f6a52-6a43-4bd4-9d0e-1f3f54a8c9a1"


def _payload(**overrides):
    now = int(time.time())
    payload = {
        "sub": IDENTITY_ID,
        "username": "alice",
        "iat": now,
        "nbf": now,
        "exp": now + 3600,
    }
    payload.update(overrides)
    return payload


# ── Issue / validate ──────────────────────────────────────────────────


class TestIssueAndValidate:
    def test_roundtrip_claims(self, token_manager):
        token = token_manager.issue(IDENTITY_ID, "alice")
        claims = token_manager.validate(token)

        assert isinstance(claims, Claims)
        assert claims.identity_id == IDENTITY_ID
        assert claims.username == "alice"

    def test_lifetime_is_24_hours(self, token_manager):
        claims = token_manager.validate(token_manager.issue(IDENTITY_ID, "alice"))
        assert claims.expires_at - claims.issued_at == timedelta(hours=24)
        assert claims.not_before == claims.issued_at

    def test_header_algorithm_is_hs256(self, token_manager):
        token = token_manager.issue(IDENTITY_ID, "alice")
        assert jwt.get_unverified_header(token)["alg"] == "HS256"

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            TokenManager("")


# ── Rejections ────────────────────────────────────────────────────────


class TestValidityWindow:
    def test_expired_token(self, token_manager, jwt_secret):
        yesterday = TokenManager(jwt_secret, clock=lambda: time.time() - 25 * 3600)
        token = yesterday.issue(IDENTITY_ID, "alice")

        with pytest.raises(TokenExpiredError):
            token_manager.validate(token)

    def test_token_from_the_future(self, token_manager, jwt_secret):
        tomorrow = TokenManager(jwt_secret, clock=lambda: time.time() + 3600)
        token = tomorrow.issue(IDENTITY_ID, "alice")

        with pytest.raises(TokenExpiredError):
            token_manager.validate(token)

    def test_short_ttl_still_valid_now(self, jwt_secret):
        manager = TokenManager(jwt_secret, ttl=timedelta(minutes=5))
        claims = manager.validate(manager.issue(IDENTITY_ID, "alice"))
        assert claims.expires_at - claims.issued_at == timedelta(minutes=5)


class TestSignatureAndAlgorithm:
    def test_wrong_secret(self, token_manager):
        other = TokenManager("a-completely-different-secret-of-32-bytes")
        token = other.issue(IDENTITY_ID, "alice")

        with pytest.raises(InvalidSignatureError):
            token_manager.validate(token)

    def test_hs512_with_same_secret_rejected(self, token_manager, jwt_secret):
        token = jwt.encode(_payload(), jwt_secret, algorithm="HS512")

        with pytest.raises(InvalidSignatureError):
            token_manager.validate(token)

    def test_alg_none_rejected(self, token_manager):
        token = jwt.encode(_payload(), None, algorithm="none")

        with pytest.raises(InvalidSignatureError):
            token_manager.validate(token)


class TestMalformed:
    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "not.a.jwt.at.all"])
    def test_garbage(self, token_manager, token):
        with pytest.raises(MalformedTokenError):
            token_manager.validate(token)

    @pytest.mark.parametrize("missing", ["sub", "username", "exp", "nbf", "iat"])
    def test_missing_claim(self, token_manager, jwt_secret, missing):
        payload = _payload()
        del payload[missing]
        token = jwt.encode(payload, jwt_secret, algorithm="HS256")

        with pytest.raises(MalformedTokenError):
            token_manager.validate(token)

    def test_non_string_subject(self, token_manager, jwt_secret):
        token = jwt.encode(_payload(username=42), jwt_secret, algorithm="HS256")

        with pytest.raises(MalformedTokenError):
            token_manager.validate(token)


def test_token_errors_are_authentication_errors():
    for exc in (InvalidSignatureError, TokenExpiredError, MalformedTokenError):
        assert issubclass(exc, TokenError)
        assert issubclass(exc, AuthenticationError)
