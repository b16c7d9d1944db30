# Tests for the credential verifier
# Covers: hash_password, verify_password, salting, long inputs, bad hashes

import pytest

from strongbox.auth import hash_password, verify_password
from strongbox.auth.passwords import BCRYPT_MAX_BYTES

ROUNDS = 4


class TestHashPassword:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("hunter2", rounds=ROUNDS)
        assert "hunter2" not in hashed
        assert hashed.startswith("$2")

    def test_same_password_hashes_differently(self):
        first = hash_password("hunter2", rounds=ROUNDS)
        second = hash_password("hunter2", rounds=ROUNDS)
        assert first != second
        assert verify_password("hunter2", first)
        assert verify_password("hunter2", second)

    def test_cost_is_embedded(self):
        hashed = hash_password("hunter2", rounds=ROUNDS)
        assert hashed.split("$")[2] == "04"


class TestVerifyPassword:
    def test_correct_password(self):
        hashed = hash_password("s3cret!", rounds=ROUNDS)
        assert verify_password("s3cret!", hashed) is True

    def test_wrong_password(self):
        hashed = hash_password("s3cret!", rounds=ROUNDS)
        assert verify_password("s3cret?", hashed) is False

    def test_unicode_password(self):
        hashed = hash_password("пароль-密码", rounds=ROUNDS)
        assert verify_password("пароль-密码", hashed)
        assert not verify_password("пароль", hashed)

    @pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$2b$04$short"])
    def test_malformed_hash_returns_false(self, bad_hash):
        assert verify_password("anything", bad_hash) is False

    def test_long_passwords_differing_after_72_bytes(self):
        prefix = "x" * BCRYPT_MAX_BYTES
        hashed = hash_password(prefix + "tail-one", rounds=ROUNDS)
        assert verify_password(prefix + "tail-one", hashed)
        assert not verify_password(prefix + "tail-two", hashed)
