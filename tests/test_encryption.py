# Tests for the field cipher (AES-256-GCM)
# Covers: key derivation, fresh nonces, storage layout, wrong key,
#         tampering, truncation, bad base64

import base64
import hashlib

import pytest

from strongbox.errors import InternalError
from strongbox.vault import CipherAuthenticationError, FieldCipher


class TestKeyDerivation:
    def test_key_is_sha256_of_material(self):
        assert FieldCipher.derive_key("material") == hashlib.sha256(b"material").digest()
        assert len(FieldCipher.derive_key("material")) == FieldCipher.KEY_LENGTH

    def test_empty_material_rejected(self):
        with pytest.raises(ValueError):
            FieldCipher("")


class TestEncryptDecrypt:
    def test_roundtrip(self, cipher):
        assert cipher.decrypt(cipher.encrypt("hunter2")) == "hunter2"

    def test_unicode_and_empty(self, cipher):
        assert cipher.decrypt(cipher.encrypt("пароль 🔑")) == "пароль 🔑"
        assert cipher.decrypt(cipher.encrypt("")) == ""

    def test_fresh_nonce_every_time(self, cipher):
        first = cipher.encrypt("hunter2")
        second = cipher.encrypt("hunter2")
        assert first != second
        assert cipher.decrypt(first) == cipher.decrypt(second) == "hunter2"

    def test_storage_layout(self, cipher):
        blob = base64.b64decode(cipher.encrypt("abc"))
        # nonce || ciphertext (same length as plaintext) || tag
        assert len(blob) == FieldCipher.NONCE_LENGTH + 3 + FieldCipher.TAG_LENGTH

    def test_same_material_decrypts_across_instances(self):
        stored = FieldCipher("shared-material").encrypt("hunter2")
        assert FieldCipher("shared-material").decrypt(stored) == "hunter2"


class TestAuthenticationFailures:
    def test_wrong_key(self, cipher):
        stored = cipher.encrypt("hunter2")
        with pytest.raises(CipherAuthenticationError):
            FieldCipher("some-other-key").decrypt(stored)

    @pytest.mark.parametrize("index", [0, 12, -1])
    def test_flipped_byte(self, cipher, index):
        blob = bytearray(base64.b64decode(cipher.encrypt("hunter2")))
        blob[index] ^= 0x01
        with pytest.raises(CipherAuthenticationError):
            cipher.decrypt(base64.b64encode(bytes(blob)).decode())

    def test_truncated(self, cipher):
        blob = base64.b64decode(cipher.encrypt("hunter2"))
        short = base64.b64encode(blob[:FieldCipher.NONCE_LENGTH + 4]).decode()
        with pytest.raises(CipherAuthenticationError):
            cipher.decrypt(short)

    @pytest.mark.parametrize("stored", ["", "not base64!!", "YWJj"])
    def test_garbage(self, cipher, stored):
        with pytest.raises(CipherAuthenticationError):
            cipher.decrypt(stored)

    def test_failure_is_internal_error(self):
        assert issubclass(CipherAuthenticationError, InternalError)
        assert CipherAuthenticationError().status_code == 500
