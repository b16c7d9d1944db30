# Vault - Field Cipher
#
# Configured key material → AES-256 key (SHA-256)
# Password field encryption (AES-256-GCM)
# Storage form: base64(nonce || ciphertext || tag)

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import InternalError


class CipherAuthenticationError(InternalError):
    """
    Ciphertext failed to authenticate.

    Raised for a wrong key, corrupted data or tampering alike, so the
    failure never reveals which part was wrong.
    """


class FieldCipher:
    """
    Encrypts the sensitive field of a record.

    Flow:
    1. Server config provides key material (any non-empty string)
    2. SHA-256 turns it into a 256-bit AES key
    3. AES-256-GCM encrypts/decrypts the field
    4. Every encryption uses a fresh random nonce, so the same
       plaintext never produces the same ciphertext twice
    """

    KEY_LENGTH = 32  # 256 bits for AES-256
    NONCE_LENGTH = 12  # 96-bit nonce for GCM (recommended)
    TAG_LENGTH = 16

    def __init__(self, key_material: str):
        """
        Args:
            key_material: Server-held secret from configuration

        Raises:
            ValueError: If key_material is empty
        """
        if not key_material:
            raise ValueError("Field cipher key material must not be empty")
        self._aesgcm = AESGCM(self.derive_key(key_material))

    @staticmethod
    def derive_key(key_material: str) -> bytes:
        """Derive the fixed-length AES key from configured key material."""
        return hashlib.sha256(key_material.encode('utf-8')).digest()

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt plaintext using AES-256-GCM.

        Args:
            plaintext: Password to encrypt

        Returns:
            Base64 text of nonce || ciphertext || tag, ready for storage
        """
        nonce = os.urandom(self.NONCE_LENGTH)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode('utf-8'), None)
        return self.encode_for_storage(nonce + ciphertext)

    def decrypt(self, stored: str) -> str:
        """
        Decrypt a value produced by :meth:`encrypt`.

        Raises:
            CipherAuthenticationError: On any failure (bad encoding,
                truncated data, wrong key, tampering)
        """
        try:
            blob = self.decode_from_storage(stored)
        except (binascii.Error, ValueError) as e:
            raise CipherAuthenticationError("Ciphertext failed authentication") from e

        if len(blob) < self.NONCE_LENGTH + self.TAG_LENGTH:
            raise CipherAuthenticationError("Ciphertext failed authentication")

        nonce, ciphertext = blob[:self.NONCE_LENGTH], blob[self.NONCE_LENGTH:]
        try:
            plaintext_bytes = self._aesgcm.decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise CipherAuthenticationError("Ciphertext failed authentication") from e

        return plaintext_bytes.decode('utf-8')

    @staticmethod
    def encode_for_storage(data: bytes) -> str:
        """Encode binary data for database storage (base64)."""
        return base64.b64encode(data).decode('utf-8')

    @staticmethod
    def decode_from_storage(data: str) -> bytes:
        """Decode base64-encoded data from database."""
        return base64.b64decode(data.encode('utf-8'), validate=True)
