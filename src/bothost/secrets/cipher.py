"""Authenticated encryption for env var values stored at rest."""

import base64
import binascii
import os
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from bothost.exceptions import SecretsError

NONCE_SIZE = 12
KEY_SIZE = 32


class SecretCipher(Protocol):
    """Opaque encrypt/decrypt pair used by the lifecycle controller."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, ciphertext: str) -> str: ...


def generate_key() -> str:
    """Generate a fresh base64-encoded 256-bit key."""
    return base64.b64encode(AESGCM.generate_key(bit_length=KEY_SIZE * 8)).decode("ascii")


class AesGcmCipher:
    """AES-256-GCM cipher producing ``base64(nonce || ciphertext || tag)``.

    A random nonce is drawn per call, so encrypting the same value twice
    yields different ciphertexts.
    """

    def __init__(self, key: bytes):
        """Initialize the cipher.

        Args:
            key: Raw 32-byte key.

        Raises:
            SecretsError: If the key has the wrong length.
        """
        if len(key) != KEY_SIZE:
            raise SecretsError(f"Secret key must be {KEY_SIZE} bytes, got {len(key)}")
        self._aead = AESGCM(key)

    @classmethod
    def from_base64(cls, encoded_key: str) -> "AesGcmCipher":
        """Build a cipher from a base64-encoded key."""
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SecretsError("Secret key is not valid base64") from e
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            raw = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SecretsError("Ciphertext is not valid base64") from e
        if len(raw) <= NONCE_SIZE:
            raise SecretsError("Ciphertext is too short")
        try:
            plaintext = self._aead.decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
        except InvalidTag as e:
            raise SecretsError("Ciphertext failed authentication") from e
        return plaintext.decode("utf-8")
