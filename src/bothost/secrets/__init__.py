"""Secrets collaborator - encryption of env var values at rest."""

from bothost.secrets.cipher import AesGcmCipher, SecretCipher, generate_key

__all__ = ["AesGcmCipher", "SecretCipher", "generate_key"]
