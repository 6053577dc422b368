"""
Encryption of secrets at rest.

Credentials and OAuth tokens are stored as versioned AES-256-GCM payloads:

    v1:<iv b64>:<tag b64>:<ciphertext b64>

Rows written before encryption was introduced hold plaintext. Those are
detected by the missing version prefix and returned as-is by
decrypt_if_encrypted(), so callers can re-encrypt them lazily.
"""

import base64
import binascii
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

PAYLOAD_VERSION = "v1"
KEY_LENGTH = 32
IV_LENGTH = 12
TAG_LENGTH = 16

# Associated data bound to every payload
AUTH_AAD = b"stravhat:strava-app-credentials:v1"


class InvalidEncryptionKeyError(ValueError):
    """Key material is not a base64-encoded 32-byte value."""
    pass


class SecretDecryptionError(Exception):
    """Payload is malformed, tampered with, or encrypted under another key."""
    pass


class SecretCodec:
    """
    Symmetric codec for credential and token material.

    The key is injected; there is no module-level key. Build one per process
    with SecretCodec.from_settings() and pass it to the services that need it.

    Usage:
        codec = SecretCodec.from_base64(settings.strava_credentials_encryption_key)
        stored = codec.encrypt("client-secret")
        codec.decrypt(stored)  # "client-secret"
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise InvalidEncryptionKeyError(
                f"Encryption key must be {KEY_LENGTH} bytes, got {len(key)}"
            )
        self._aead = AESGCM(key)

    @classmethod
    def from_base64(cls, encoded_key: Optional[str]) -> "SecretCodec":
        """Build a codec from base64 key material."""
        if not encoded_key:
            raise InvalidEncryptionKeyError(
                "STRAVA_CREDENTIALS_ENCRYPTION_KEY is not set"
            )
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidEncryptionKeyError(
                "STRAVA_CREDENTIALS_ENCRYPTION_KEY must be a base64-encoded "
                "32-byte value"
            ) from e
        return cls(key)

    @classmethod
    def from_settings(cls, settings) -> "SecretCodec":
        return cls.from_base64(settings.strava_credentials_encryption_key)

    @staticmethod
    def generate_key() -> str:
        """Return fresh base64 key material suitable for the settings."""
        return base64.b64encode(AESGCM.generate_key(bit_length=256)).decode("ascii")

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        sealed = self._aead.encrypt(iv, plaintext.encode("utf-8"), AUTH_AAD)
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return ":".join([
            PAYLOAD_VERSION,
            base64.b64encode(iv).decode("ascii"),
            base64.b64encode(tag).decode("ascii"),
            base64.b64encode(ciphertext).decode("ascii"),
        ])

    def decrypt(self, payload: str) -> str:
        """
        Decrypt a v1 payload.

        Raises:
            SecretDecryptionError: On any malformed or unauthenticated payload
        """
        parts = payload.split(":")
        if len(parts) != 4 or parts[0] != PAYLOAD_VERSION:
            raise SecretDecryptionError("Encrypted payload format not supported")

        try:
            iv = base64.b64decode(parts[1], validate=True)
            tag = base64.b64decode(parts[2], validate=True)
            ciphertext = base64.b64decode(parts[3], validate=True)
        except (binascii.Error, ValueError) as e:
            raise SecretDecryptionError("Encrypted payload invalid") from e

        if len(iv) != IV_LENGTH or len(tag) != TAG_LENGTH or not ciphertext:
            raise SecretDecryptionError("Encrypted payload invalid")

        try:
            plaintext = self._aead.decrypt(iv, ciphertext + tag, AUTH_AAD)
        except InvalidTag as e:
            raise SecretDecryptionError("Encrypted payload failed authentication") from e

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SecretDecryptionError("Decrypted payload is not valid UTF-8") from e

    @staticmethod
    def is_encrypted(value: Optional[str]) -> bool:
        return isinstance(value, str) and value.startswith(f"{PAYLOAD_VERSION}:")

    def decrypt_if_encrypted(self, value: str) -> str:
        """Decrypt v1 payloads; return legacy plaintext unchanged."""
        if self.is_encrypted(value):
            return self.decrypt(value)
        return value
