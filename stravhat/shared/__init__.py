"""Cross-feature helpers: persistence base, secret codec, type vocabulary."""

from .repository import BaseRepository
from .security import (
    SecretCodec,
    SecretDecryptionError,
    InvalidEncryptionKeyError,
)

__all__ = [
    "BaseRepository",
    "SecretCodec",
    "SecretDecryptionError",
    "InvalidEncryptionKeyError",
]
