"""
Fernet encryption for personal data stored at rest (gift recipients'
national ids). The key comes from ``ENCRYPTION_KEY`` in the app config.
"""
import os
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app, has_app_context

from .exceptions import EncryptionError
from .logging import get_logger

log = get_logger(__name__)


def get_key() -> bytes:
    key = current_app.config.get("ENCRYPTION_KEY") if has_app_context() else None
    key = key or os.getenv("ENCRYPTION_KEY")
    if not key:
        raise EncryptionError("No encryption key configured")
    return key.encode("utf-8") if isinstance(key, str) else key


@lru_cache(maxsize=4)
def _fernet(key: bytes) -> Fernet:
    try:
        return Fernet(key)
    except (ValueError, TypeError) as e:
        log.error(f"ENCRYPTION_KEY is not a valid Fernet key: {e}")
        raise EncryptionError("Invalid encryption key") from e


def encrypt_data(plain_text: str) -> str:
    if not plain_text:
        raise ValueError("Nothing to encrypt")
    return _fernet(get_key()).encrypt(plain_text.encode("utf-8")).decode("utf-8")


def decrypt_data(token: str) -> str:
    if not token:
        raise ValueError("Nothing to decrypt")
    try:
        return _fernet(get_key()).decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        # wrong key or a tampered value
        log.warning("Stored value could not be decrypted with the current key")
        raise EncryptionError("Invalid or corrupted cipher text") from e
