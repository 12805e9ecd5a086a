"""Encryption utilities for provider tokens stored in the data layer"""

from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
import base64
from functools import lru_cache
from typing import Optional
from authgate.config import settings


@lru_cache(maxsize=4)
def _derive_key(secret: str) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=b'authgate_provider_tokens',
        iterations=100000,
    )
    return base64.urlsafe_b64encode(kdf.derive(secret.encode()))


def get_encryption_key() -> bytes:
    """Derive encryption key from settings"""
    return _derive_key(settings.ENCRYPTION_KEY)


def encrypt_data(data: Optional[str]) -> Optional[str]:
    """Encrypt sensitive data. None passes through."""
    if data is None:
        return None
    return Fernet(get_encryption_key()).encrypt(data.encode()).decode()


def decrypt_data(encrypted_data: Optional[str]) -> Optional[str]:
    """Decrypt data produced by encrypt_data"""
    if encrypted_data is None:
        return None
    return Fernet(get_encryption_key()).decrypt(encrypted_data.encode()).decode()
