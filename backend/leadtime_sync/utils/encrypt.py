"""Fernet encryption for credentials stored on external source configs."""

from typing import Optional

from cryptography.fernet import Fernet
from leadtime_sync.config import settings


def _fernet() -> Fernet:
    return Fernet(settings.encryption_key.encode('utf-8'))


def encrypt_data(data: str) -> str:
    """Encrypts a string using Fernet."""
    return _fernet().encrypt(data.encode('utf-8')).decode('utf-8')


def decrypt_data(encrypted_data: str) -> str:
    """Decrypts a string using Fernet."""
    return _fernet().decrypt(encrypted_data.encode('utf-8')).decode('utf-8')


def encrypt_optional(data: Optional[str]) -> Optional[str]:
    return encrypt_data(data) if data else None


def decrypt_optional(encrypted_data: Optional[str]) -> Optional[str]:
    return decrypt_data(encrypted_data) if encrypted_data else None
