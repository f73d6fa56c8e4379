"""
Encrypted model field for employee bank details and social security numbers.

Values are encrypted with Fernet (AES) using a key derived from
``settings.ENCRYPTION_KEY``. Encrypted columns cannot be filtered on.
"""

from __future__ import annotations

import base64
import hashlib
import logging

from cryptography.fernet import Fernet, InvalidToken
from django.conf import settings  # type: ignore
from django.core.exceptions import ImproperlyConfigured  # type: ignore
from django.db import models  # type: ignore

logger = logging.getLogger(__name__)


def get_fernet() -> Fernet:
    key = getattr(settings, "ENCRYPTION_KEY", None)
    if not key:
        raise ImproperlyConfigured("ENCRYPTION_KEY is not configured.")
    # Any passphrase is accepted: hash it into a 32-byte url-safe key
    derived = base64.urlsafe_b64encode(hashlib.sha256(key.encode()).digest())
    return Fernet(derived)


def encrypt_value(plaintext: str) -> str:
    if not plaintext:
        return ""
    return get_fernet().encrypt(plaintext.encode()).decode()


def decrypt_value(ciphertext: str) -> str:
    if not ciphertext:
        return ""
    try:
        return get_fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken:
        logger.error("Unable to decrypt a stored value, ENCRYPTION_KEY may have changed")
        return ""


def mask_value(value: str, visible: int = 4) -> str:
    """``FR76••••••••1234`` style display."""
    if not value:
        return ""
    if len(value) <= visible * 2:
        return "•" * len(value)
    return f"{value[:visible]}{'•' * (len(value) - visible * 2)}{value[-visible:]}"


class EncryptedTextField(models.TextField):
    """Text column stored encrypted, exposed in clear on the model instance."""

    description = "Encrypted text"

    def from_db_value(self, value, expression, connection):  # type: ignore
        if value is None:
            return value
        return decrypt_value(value)

    def to_python(self, value):  # type: ignore
        if value is None:
            return value
        return str(value)

    def get_prep_value(self, value):  # type: ignore
        if value is None or value == "":
            return ""
        return encrypt_value(str(value))
