"""Symmetric encryption for third-party tokens stored at rest"""
import base64
import hashlib
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from ..config import settings
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


def _fernet(secret: Optional[str] = None) -> Fernet:
    """Fernet keyed by the SHA-256 of the configured passphrase"""
    passphrase = secret if secret is not None else settings.AIRTABLE_ENCRYPTION_KEY
    key = base64.urlsafe_b64encode(hashlib.sha256(passphrase.encode()).digest())
    return Fernet(key)


def encrypt_token(token: str, secret: Optional[str] = None) -> str:
    return _fernet(secret).encrypt(token.encode()).decode()


def decrypt_token(ciphertext: str, secret: Optional[str] = None) -> str:
    """
    Decrypt a stored token.

    Raises:
        InvalidInputError: if the ciphertext was not produced with this key
    """
    try:
        return _fernet(secret).decrypt(ciphertext.encode()).decode()
    except InvalidToken as e:
        logger.error("Stored access token could not be decrypted")
        raise InvalidInputError("Stored access token could not be decrypted") from e
