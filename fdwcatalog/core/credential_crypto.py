"""
Credential Encryption
=====================

Fernet encryption for user mapping passwords stored in the catalog.

The Fernet key is derived from FDWCATALOG_CREDENTIAL_SECRET with HKDF, so any
sufficiently random secret string works. The secret is read from settings on
every call and never held by a service, so a rotated secret takes effect
without a restart of long-lived services.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from fdwcatalog.config import settings
from fdwcatalog.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

_HKDF_SALT = b"fdwcatalog-user-mapping-v1"
_HKDF_INFO = b"user-mapping-password-encryption"


def current_credential_secret() -> str:
    """Return the configured secret, or raise ConfigurationError."""
    secret = settings.credential_secret
    if not secret:
        raise ConfigurationError(
            "FDWCATALOG_CREDENTIAL_SECRET is not set",
            context={"setting": "credential_secret"},
        )
    return secret


def _fernet_for(secret: str) -> Fernet:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_HKDF_SALT,
        info=_HKDF_INFO,
    )
    return Fernet(base64.urlsafe_b64encode(hkdf.derive(secret.encode())))


def encrypt_text(plaintext: str, secret: str) -> str:
    """Encrypt *plaintext* under *secret*. Returns a URL-safe token string."""
    return _fernet_for(secret).encrypt(plaintext.encode()).decode()


def decrypt_text(token: str, secret: str) -> str:
    """Decrypt a token produced by encrypt_text with the same secret.

    Raises cryptography.fernet.InvalidToken on a wrong secret or tampering.
    """
    return _fernet_for(secret).decrypt(token.encode()).decode()


def encrypt_password(plaintext: str) -> str:
    """Encrypt a user mapping password with the current secret."""
    return encrypt_text(plaintext, current_credential_secret())


def decrypt_password(token: str, previous_secret: Optional[str] = None) -> str:
    """Decrypt a stored password, trying the previous secret during rotation."""
    current = current_credential_secret()
    previous = previous_secret if previous_secret is not None else settings.previous_credential_secret
    try:
        return decrypt_text(token, current)
    except InvalidToken:
        if previous:
            logger.info("credential_decrypt_fallback_to_previous_secret")
            return decrypt_text(token, previous)
        raise
