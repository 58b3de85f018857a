"""Symmetric encryption for refresh and access tokens stored at rest."""

from __future__ import annotations

import base64
import binascii
import hashlib
from typing import Iterable

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

# version byte, timestamp, IV, one AES block, HMAC
_MIN_TOKEN_BYTES = 1 + 8 + 16 + 16 + 32
_TOKEN_VERSION = 0x80


def _derive_fernet(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """Encrypt with the current secret; decrypt with the current or a retired one.

    Retired secrets let ``TOKEN_ENCRYPTION_SECRET`` be rotated without forcing
    every user to re-authorize. ``rotate`` re-encrypts a value under the
    current secret.
    """

    def __init__(self, *, secret: str, previous_secrets: Iterable[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        keys = [_derive_fernet(secret)]
        keys.extend(_derive_fernet(old) for old in previous_secrets if old)
        self._fernet = MultiFernet(keys)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored token; an unknown key or corrupt value raises ``ValueError``."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")

    @staticmethod
    def is_token(value: str) -> bool:
        """Whether ``value`` is shaped like a Fernet token, whatever its key.

        Values written before encryption was enabled are plain provider tokens
        and fail this check.
        """
        try:
            raw = base64.urlsafe_b64decode(value.encode("utf-8"))
        except (binascii.Error, ValueError):
            return False
        return (
            len(raw) >= _MIN_TOKEN_BYTES
            and raw[0] == _TOKEN_VERSION
            and (len(raw) - _MIN_TOKEN_BYTES) % 16 == 0
        )

    def rotate(self, ciphertext: str) -> str:
        try:
            return self._fernet.rotate(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ValueError("Cannot rotate token; invalid ciphertext provided.") from exc


__all__ = ["TokenCipherService"]
