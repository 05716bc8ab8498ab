"""Symmetric encryption for the token values written to disk."""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable, Optional

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _derive_fernet(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


class TokenCipherService:
    """
    Encrypt and decrypt token strings with keys derived from configured secrets.

    New values are always encrypted with ``secret``; ``previous_secrets`` are
    only tried when decrypting, so the secret can be rotated without
    re-authorizing the marketplace account.
    """

    def __init__(self, *, secret: str, previous_secrets: Iterable[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        keys = [_derive_fernet(secret)]
        keys.extend(_derive_fernet(old) for old in previous_secrets if old)
        self._fernet = MultiFernet(keys)

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        """Encrypt ``plaintext``; ``None`` passes through unchanged."""
        if plaintext is None:
            return None
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        """Decrypt ``ciphertext``; ``None`` passes through unchanged."""
        if ciphertext is None:
            return None
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext or unknown secret."
            ) from exc
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService"]
