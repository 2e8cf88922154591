# contracts/logic/encryption.py
"""
At-rest encryption of stored signature images (Fernet).

The first key of the ring encrypts; the remaining keys are legacy keys used
only for decryption, which allows key rotation without re-writing rows.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from cryptography.fernet import Fernet, InvalidToken

from contracts.exceptions.errors import ValidationError

# marker prefix of encrypted column values
_PREFIX = "fernet:"


class SignatureCipher:
    def __init__(self, key: str | bytes, legacy_keys: Iterable[str | bytes] = ()) -> None:
        self._ring: List[Fernet] = [self._fernet(key)]
        self._ring.extend(self._fernet(k) for k in legacy_keys)

    @staticmethod
    def _fernet(key: str | bytes) -> Fernet:
        raw = key.encode("ascii") if isinstance(key, str) else bytes(key)
        try:
            return Fernet(raw)
        except ValueError as exc:
            raise ValidationError("Signature key must be 32 url-safe base64-encoded bytes") from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, value: Optional[str]) -> Optional[str]:
        """Encrypt with the CURRENT key. ``None`` passes through."""
        if value is None:
            return None
        token = self._ring[0].encrypt(value.encode("utf-8"))
        return _PREFIX + token.decode("ascii")

    def decrypt(self, value: Optional[str]) -> Optional[str]:
        """
        Try the current key first, then legacy keys.
        Values stored before encryption was enabled are returned as-is.
        """
        if value is None or not value.startswith(_PREFIX):
            return value
        token = value[len(_PREFIX):].encode("ascii")
        for fernet in self._ring:
            try:
                return fernet.decrypt(token).decode("utf-8")
            except InvalidToken:
                continue
        raise InvalidToken("Unable to decrypt signature image")
