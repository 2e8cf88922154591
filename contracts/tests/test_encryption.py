from __future__ import annotations

import pytest
from cryptography.fernet import InvalidToken

from contracts.exceptions.errors import ValidationError
from contracts.logic.encryption import SignatureCipher


def test_round_trip_and_plaintext_passthrough() -> None:
    cipher = SignatureCipher(SignatureCipher.generate_key())
    token = cipher.encrypt("data:image/png;base64,AAAA")
    assert token.startswith("fernet:")
    assert cipher.decrypt(token) == "data:image/png;base64,AAAA"
    assert cipher.decrypt("data:image/png;base64,legacy") == "data:image/png;base64,legacy"
    assert cipher.encrypt(None) is None


def test_key_rotation() -> None:
    old_key = SignatureCipher.generate_key()
    token = SignatureCipher(old_key).encrypt("sig")
    rotated = SignatureCipher(SignatureCipher.generate_key(), legacy_keys=[old_key])
    assert rotated.decrypt(token) == "sig"
    with pytest.raises(InvalidToken):
        SignatureCipher(SignatureCipher.generate_key()).decrypt(token)


def test_invalid_key() -> None:
    with pytest.raises(ValidationError):
        SignatureCipher("not-a-fernet-key")
