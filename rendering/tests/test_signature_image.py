from __future__ import annotations

import base64

import pytest

from rendering.logic.signature_image import SignatureImageError, decode_signature_image, signature_bytes


def test_decode_forms(png_bytes: bytes, png_data_url: str) -> None:
    bare = base64.b64encode(png_bytes).decode("ascii")
    for payload in (png_data_url, bare, png_bytes):
        img = decode_signature_image(payload)
        assert img.mode == "RGBA"
        assert img.size == (120, 40)


def test_signature_bytes_from_data_url(png_bytes: bytes, png_data_url: str) -> None:
    assert signature_bytes(png_data_url) == png_bytes


@pytest.mark.parametrize("payload", ["", "data:image/png;base64", "%%%not base64%%%", b"not an image"])
def test_invalid_payloads(payload) -> None:
    with pytest.raises(SignatureImageError):
        decode_signature_image(payload)


def test_oversized_image_is_rejected(oversized_png_data_url: str) -> None:
    with pytest.raises(SignatureImageError, match="too large"):
        decode_signature_image(oversized_png_data_url)
