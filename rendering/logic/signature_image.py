from __future__ import annotations

import base64
import binascii
from io import BytesIO
from typing import Union
from urllib.parse import unquote_to_bytes

from PIL import Image, UnidentifiedImageError


class SignatureImageError(ValueError):
    """Signature payload is not a decodable image."""


def signature_bytes(data: Union[str, bytes, bytearray]) -> bytes:
    """
    Raw image bytes from a data URL, a bare base64 string or bytes.

    Raises:
        SignatureImageError: On malformed payloads
    """
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    text = (data or "").strip()
    if not text:
        raise SignatureImageError("empty signature payload")
    try:
        if text.startswith("data:"):
            header, sep, payload = text.partition(",")
            if not sep:
                raise SignatureImageError("data URL without payload")
            if ";base64" in header:
                return base64.b64decode(payload)
            return unquote_to_bytes(payload)
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        if isinstance(exc, SignatureImageError):
            raise
        raise SignatureImageError(f"invalid base64 payload: {exc}") from exc


def decode_signature_image(data: Union[str, bytes, bytearray]) -> Image.Image:
    raw = signature_bytes(data)
    try:
        img = Image.open(BytesIO(raw))
        img.load()
        return img.convert("RGBA")
    except Image.DecompressionBombError as exc:
        raise SignatureImageError(f"image too large: {exc}") from exc
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise SignatureImageError(f"not an image: {exc}") from exc
