from __future__ import annotations

import base64
import struct
import zlib
from io import BytesIO

import pytest
from PIL import Image


def make_png(size=(120, 40), color=(20, 20, 120, 255)) -> bytes:
    img = Image.new("RGBA", size, (255, 255, 255, 0))
    for x in range(10, size[0] - 10):
        img.putpixel((x, size[1] // 2), color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_oversized_png(width: int = 30000, height: int = 30000) -> bytes:
    """PNG signature and IHDR only; the header claims more pixels than Pillow accepts."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return (
        b"\x89PNG\r\n\x1a\n"
        + struct.pack(">I", len(ihdr)) + chunk + struct.pack(">I", zlib.crc32(chunk) & 0xFFFFFFFF)
        + struct.pack(">I", 0) + b"IEND" + struct.pack(">I", zlib.crc32(b"IEND") & 0xFFFFFFFF)
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def png_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def oversized_png_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(make_oversized_png()).decode("ascii")
