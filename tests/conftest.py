from io import BytesIO

import pytest
from PIL import Image

from branding import BrandMark


class FakeSurface:
    """Deterministic metrics: every character is 0.6 em wide."""

    def __init__(self):
        self.calls = []

    def measure(self, text, size):
        self.calls.append(size)
        return len(text) * size * 0.6

    def font(self, size):
        from PIL import ImageFont

        return ImageFont.load_default(size=size)


def png_bytes(img):
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def fake_surface():
    return FakeSurface()


@pytest.fixture
def red_mark():
    img = Image.new("RGBA", (60, 30), (255, 0, 0, 255))
    return BrandMark(image=img, width=60, height=30)


@pytest.fixture
def white_encoder():
    calls = []

    def encode(payload, size_px):
        calls.append(payload)
        return Image.new("RGB", (size_px, size_px), (255, 255, 255))

    encode.calls = calls
    return encode
