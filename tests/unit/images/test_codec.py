# tests/unit/images/test_codec.py — v1
"""Tests for images/codec.py — Pillow-backed measure/decode/encode/resize."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from tests.conftest import make_image_bytes
from webappbuilder.core.errors import CodecError
from webappbuilder.images.codec import PillowCodec
from webappbuilder.images.models import Size


def _rotated_jpeg(width: int, height: int, orientation: int = 6) -> bytes:
    image = Image.new("RGB", (width, height), (200, 10, 10))
    exif = Image.Exif()
    exif[0x0112] = orientation
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def codec() -> PillowCodec:
    return PillowCodec()


class TestMeasure:
    def test_png(self, codec):
        assert codec.measure(make_image_bytes(20, 10)) == Size(20, 10)

    def test_exif_rotation_swaps(self, codec):
        assert codec.measure(_rotated_jpeg(40, 20)) == Size(20, 40)

    def test_exif_without_rotation(self, codec):
        assert codec.measure(_rotated_jpeg(40, 20, orientation=1)) == Size(40, 20)

    def test_garbage(self, codec):
        with pytest.raises(CodecError):
            codec.measure(b"not an image")


class TestDecode:
    def test_applies_orientation(self, codec):
        assert codec.decode(_rotated_jpeg(40, 20)).size == (20, 40)

    def test_garbage(self, codec):
        with pytest.raises(CodecError):
            codec.decode(b"\x89PNG broken")


class TestEncode:
    @pytest.mark.parametrize("fmt,pillow_format", [
        ("webp", "WEBP"),
        ("png", "PNG"),
        ("jpg", "JPEG"),
        ("avif", "AVIF"),
        ("jxl", "JXL"),
    ])
    def test_round_trip(self, codec, fmt, pillow_format):
        image = codec.decode(make_image_bytes(16, 12))
        data = codec.encode(image, fmt, 80, lossless=False)
        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.format == pillow_format
            assert decoded.size == (16, 12)

    def test_jpg_flattens_alpha(self, codec):
        image = codec.decode(make_image_bytes(8, 8, mode="RGBA"))
        data = codec.encode(image, "jpg", 90, lossless=False)
        assert codec.decode(data).mode == "RGB"

    def test_lossless_webp_exact(self, codec):
        image = codec.decode(make_image_bytes(8, 8))
        decoded = codec.decode(codec.encode(image, "webp", None, lossless=True))
        assert list(decoded.convert("RGB").getdata()) == list(image.convert("RGB").getdata())

    def test_quality_affects_size(self, codec):
        image = codec.decode(make_image_bytes(64, 64))
        low = codec.encode(image, "jpg", 10, lossless=False)
        high = codec.encode(image, "jpg", 95, lossless=False)
        assert len(low) < len(high)

    def test_unknown_format(self, codec):
        image = codec.decode(make_image_bytes(4, 4))
        with pytest.raises(CodecError):
            codec.encode(image, "bmp", 80, lossless=False)


class TestResize:
    def test_resizes(self, codec):
        image = codec.decode(make_image_bytes(20, 10))
        assert codec.resize(image, 10, 5).size == (10, 5)

    def test_same_size_returns_input(self, codec):
        image = codec.decode(make_image_bytes(20, 10))
        assert codec.resize(image, 20, 10) is image
