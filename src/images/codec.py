# src/images/codec.py — v1
"""Image codec interface and its Pillow implementation."""

from __future__ import annotations

import io
import logging
from typing import Any, Protocol

from PIL import Image, ImageOps, UnidentifiedImageError
import pillow_jxl  # noqa: F401  registers the JXL plugin

from webappbuilder.core.errors import CodecError
from webappbuilder.images.formats import get_profile
from webappbuilder.images.models import Size

logger = logging.getLogger(__name__)

# EXIF orientations that swap width and height
_TRANSPOSING_ORIENTATIONS = {5, 6, 7, 8}
_EXIF_ORIENTATION_TAG = 0x0112


class Codec(Protocol):
    """Decode, resize and encode bitmaps."""

    def measure(self, data: bytes) -> Size: ...

    def decode(self, data: bytes) -> Image.Image: ...

    def encode(
        self,
        image: Image.Image,
        fmt: str,
        quality: int | None,
        lossless: bool,
    ) -> bytes: ...

    def resize(self, image: Image.Image, width: int, height: int) -> Image.Image: ...


class PillowCodec:
    """Codec backed by Pillow."""

    def measure(self, data: bytes) -> Size:
        """Displayed dimensions without decoding pixel data."""
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                orientation = img.getexif().get(_EXIF_ORIENTATION_TAG)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecError(f"Cannot read image header: {e}") from e
        if orientation in _TRANSPOSING_ORIENTATIONS:
            width, height = height, width
        return Size(width, height)

    def decode(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                oriented = ImageOps.exif_transpose(img)
                return oriented if oriented is not img else img.copy()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise CodecError(f"Cannot decode image: {e}") from e

    def encode(
        self,
        image: Image.Image,
        fmt: str,
        quality: int | None,
        lossless: bool,
    ) -> bytes:
        profile = get_profile(fmt)
        params: dict[str, Any] = dict(profile.encode_options)
        if lossless:
            params.update(profile.lossless_options)
        elif quality is not None:
            params["quality"] = quality

        prepared = _prepare_mode(image, profile.supports_alpha)
        buffer = io.BytesIO()
        try:
            prepared.save(buffer, format=profile.pillow_format, **params)
        except (OSError, ValueError, KeyError) as e:
            raise CodecError(f"Cannot encode {fmt}: {e}") from e
        return buffer.getvalue()

    def resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        if image.size == (width, height):
            return image
        return image.resize((width, height), Image.Resampling.LANCZOS)


def _prepare_mode(image: Image.Image, supports_alpha: bool) -> Image.Image:
    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not supports_alpha:
        if has_alpha:
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        return image if image.mode in ("RGB", "L") else image.convert("RGB")
    if image.mode in ("RGB", "RGBA", "L", "LA"):
        return image
    return image.convert("RGBA" if has_alpha else "RGB")
