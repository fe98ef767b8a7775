# src/images/formats.py — v1
"""Per-format encoder profiles.

Each profile names the Pillow plugin, the range of the encoder's quality
parameter, the two probe values used by the quality search, and the
options applied when encoding losslessly. Formats without a quality
parameter (PNG) have ``param_range=None`` and are always encoded at their
lossless settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from webappbuilder.core.errors import CodecError


@dataclass(frozen=True)
class FormatProfile:
    name: str
    extension: str
    pillow_format: str
    param_range: tuple[int, int] | None = None
    probes: tuple[int, int] | None = None
    encode_options: dict[str, Any] = field(default_factory=dict)
    lossless_options: dict[str, Any] = field(default_factory=dict)
    supports_alpha: bool = True

    @property
    def has_quality_param(self) -> bool:
        return self.param_range is not None

    def cache_params(self) -> dict[str, Any]:
        """Profile fields that affect encoded bytes."""
        return {
            "encode_options": self.encode_options,
            "lossless_options": self.lossless_options,
            "param_range": list(self.param_range) if self.param_range else None,
            "probes": list(self.probes) if self.probes else None,
        }


FORMAT_PROFILES: dict[str, FormatProfile] = {
    "webp": FormatProfile(
        name="webp",
        extension="webp",
        pillow_format="WEBP",
        param_range=(0, 100),
        probes=(50, 90),
        encode_options={"method": 6},
        lossless_options={"lossless": True, "quality": 100},
    ),
    "avif": FormatProfile(
        name="avif",
        extension="avif",
        pillow_format="AVIF",
        param_range=(0, 100),
        probes=(40, 80),
        encode_options={"speed": 4},
        lossless_options={"quality": 100, "subsampling": "4:4:4"},
    ),
    "jxl": FormatProfile(
        name="jxl",
        extension="jxl",
        pillow_format="JXL",
        param_range=(0, 100),
        probes=(50, 90),
        encode_options={"effort": 7},
        lossless_options={"lossless": True},
    ),
    "jpg": FormatProfile(
        name="jpg",
        extension="jpg",
        pillow_format="JPEG",
        param_range=(1, 100),
        probes=(50, 90),
        encode_options={"optimize": True, "progressive": True},
        lossless_options={"quality": 100, "subsampling": 0},
        supports_alpha=False,
    ),
    "png": FormatProfile(
        name="png",
        extension="png",
        pillow_format="PNG",
        lossless_options={"optimize": True},
    ),
}

# Source extensions the image phase picks up, mapped to their format
SOURCE_EXTENSIONS: dict[str, str] = {
    "png": "png",
    "jpg": "jpg",
    "jpeg": "jpg",
    "webp": "webp",
}


def get_profile(fmt: str) -> FormatProfile:
    """Return the profile for a format name.

    Raises:
        CodecError: If the format is unknown.
    """
    profile = FORMAT_PROFILES.get(fmt.lower())
    if profile is None:
        raise CodecError(f"Unsupported image format: {fmt!r}")
    return profile


def format_for_extension(extension: str) -> str | None:
    """Map a source file extension (with or without dot) to a format name."""
    return SOURCE_EXTENSIONS.get(extension.lower().lstrip("."))
