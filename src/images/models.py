# src/images/models.py — v1
"""Data records for image transforms."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webappbuilder.config.models import EffectiveConfig


@dataclass(frozen=True, order=True)
class Size:
    """Pixel dimensions; orders by width, then height."""

    width: int
    height: int


@dataclass(frozen=True)
class EncodeJob:
    """One output variant of a source image."""

    width: int
    height: int
    target_format: str
    quality_dial: float

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


@dataclass
class ImageTask:
    source_file: Path
    logical_path: str
    effective_config: EffectiveConfig


@dataclass
class VariantOutput:
    """Encoded variant ready to be written next to its source."""

    logical_path: str
    job: EncodeJob
    data: bytes
    cache_hit: bool
    quality_param: int | None = None
    lossless: bool = False

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass
class ImageResult:
    logical_path: str
    original_bytes: int
    original_size: Size
    variants: list[VariantOutput] = field(default_factory=list)
    failed_jobs: list[tuple[EncodeJob, str]] = field(default_factory=list)

    @property
    def cache_hits(self) -> int:
        return sum(1 for v in self.variants if v.cache_hit)

    @property
    def bytes_written(self) -> int:
        return sum(v.size_bytes for v in self.variants)

    @property
    def bytes_saved(self) -> int:
        """Original size minus the smallest full-width variant, never negative."""
        if not self.variants:
            return 0
        widest = max(v.job.width for v in self.variants)
        smallest = min(v.size_bytes for v in self.variants if v.job.width == widest)
        return max(0, self.original_bytes - smallest)
