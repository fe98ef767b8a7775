# src/images/processor.py — v1
"""Expand one source image into its resized, re-encoded variants.

For every (size, format) pair the processor first consults the content
cache. Only on a miss does it decode the source, resize, run the quality
search and encode; fresh results are stored back into the cache. Decoding
and resizing are shared between formats of the same size.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from PIL import Image

from webappbuilder.cache.content_cache import ContentCache
from webappbuilder.cache.fingerprint import hash_bytes
from webappbuilder.cache.models import CacheKey
from webappbuilder.config.models import ImagePolicy
from webappbuilder.core.errors import CodecError
from webappbuilder.images.codec import Codec
from webappbuilder.images.formats import FormatProfile, format_for_extension, get_profile
from webappbuilder.images.models import EncodeJob, ImageResult, ImageTask, Size, VariantOutput
from webappbuilder.images.quality_search import QualityResult, find_quality
from webappbuilder.images.similarity import SimilarityFn
from webappbuilder.images.size_planner import plan

logger = logging.getLogger(__name__)


def output_formats(policy: ImagePolicy, source_format: str) -> list[str]:
    """Formats to emit for one source, target formats first, without duplicates."""
    formats: list[str] = list(policy.target_formats) if policy.convert else []
    if policy.keep_original_format or not formats:
        formats.append(source_format)
    return list(dict.fromkeys(formats))


def build_jobs(sizes: list[Size], formats: list[str], quality: float) -> list[EncodeJob]:
    return [
        EncodeJob(width=size.width, height=size.height, target_format=fmt, quality_dial=quality)
        for size in sizes
        for fmt in formats
    ]


def variant_path(logical_path: str, job: EncodeJob) -> str:
    """``img/logo.png`` + 192px webp -> ``img/logo-192w.webp``."""
    source = PurePosixPath(logical_path)
    extension = get_profile(job.target_format).extension
    return str(source.with_name(f"{source.stem}-{job.width}w.{extension}"))


def image_cache_key(source_hash: str, job: EncodeJob, profile: FormatProfile) -> CacheKey:
    lossless_dial = job.quality_dial >= 1.0 or not profile.has_quality_param
    return CacheKey(
        source_hash=source_hash,
        kind="image",
        params={
            "format": job.target_format,
            "width": job.width,
            "height": job.height,
            "quality": "lossless" if lossless_dial else float(job.quality_dial),
            "profile": profile.cache_params(),
        },
    )


class ImageProcessor:
    """Turns an ImageTask into encoded variants, going through the cache."""

    def __init__(
        self,
        codec: Codec,
        cache: ContentCache,
        similarity_fn: SimilarityFn,
    ) -> None:
        self._codec = codec
        self._cache = cache
        self._similarity = similarity_fn

    def process(self, task: ImageTask, data: bytes | None = None) -> ImageResult:
        """Produce every variant of one image.

        Variants that fail to encode are recorded in ``failed_jobs`` and
        the remaining ones are still produced.

        Raises:
            CodecError: If the source cannot be decoded or no variant encoded.
            SizePlanningError: If the image has no area.
        """
        if data is None:
            data = task.source_file.read_bytes()
        policy = task.effective_config.images
        source_format = format_for_extension(PurePosixPath(task.logical_path).suffix)
        if source_format is None:
            raise CodecError(f"Not a supported image: {task.logical_path}")

        original = self._codec.measure(data)
        sizes = plan(original, policy.resize, policy.max_size, policy.min_size)
        jobs = build_jobs(sizes, output_formats(policy, source_format), policy.quality)
        source_hash = hash_bytes(data)

        result = ImageResult(
            logical_path=task.logical_path,
            original_bytes=len(data),
            original_size=original,
        )
        decoded: Image.Image | None = None
        resized: dict[Size, Image.Image] = {}

        for job in jobs:
            profile = get_profile(job.target_format)
            key = image_cache_key(source_hash, job, profile)
            out_path = variant_path(task.logical_path, job)

            cached = self._cache.get(key)
            if cached is not None:
                result.variants.append(
                    VariantOutput(logical_path=out_path, job=job, data=cached, cache_hit=True)
                )
                continue

            if decoded is None:
                decoded = self._codec.decode(data)
            try:
                bitmap = resized.get(job.size)
                if bitmap is None:
                    bitmap = self._codec.resize(decoded, job.width, job.height)
                    resized[job.size] = bitmap
                quality = self._search(bitmap, job, profile)
                encoded = self._codec.encode(
                    bitmap, job.target_format, quality.param, quality.lossless
                )
            except CodecError as e:
                # Skip this variant only
                logger.warning("Skipped variant %s: %s", out_path, e)
                result.failed_jobs.append((job, str(e)))
                continue
            self._cache.put(key, encoded, profile.extension)
            result.variants.append(
                VariantOutput(
                    logical_path=out_path,
                    job=job,
                    data=encoded,
                    cache_hit=False,
                    quality_param=quality.param,
                    lossless=quality.lossless,
                )
            )

        if result.failed_jobs and not result.variants:
            raise CodecError(result.failed_jobs[0][1])
        logger.debug(
            "%s: %d variant(s), %d from cache",
            task.logical_path, len(result.variants), result.cache_hits,
        )
        return result

    def _search(self, bitmap: Image.Image, job: EncodeJob, profile: FormatProfile) -> QualityResult:
        def round_trip(param: int) -> Image.Image:
            encoded = self._codec.encode(bitmap, job.target_format, param, False)
            return self._codec.decode(encoded)

        return find_quality(round_trip, self._similarity, bitmap, job.quality_dial, profile)
