# src/images/quality_search.py — v1
"""Map a perceptual quality dial onto a codec quality parameter.

The encoder is probed at two parameter values; a line through the two
(param, similarity) points is solved for the target similarity. Encoders
whose similarity does not rise with the parameter are sent to their maximum.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from PIL import Image

from webappbuilder.images.formats import FormatProfile
from webappbuilder.images.similarity import SimilarityFn

logger = logging.getLogger(__name__)

SearchReason = Literal[
    "lossless-target", "no-quality-param", "interpolated", "monotonicity-guard"
]

# Encode at the given parameter and return the decoded result
RoundTripFn = Callable[[int], Image.Image]


@dataclass(frozen=True)
class QualityResult:
    param: int | None
    lossless: bool
    reason: SearchReason
    probe_similarities: tuple[float, float] | None = None


def find_quality(
    encode_fn: RoundTripFn,
    similarity_fn: SimilarityFn,
    image: Image.Image,
    target_quality: float,
    profile: FormatProfile,
) -> QualityResult:
    """Resolve the codec parameter expected to reach target_quality.

    Args:
        encode_fn: Encodes ``image`` at a parameter and decodes it back.
        similarity_fn: Similarity of two bitmaps in [0, 1].
        image: The bitmap being encoded.
        target_quality: Quality dial in [0, 1].
        profile: Encoder profile with range and probe values.

    Raises:
        ValueError: If target_quality is outside [0, 1].
    """
    if not 0.0 <= target_quality <= 1.0:
        raise ValueError(f"target_quality must be within [0, 1], got {target_quality}")

    if profile.param_range is None or profile.probes is None:
        return QualityResult(param=None, lossless=True, reason="no-quality-param")

    low_bound, high_bound = profile.param_range
    if target_quality >= 1.0:
        return QualityResult(param=high_bound, lossless=True, reason="lossless-target")

    low, high = profile.probes
    sim_low = similarity_fn(image, encode_fn(low))
    sim_high = similarity_fn(image, encode_fn(high))

    if sim_low >= sim_high:
        logger.debug(
            "%s similarity not increasing (%.4f at %d, %.4f at %d), using max",
            profile.name, sim_low, low, sim_high, high,
        )
        return QualityResult(
            param=high_bound,
            lossless=True,
            reason="monotonicity-guard",
            probe_similarities=(sim_low, sim_high),
        )

    slope = (sim_high - sim_low) / (high - low)
    raw = low + (target_quality - sim_low) / slope
    param = int(round(min(max(raw, low_bound), high_bound)))
    logger.debug(
        "%s quality %.3f -> param %d (probes %.4f/%.4f)",
        profile.name, target_quality, param, sim_low, sim_high,
    )
    return QualityResult(
        param=param,
        lossless=param == high_bound,
        reason="interpolated",
        probe_similarities=(sim_low, sim_high),
    )
