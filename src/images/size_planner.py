# src/images/size_planner.py — v1
"""Choose the set of output dimensions for one source image.

Candidates come from three places: explicit custom boxes, a fallback box
and (when auto resizing is on) responsive size hints such as ``50vw`` or
``300px`` expanded against common screen widths. Every candidate is fitted
into its box without upscaling, then near-duplicates are removed so the
result never contains two sizes a viewer could not tell apart.
"""

from __future__ import annotations

import logging
import math
import re
from typing import TYPE_CHECKING

from webappbuilder.core.errors import SizePlanningError
from webappbuilder.images.models import Size

if TYPE_CHECKING:
    from webappbuilder.config.models import ResizePolicy

logger = logging.getLogger(__name__)

REFERENCE_SCREEN_WIDTHS: tuple[int, ...] = (3840, 2160, 2560, 1440, 1920, 1080)
FALLBACK_CEILING = 1920
DEFAULT_SIZE_HINTS = "100vw"

_HINT_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(vw|px)$", re.IGNORECASE)


def parse_size_hints(sizes: str) -> list[tuple[float, str]]:
    """Parse ``"50vw, 300px"`` into ``[(50.0, "vw"), (300.0, "px")]``.

    Raises:
        ValueError: On any token that is not ``<number>vw`` or ``<number>px``.
    """
    hints: list[tuple[float, str]] = []
    for token in sizes.split(","):
        token = token.strip()
        if not token:
            continue
        match = _HINT_RE.match(token)
        if match is None:
            raise ValueError(f"Invalid size hint {token!r}, expected '<n>vw' or '<n>px'")
        value = float(match.group(1))
        if value <= 0:
            raise ValueError(f"Size hint {token!r} must be positive")
        hints.append((value, match.group(2).lower()))
    return hints


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_to_box(original: Size, box_width: float, box_height: float) -> Size:
    """Scale original into the box preserving aspect ratio, never upscaling."""
    ratio = min(box_height / original.height, box_width / original.width, 1.0)
    return Size(
        max(1, round_half_up(original.width * ratio)),
        max(1, round_half_up(original.height * ratio)),
    )


def fallback_box(original: Size, max_size: int) -> int:
    """Side of the square box used when no fallback size is configured."""
    return max(
        min(original.width, max_size, FALLBACK_CEILING),
        min(original.height, max_size, FALLBACK_CEILING),
    )


def _within_band(a: int, b: int, ratio: float) -> bool:
    low, high = min(a, b), max(a, b)
    return low >= ratio * high


def _sweep(candidates: set[Size], accepted: list[Size], ratio: float) -> None:
    for candidate in sorted(candidates, key=lambda s: (-s.width, -s.height)):
        if any(_within_band(candidate.width, a.width, ratio) for a in accepted):
            continue
        accepted.append(candidate)


def plan(
    original: Size,
    policy: ResizePolicy,
    max_size: int,
    min_size: int = 1,
) -> list[Size]:
    """Return distinct output sizes, ascending by width.

    Raises:
        SizePlanningError: If the original has no area.
    """
    if original.width <= 0 or original.height <= 0:
        raise SizePlanningError(f"Cannot plan sizes for a {original.width}x{original.height} image")

    def fit(box_width: float, box_height: float) -> Size:
        return fit_to_box(original, min(box_width, max_size), min(box_height, max_size))

    fallback_side = policy.fallback_size or fallback_box(original, max_size)
    fallback = fit(fallback_side, fallback_side)

    pinned = {fit(box.width, box.height) for box in policy.custom_sizes}
    pinned = {s for s in pinned if s.width >= min_size}
    pinned.add(fallback)

    auto: set[Size] = set()
    if policy.auto:
        for value, unit in parse_size_hints(policy.sizes or DEFAULT_SIZE_HINTS):
            if unit == "px":
                auto.add(fit(value, max_size))
            else:
                for screen in REFERENCE_SCREEN_WIDTHS:
                    auto.add(fit(min(max_size, value * screen / 100), max_size))
        auto = {s for s in auto if s.width >= min_size}

    accepted: list[Size] = []
    _sweep(pinned, accepted, policy.dedup_ratio)
    _sweep(auto, accepted, policy.dedup_ratio)

    if policy.keep_original_size:
        accepted.append(original)

    result = sorted(set(accepted))
    if not result:
        return [fallback]
    logger.debug(
        "Planned %d size(s) for %dx%d: %s",
        len(result), original.width, original.height,
        ", ".join(f"{s.width}x{s.height}" for s in result),
    )
    return result
