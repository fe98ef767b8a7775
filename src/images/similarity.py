# src/images/similarity.py — v1
"""Structural similarity (SSIM) between two bitmaps.

Computed on the luminance channel with a 7x7 uniform window and the usual
stabilizing constants for 8-bit data. Returns a score in [0, 1].
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from PIL import Image

WINDOW_SIZE = 7
_K1 = 0.01
_K2 = 0.03
_DATA_RANGE = 255.0

SimilarityFn = Callable[[Image.Image, Image.Image], float]


def to_luma(image: Image.Image) -> np.ndarray:
    if image.mode in ("RGBA", "LA", "PA", "P"):
        # Composite onto white so transparent pixels compare consistently
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, rgba)
    return np.asarray(image.convert("L"), dtype=np.float64)


def _box_mean(arr: np.ndarray, k: int) -> np.ndarray:
    """Mean over every valid k x k window using a summed-area table."""
    sat = np.zeros((arr.shape[0] + 1, arr.shape[1] + 1), dtype=np.float64)
    sat[1:, 1:] = arr.cumsum(axis=0).cumsum(axis=1)
    window_sums = sat[k:, k:] - sat[:-k, k:] - sat[k:, :-k] + sat[:-k, :-k]
    return window_sums / float(k * k)


def ssim(a: Image.Image, b: Image.Image) -> float:
    """Mean SSIM of two images of identical size.

    Raises:
        ValueError: If the images differ in size.
    """
    if a.size != b.size:
        raise ValueError(f"Image sizes differ: {a.size} vs {b.size}")
    x = to_luma(a)
    y = to_luma(b)

    c1 = (_K1 * _DATA_RANGE) ** 2
    c2 = (_K2 * _DATA_RANGE) ** 2
    k = min(WINDOW_SIZE, x.shape[0], x.shape[1])
    n = k * k
    cov_norm = n / (n - 1) if n > 1 else 1.0

    mu_x = _box_mean(x, k)
    mu_y = _box_mean(y, k)
    var_x = cov_norm * (_box_mean(x * x, k) - mu_x * mu_x)
    var_y = cov_norm * (_box_mean(y * y, k) - mu_y * mu_y)
    cov_xy = cov_norm * (_box_mean(x * y, k) - mu_x * mu_y)

    numerator = (2 * mu_x * mu_y + c1) * (2 * cov_xy + c2)
    denominator = (mu_x**2 + mu_y**2 + c1) * (var_x + var_y + c2)
    score = float(np.mean(numerator / denominator))
    return min(1.0, max(0.0, score))
