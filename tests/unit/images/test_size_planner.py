# tests/unit/images/test_size_planner.py — v1
"""Tests for images/size_planner.py — size hints, fitting and deduplication."""

from __future__ import annotations

import pytest

from webappbuilder.config.models import ResizePolicy
from webappbuilder.core.errors import SizePlanningError
from webappbuilder.images.models import Size
from webappbuilder.images.size_planner import (
    fallback_box,
    fit_to_box,
    parse_size_hints,
    plan,
    round_half_up,
)


def _policy(**kwargs) -> ResizePolicy:
    return ResizePolicy.model_validate(kwargs)


class TestParseSizeHints:
    def test_mixed_units(self):
        assert parse_size_hints("50vw, 300px") == [(50.0, "vw"), (300.0, "px")]

    def test_case_and_spacing(self):
        assert parse_size_hints(" 33.5VW ,,") == [(33.5, "vw")]

    @pytest.mark.parametrize("bad", ["50", "50em", "vw", "-10px", "0vw"])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            parse_size_hints(bad)

    def test_policy_rejects_bad_hints(self):
        with pytest.raises(ValueError):
            _policy(sizes="50%")


class TestHelpers:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_fit_preserves_aspect(self):
        assert fit_to_box(Size(2000, 1000), 500, 500) == Size(500, 250)

    def test_fit_never_upscales(self):
        assert fit_to_box(Size(100, 50), 1000, 1000) == Size(100, 50)

    def test_fallback_box(self):
        assert fallback_box(Size(4000, 3000), 2560) == 1920
        assert fallback_box(Size(800, 300), 2560) == 800


class TestPlan:
    def test_dedup_worked_example(self):
        policy = _policy(customSizes=[{"width": 960, "height": 480}], fallbackSize=600)
        sizes = plan(Size(2000, 1000), policy, max_size=1920)
        assert sizes == [Size(960, 480), Size(1920, 960)]

    def test_no_upscale(self):
        policy = _policy(auto=False, customSizes=[500])
        assert plan(Size(100, 50), policy, max_size=2560) == [Size(100, 50)]

    def test_px_hint(self):
        policy = _policy(sizes="300px")
        assert plan(Size(1000, 1000), policy, max_size=2560) == [
            Size(300, 300),
            Size(1000, 1000),
        ]

    def test_max_size_caps_everything(self):
        policy = _policy(sizes="100vw")
        sizes = plan(Size(5000, 5000), policy, max_size=800)
        assert all(s.width <= 800 and s.height <= 800 for s in sizes)

    def test_ratio_band(self):
        policy = _policy(auto=False, customSizes=[100, 90], fallbackSize=50)
        sizes = plan(Size(1000, 1000), policy, max_size=2560)
        assert sizes == [Size(50, 50), Size(100, 100)]

    def test_never_empty(self):
        policy = _policy()
        assert plan(Size(10, 10), policy, max_size=2560, min_size=16) == [Size(10, 10)]

    def test_min_size_drops_small_custom(self):
        policy = _policy(auto=False, customSizes=[8])
        assert plan(Size(100, 100), policy, max_size=2560, min_size=16) == [Size(100, 100)]

    def test_keep_original_size(self):
        policy = _policy(auto=False, keepOriginalSize=True)
        sizes = plan(Size(4000, 2000), policy, max_size=1000)
        assert sizes == [Size(1000, 500), Size(4000, 2000)]

    def test_sorted_and_distinct(self):
        policy = _policy(sizes="25vw, 50vw, 100vw", dedupRatio=0.9)
        sizes = plan(Size(3000, 2000), policy, max_size=2560)
        assert sizes == sorted(set(sizes))
        widths = [s.width for s in sizes]
        for smaller, larger in zip(widths, widths[1:]):
            assert smaller < 0.9 * larger

    @pytest.mark.parametrize("size", [Size(0, 10), Size(10, 0)])
    def test_zero_area(self, size):
        with pytest.raises(SizePlanningError):
            plan(size, _policy(), max_size=2560)
