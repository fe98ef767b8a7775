# tests/unit/images/test_quality_search.py — v1
"""Tests for images/quality_search.py — probe interpolation and guards.

Encoding and similarity are replaced by lookups so each case pins the
exact probe similarities.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from webappbuilder.images.formats import FORMAT_PROFILES
from webappbuilder.images.quality_search import find_quality

WEBP = FORMAT_PROFILES["webp"]
PNG = FORMAT_PROFILES["png"]


def _search(similarities: dict[int, float], target: float, profile=WEBP):
    encode_fn = MagicMock(side_effect=lambda param: param)

    def similarity_fn(original, decoded):
        return similarities[decoded]

    return find_quality(encode_fn, similarity_fn, object(), target, profile), encode_fn


class TestFindQuality:
    def test_interpolates(self):
        result, _ = _search({50: 0.80, 90: 0.96}, 0.88)
        assert result.param == 70
        assert result.lossless is False
        assert result.reason == "interpolated"
        assert result.probe_similarities == (0.80, 0.96)

    def test_probes_both_points(self):
        _, encode_fn = _search({50: 0.80, 90: 0.96}, 0.88)
        assert [c.args[0] for c in encode_fn.call_args_list] == [50, 90]

    def test_monotonicity_guard(self):
        result, _ = _search({50: 0.90, 90: 0.85}, 0.5)
        assert result.param == 100
        assert result.lossless is True
        assert result.reason == "monotonicity-guard"

    def test_equal_probes_use_guard(self):
        result, _ = _search({50: 0.9, 90: 0.9}, 0.5)
        assert result.reason == "monotonicity-guard"

    def test_clamped_to_max_is_lossless(self):
        result, _ = _search({50: 0.80, 90: 0.84}, 0.95)
        assert result.param == 100
        assert result.lossless is True
        assert result.reason == "interpolated"

    def test_clamped_to_min(self):
        result, _ = _search({50: 0.80, 90: 0.84}, 0.1)
        assert result.param == 0
        assert result.lossless is False

    def test_lossless_target_skips_probes(self):
        result, encode_fn = _search({}, 1.0)
        assert result.param == 100
        assert result.lossless is True
        assert result.reason == "lossless-target"
        encode_fn.assert_not_called()

    def test_format_without_quality_param(self):
        result, encode_fn = _search({}, 0.5, profile=PNG)
        assert result.param is None
        assert result.lossless is True
        assert result.reason == "no-quality-param"
        encode_fn.assert_not_called()

    @pytest.mark.parametrize("target", [-0.1, 1.5])
    def test_target_out_of_range(self, target):
        with pytest.raises(ValueError):
            _search({}, target)
