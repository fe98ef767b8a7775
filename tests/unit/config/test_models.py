# tests/unit/config/test_models.py — v1
"""Tests for config/models.py — project configuration models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from webappbuilder.config.models import (
    ConfigPatch,
    GlobalConfig,
    ImagePolicy,
    OverrideRule,
    ResizePolicy,
    SizeBox,
    TextPolicy,
)
from webappbuilder.core.errors import ConfigurationError


class TestImagePolicy:
    def test_defaults(self):
        policy = ImagePolicy()
        assert policy.minify is True
        assert policy.target_formats == ["webp"]
        assert policy.keep_original_format is True
        assert 0 < policy.quality < 1

    def test_camel_case_keys(self):
        policy = ImagePolicy.model_validate(
            {"targetFormats": ["avif"], "keepOriginalFormat": False, "maxSize": 1024}
        )
        assert policy.target_formats == ["avif"]
        assert policy.keep_original_format is False
        assert policy.max_size == 1024

    def test_jpeg_alias_and_dedup(self):
        policy = ImagePolicy(target_formats=["JPEG", "jpg", "webp"])
        assert policy.target_formats == ["jpg", "webp"]

    def test_unknown_format_rejected(self):
        with pytest.raises(ValidationError):
            ImagePolicy(target_formats=["gif"])

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            ImagePolicy.model_validate({"colour": "red"})

    def test_quality_range(self):
        with pytest.raises(ValidationError):
            ImagePolicy(quality=1.5)

    def test_min_above_max(self):
        with pytest.raises(ValidationError):
            ImagePolicy(min_size=500, max_size=100)

    def test_frozen(self):
        policy = ImagePolicy()
        with pytest.raises(ValidationError):
            policy.quality = 0.1


class TestResizePolicy:
    def test_int_custom_size_is_square_box(self):
        policy = ResizePolicy(custom_sizes=[192, {"width": 300, "height": 100}])
        assert policy.custom_sizes == [SizeBox(width=192, height=192), SizeBox(width=300, height=100)]

    def test_invalid_size_hint(self):
        with pytest.raises(ValidationError):
            ResizePolicy(sizes="50em")

    def test_valid_size_hints(self):
        assert ResizePolicy(sizes="50vw, 300px").sizes == "50vw, 300px"

    def test_dedup_ratio_bounds(self):
        with pytest.raises(ValidationError):
            ResizePolicy(dedup_ratio=1.0)


class TestTextPolicy:
    def test_extension_keys_mapped_to_kinds(self):
        policy = TextPolicy(direct_options={"css": {"keep_bang_comments": True}})
        assert policy.direct_options == {"stylesheet": {"keep_bang_comments": True}}

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            TextPolicy(direct_options={"yaml": {}})

    def test_source_maps_option_rejected(self):
        with pytest.raises(ValidationError):
            TextPolicy.model_validate({"addSourceMaps": True})


class TestConfigPatch:
    def test_all_optional(self):
        assert ConfigPatch().as_update() == {}

    def test_only_set_leaves(self):
        patch = ConfigPatch.model_validate({"images": {"quality": 0.5}})
        assert patch.as_update() == {"images": {"quality": 0.5}}

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            ConfigPatch.model_validate({"images": {"qualty": 0.5}})


class TestOverrideRule:
    def test_new_shape(self):
        rule = OverrideRule.model_validate(
            {"pattern": "*.svg", "settings": {"files": {"minify": False}}, "remove": True}
        )
        assert rule.pattern == "*.svg"
        assert rule.settings.files.minify is False
        assert rule.remove is True

    def test_legacy_shape(self):
        rule = OverrideRule.model_validate({"glob": "img/**", "images": {"minify": False}})
        assert rule.pattern == "img/**"
        assert rule.settings.images.minify is False

    def test_invalid_glob_rejected(self):
        with pytest.raises(ConfigurationError):
            OverrideRule.model_validate({"pattern": "a{b"})

    def test_mixed_shapes_rejected(self):
        with pytest.raises(ValidationError):
            OverrideRule.model_validate(
                {"glob": "*", "images": {}, "settings": {"files": {}}}
            )


class TestGlobalConfig:
    def test_defaults(self, tmp_path):
        config = GlobalConfig(root_path=tmp_path)
        assert config.alias == "ewab"
        assert config.use_cache is True
        assert config.file_exceptions == []

    def test_default_cache_path(self, tmp_path):
        config = GlobalConfig(root_path=tmp_path, alias="ewa")
        assert config.resolved_cache_path == tmp_path / ".ewa-cache"

    def test_relative_cache_path(self, tmp_path):
        config = GlobalConfig(root_path=tmp_path, cache_path=Path("build/cache"))
        assert config.resolved_cache_path == tmp_path / "build" / "cache"

    def test_same_input_output_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            GlobalConfig(root_path=tmp_path, input_path="src", output_path="src")

    def test_bad_alias(self, tmp_path):
        with pytest.raises(ValidationError):
            GlobalConfig(root_path=tmp_path, alias="a b")

    def test_rule_breaking_size_bounds_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError, match=r"\*\*/\*\.png"):
            GlobalConfig.model_validate({
                "root_path": tmp_path,
                "fileExceptions": [
                    {"pattern": "**/*.png", "settings": {"images": {"maxSize": 8}}},
                ],
            })

    def test_rule_within_bounds_accepted(self, tmp_path):
        config = GlobalConfig.model_validate({
            "root_path": tmp_path,
            "fileExceptions": [
                {"pattern": "**/*.png", "settings": {"images": {"maxSize": 64, "minSize": 8}}},
            ],
        })
        assert config.file_exceptions[0].settings.images.max_size == 64
