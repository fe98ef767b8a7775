# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides settings without .env lookups, project configs rooted in tmp_path,
an enabled content cache and small generated images.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from webappbuilder.cache.content_cache import ContentCache
from webappbuilder.config.models import GlobalConfig
from webappbuilder.config.settings import Settings


def make_image_bytes(
    width: int,
    height: int,
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    """Encode a small gradient image so encoders have something to compress."""
    image = Image.new(mode, (width, height))
    pixels = image.load()
    for x in range(width):
        for y in range(height):
            value = (x * 255 // max(1, width - 1), y * 255 // max(1, height - 1), 128)
            pixels[x, y] = value + (255,) if mode == "RGBA" else value
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def write_image(path: Path, width: int, height: int, fmt: str = "PNG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(make_image_bytes(width, height, fmt))
    return path


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def project_root(tmp_path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    return root


@pytest.fixture
def global_config(project_root) -> GlobalConfig:
    return GlobalConfig(root_path=project_root, input_path="src", output_path="pub")


@pytest.fixture
def cache(tmp_path) -> ContentCache:
    cache = ContentCache(
        cache_path=tmp_path / "cache",
        tool_version="0.0.0-test",
        config_hash="cfg",
    )
    cache.ensure()
    return cache
