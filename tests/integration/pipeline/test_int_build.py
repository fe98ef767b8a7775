# tests/integration/pipeline/test_int_build.py — v1
"""Integration tests: full builds from a config file on disk.

No external services required. Real Pillow codec, SSIM and minifiers.
Coverage targets: config/loader.py, pipeline/driver.py, images/processor.py,
cache/content_cache.py, workspace/files.py
"""

from __future__ import annotations

import io
import json

import pytest
from PIL import Image

from tests.conftest import write_image
from webappbuilder.cache import layout
from webappbuilder.config.loader import load_global_config
from webappbuilder.pipeline.context import BuildContext
from webappbuilder.pipeline.driver import PipelineDriver


@pytest.fixture
def logo_site(project_root):
    write_image(project_root / "src" / "logo.png", 512, 512)
    (project_root / "src" / "index.html").write_text(
        '<html>\n  <body>\n    <img src="logo.png">\n  </body>\n</html>\n'
    )
    (project_root / ".ewabconfig.json").write_text(json.dumps({
        "inputPath": "src",
        "outputPath": "pub",
        "images": {
            "targetFormats": ["webp", "png"],
            "quality": 0.8,
            "resize": {"auto": False, "customSizes": [192, 512]},
        },
    }))
    return project_root


def _cached_images(config) -> list[str]:
    items = layout.items_dir(config.resolved_cache_path)
    return sorted(p.name for p in items.iterdir() if p.suffix in (".png", ".webp"))


class TestLogoBuild:
    @pytest.mark.asyncio
    async def test_variants_and_cache(self, logo_site, settings):
        config = load_global_config(logo_site)
        result = await PipelineDriver(BuildContext.create(settings, config)).run()

        pub = logo_site / "pub"
        assert sorted(p.name for p in pub.iterdir() if p.is_file()) == [
            "index.html",
            "logo-192w.png",
            "logo-192w.webp",
            "logo-512w.png",
            "logo-512w.webp",
            "logo.png",
        ]
        with Image.open(io.BytesIO((pub / "logo-192w.webp").read_bytes())) as img:
            assert img.format == "WEBP"
            assert img.size == (192, 192)

        assert result.phase("image").succeeded == 1
        assert result.phase("image").cache_hits == 0
        assert len(_cached_images(config)) == 4

    @pytest.mark.asyncio
    async def test_rebuild_is_all_hits(self, logo_site, settings):
        config = load_global_config(logo_site)
        first = await PipelineDriver(BuildContext.create(settings, config)).run()
        first_bytes = (logo_site / "pub" / "logo-192w.webp").read_bytes()

        second = await PipelineDriver(BuildContext.create(settings, config)).run()

        assert first.cache_status == "rebuilt"
        assert second.cache_status == "ok"
        assert second.phase("image").cache_hits == 4
        assert second.phase("text").cache_hits == 1
        assert (logo_site / "pub" / "logo-192w.webp").read_bytes() == first_bytes

    @pytest.mark.asyncio
    async def test_config_change_invalidates_cache(self, logo_site, settings):
        config = load_global_config(logo_site)
        await PipelineDriver(BuildContext.create(settings, config)).run()

        data = json.loads((logo_site / ".ewabconfig.json").read_text())
        data["images"]["quality"] = 0.5
        (logo_site / ".ewabconfig.json").write_text(json.dumps(data))
        changed = load_global_config(logo_site)
        result = await PipelineDriver(BuildContext.create(settings, changed)).run()

        assert result.cache_status == "rebuilt"
        assert result.phase("image").cache_hits == 0

    @pytest.mark.asyncio
    async def test_icons_folder_left_alone(self, logo_site, settings):
        write_image(logo_site / "src" / "ewab" / "icons" / "icon-64.png", 64, 64)
        config = load_global_config(logo_site)
        await PipelineDriver(BuildContext.create(settings, config)).run()

        icons = sorted(p.name for p in (logo_site / "pub" / "ewab" / "icons").iterdir())
        assert icons == ["icon-64.png"]


class TestModernFormats:
    @pytest.mark.asyncio
    async def test_webp_and_jxl_targets(self, project_root, settings):
        write_image(project_root / "src" / "logo.png", 512, 512)
        (project_root / ".ewabconfig.json").write_text(json.dumps({
            "inputPath": "src",
            "outputPath": "pub",
            "images": {
                "targetFormats": ["webp", "jxl"],
                "keepOriginalFormat": False,
                "resize": {"auto": False, "customSizes": [192]},
            },
        }))
        config = load_global_config(project_root)
        result = await PipelineDriver(BuildContext.create(settings, config)).run()

        pub = project_root / "pub"
        assert sorted(p.name for p in pub.iterdir()) == [
            "logo-192w.jxl",
            "logo-192w.webp",
            "logo-512w.jxl",
            "logo-512w.webp",
            "logo.png",
        ]
        with Image.open(io.BytesIO((pub / "logo-192w.jxl").read_bytes())) as img:
            assert img.format == "JXL"
            assert img.size == (192, 192)
        assert result.phase("image").succeeded == 1
        assert result.phase("image").failed == 0
