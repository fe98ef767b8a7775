# tests/unit/pipeline/test_driver.py — v1
"""Tests for pipeline/driver.py — phase sequencing, generators and cleanup."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from webappbuilder.cache import layout
from webappbuilder.config.models import GlobalConfig
from webappbuilder.core.errors import CodecError
from webappbuilder.pipeline.context import BuildContext
from webappbuilder.pipeline.driver import PipelineDriver
from webappbuilder.workspace.files import Workspace


def _config(project_root, **extra) -> GlobalConfig:
    return GlobalConfig.model_validate(
        {"root_path": project_root, "input_path": "src", "output_path": "pub", **extra}
    )


@pytest.fixture
def site(project_root):
    src = project_root / "src"
    (src / "index.html").write_text("<html>\n  <body>\n    <p>Hi</p>\n  </body>\n</html>\n")
    (src / "css").mkdir()
    (src / "css" / "app.css").write_text("body {\n  color: red;\n}\n")
    (src / "drafts").mkdir()
    (src / "drafts" / "todo.txt").write_text("later")
    return project_root


class TestPipelineDriver:
    @pytest.mark.asyncio
    async def test_full_build(self, site, settings):
        config = _config(site, file_exceptions=[{"pattern": "drafts/**/*", "remove": True}])
        ctx = BuildContext.create(settings, config)

        result = await PipelineDriver(ctx).run()

        pub = site / "pub"
        assert result.output_path == pub.resolve()
        assert result.cache_status == "rebuilt"
        assert [p.phase for p in result.phases] == ["discard", "image", "text"]
        assert result.phase("discard").succeeded == 1
        assert result.phase("text").succeeded == 2
        assert not (pub / "drafts").exists()
        assert "\n" not in (pub / "css" / "app.css").read_text().strip()
        assert (pub / "ewab").is_dir()
        assert layout.envelope_path(config.resolved_cache_path).is_file()
        assert ctx.work_path is None

    @pytest.mark.asyncio
    async def test_second_build_reuses_cache(self, site, settings):
        config = _config(site)
        await PipelineDriver(BuildContext.create(settings, config)).run()

        result = await PipelineDriver(BuildContext.create(settings, config)).run()

        assert result.cache_status == "ok"
        assert result.phase("text").cache_hits == 2

    @pytest.mark.asyncio
    async def test_unmatched_rule_warning(self, site, settings):
        config = _config(site, file_exceptions=[{"pattern": "legacy/**/*", "remove": True}])
        result = await PipelineDriver(BuildContext.create(settings, config)).run()
        assert any("legacy/**/*" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_icon_generator_output_merged(self, site, settings):
        generator = MagicMock()
        generator.generate.return_value = {"ewab/icons/manifest.json": b'{ "icons": [] }'}
        ctx = BuildContext.create(settings, _config(site), icon_generator=generator)

        result = await PipelineDriver(ctx).run()

        assert result.generated["icons"] == ["ewab/icons/manifest.json"]
        config_arg = generator.generate.call_args.args[1]
        assert config_arg["output_folder"] == "ewab/icons"
        assert (site / "pub" / "ewab" / "icons" / "manifest.json").read_text() == '{"icons":[]}'

    @pytest.mark.asyncio
    async def test_serviceworker_disabled_by_default(self, site, settings):
        generator = MagicMock()
        ctx = BuildContext.create(settings, _config(site), serviceworker_generator=generator)
        await PipelineDriver(ctx).run()
        generator.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_recoverable_generator_error_is_warning(self, site, settings):
        generator = MagicMock()
        generator.generate.side_effect = CodecError("no source image")
        ctx = BuildContext.create(settings, _config(site), icon_generator=generator)

        result = await PipelineDriver(ctx).run()

        assert any("icons generator failed" in w for w in result.warnings)
        assert (site / "pub" / "index.html").is_file()

    @pytest.mark.asyncio
    async def test_fatal_error_cleans_up(self, site, settings):
        generator = MagicMock()
        generator.generate.side_effect = RuntimeError("generator bug")
        config = _config(site)
        ctx = BuildContext.create(settings, config, icon_generator=generator)
        workspace = Workspace(config)

        with pytest.raises(RuntimeError, match="generator bug"):
            await PipelineDriver(ctx, workspace).run()

        assert workspace.work_path is None
        assert not (site / "pub").exists()
        assert not layout.envelope_path(config.resolved_cache_path).exists()

    @pytest.mark.asyncio
    async def test_no_cache_removes_cache_dir(self, site, settings):
        config = _config(site, use_cache=False)
        await PipelineDriver(BuildContext.create(settings, config)).run()
        assert not config.resolved_cache_path.exists()
