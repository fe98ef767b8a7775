# src/pipeline/driver.py — v1
"""Run a full build.

Lifecycle:
  ensure cache -> begin workspace -> discard -> icons -> images
  -> service worker -> text -> end workspace -> seal cache

Phases are barriers: each starts from the file set the previous one left
behind. On any fatal error the temp work tree is removed and the error
propagates; the output folder and cache envelope are left untouched.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from webappbuilder.cache import layout
from webappbuilder.config.loader import builtin_exceptions
from webappbuilder.core.errors import RecoverableError
from webappbuilder.logging.context import set_phase_context, set_run_context
from webappbuilder.pipeline.context import BuildContext
from webappbuilder.pipeline.generators import (
    ArtifactGenerator,
    icons_config,
    merge_artifacts,
    serviceworker_config,
)
from webappbuilder.pipeline.models import BuildResult
from webappbuilder.pipeline.phases import DiscardPhase, ImagePhase, TextPhase, list_files
from webappbuilder.workspace.files import Workspace

logger = logging.getLogger(__name__)


class PipelineDriver:
    """Sequences the phases of one build.

    Args:
        ctx: Run context with configuration, cache and collaborators.
        workspace: Folder handling; defaults to one built from the config.
    """

    def __init__(self, ctx: BuildContext, workspace: Workspace | None = None) -> None:
        self._ctx = ctx
        self._workspace = workspace or Workspace(ctx.config)

    async def run(self) -> BuildResult:
        ctx = self._ctx
        start_ns = time.monotonic_ns()
        set_run_context(ctx.run_id)
        logger.info("Build %s started in %s", ctx.run_id, ctx.config.root_path)

        cache_status = ctx.cache.ensure()
        ctx.work_path = self._workspace.begin()
        result = BuildResult(
            run_id=ctx.run_id,
            output_path=self._workspace.output_path or Path(),
            cache_status=cache_status,
        )
        try:
            result.warnings.extend(self._warn_unmatched_rules())

            result.phases.append(await DiscardPhase().run(ctx))
            await self._generate(
                result, "icons", ctx.icon_generator, ctx.config.icons.add,
                lambda: icons_config(
                    ctx.config.alias, ctx.config.icons.source,
                    layout.icons_dir(ctx.cache.path),
                ),
            )
            result.phases.append(await ImagePhase().run(ctx))
            await self._generate(
                result, "serviceworker", ctx.serviceworker_generator,
                ctx.config.serviceworker.add,
                lambda: serviceworker_config(
                    ctx.config.alias, ctx.config.serviceworker.clean,
                    layout.serviceworker_dir(ctx.cache.path),
                ),
            )
            result.phases.append(await TextPhase().run(ctx))

            result.output_path = self._workspace.end()
        except BaseException:
            logger.debug("Build %s aborted, removing work folder", ctx.run_id)
            self._workspace.clean()
            raise
        finally:
            ctx.work_path = None

        ctx.cache.seal()
        result.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        logger.info(
            "Build %s complete: %d file(s) processed, %d failed, %d bytes saved, %dms",
            ctx.run_id, result.files_processed, result.files_failed,
            result.bytes_saved, result.duration_ms,
        )
        return result

    def _warn_unmatched_rules(self) -> list[str]:
        ctx = self._ctx
        paths = list_files(ctx.require_work_path())
        unmatched = ctx.resolver.unmatched_rules(
            paths, ignore=builtin_exceptions(ctx.config.alias)
        )
        warnings = []
        for rule in unmatched:
            message = f"File exception {rule.pattern!r} matches no files"
            logger.warning(message)
            warnings.append(message)
        return warnings

    async def _generate(
        self,
        result: BuildResult,
        name: str,
        generator: ArtifactGenerator | None,
        enabled: bool,
        make_config,
    ) -> None:
        if not enabled:
            return
        if generator is None:
            logger.debug("No %s generator configured, skipping", name)
            return

        set_phase_context(name)
        try:
            work = self._ctx.require_work_path()
            artifacts = await asyncio.to_thread(generator.generate, work, make_config())
            written = merge_artifacts(work, artifacts)
        except (RecoverableError, OSError) as e:
            message = f"{name} generator failed: {e}"
            logger.warning(message)
            result.warnings.append(message)
            return
        except Exception as e:
            if not self._ctx.settings.ignore_errors:
                raise
            message = f"Ignoring {name} generator error: {e!r}"
            logger.warning(message)
            result.warnings.append(message)
            return
        finally:
            set_phase_context(None)

        logger.info("%s generator added %d file(s)", name, len(written))
        result.generated[name] = written
