# src/pipeline/phases.py — v1
"""Build phases: Discard, ImageTransform, TextTransform.

Every phase follows the same steps:
  1. enumerate the files currently in the work tree
  2. resolve each file's effective configuration
  3. keep the files the phase applies to
  4. run one task per file through the scheduler
  5. fold the outcomes into a PhaseReport

Per-file failures (RecoverableError, OSError) become warnings. Anything
else is fatal and re-raised once every task has finished, unless
``Settings.ignore_errors`` is set.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from webappbuilder.config.models import EffectiveConfig
from webappbuilder.core.errors import RecoverableError
from webappbuilder.images.formats import format_for_extension
from webappbuilder.images.models import ImageTask
from webappbuilder.images.processor import ImageProcessor
from webappbuilder.logging.context import file_context, set_phase_context
from webappbuilder.pipeline.context import BuildContext
from webappbuilder.pipeline.models import FileFailure, PhaseReport
from webappbuilder.scheduler.task_scheduler import (
    Task,
    TaskOutcome,
    TaskScheduler,
    measure_concurrency,
)
from webappbuilder.text.minifiers import kind_for_extension
from webappbuilder.text.processor import TextProcessor

logger = logging.getLogger(__name__)

PROGRESS_STEP_PERCENT = 10


@dataclass
class FileOutcome:
    logical_path: str
    bytes_before: int
    bytes_after: int
    cache_hits: int = 0


def list_files(root: Path) -> list[str]:
    """Logical paths of every file under root, sorted."""
    return sorted(
        path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()
    )


def _extension(logical_path: str) -> str:
    return PurePosixPath(logical_path).suffix.lstrip(".").lower()


def _in_file_context(logical_path: str, fn: Callable[[], FileOutcome]) -> Callable[[], FileOutcome]:
    def run() -> FileOutcome:
        with file_context(logical_path):
            return fn()

    return run


def is_recoverable(error: BaseException) -> bool:
    return isinstance(error, (RecoverableError, OSError))


class Phase(ABC):
    """One barrier-separated step of the build."""

    name: str = ""

    @abstractmethod
    def select(self, logical_path: str, effective: EffectiveConfig) -> bool:
        """Whether this phase applies to the file."""

    @abstractmethod
    def make_task(
        self,
        ctx: BuildContext,
        path: Path,
        logical_path: str,
        effective: EffectiveConfig,
    ) -> Callable[[], FileOutcome]:
        """Build the callable that transforms one file."""

    def prepare(self, ctx: BuildContext) -> None:
        """Hook run before tasks are built."""

    def finish(self, ctx: BuildContext, outcomes: list[TaskOutcome[Any]]) -> None:
        """Hook run after every task completed."""

    async def run(self, ctx: BuildContext) -> PhaseReport:
        start_ns = time.monotonic_ns()
        set_phase_context(self.name)
        try:
            return await self._run(ctx, start_ns)
        finally:
            set_phase_context(None)

    async def _run(self, ctx: BuildContext, start_ns: int) -> PhaseReport:
        work = ctx.require_work_path()
        self.prepare(ctx)

        tasks: list[Task[FileOutcome]] = []
        for logical in list_files(work):
            effective = ctx.resolver.resolve(logical)
            if not self.select(logical, effective):
                continue
            fn = self.make_task(ctx, work / logical, logical, effective)
            tasks.append(Task(name=logical, fn=_in_file_context(logical, fn)))

        report = PhaseReport(phase=self.name, total=len(tasks))
        if not tasks:
            logger.info("Phase %s: nothing to do", self.name)
            return report

        concurrency = measure_concurrency(
            ctx.settings.memory_per_worker_bytes, ctx.settings.max_workers
        )
        logger.info(
            "Phase %s: %d file(s) on %d worker(s)", self.name, len(tasks), concurrency
        )
        outcomes = await TaskScheduler(concurrency).run(
            tasks, on_progress=self._progress_logger()
        )
        self.finish(ctx, outcomes)

        fatal: list[BaseException] = []
        for outcome in outcomes:
            if outcome.ok and outcome.result is not None:
                report.succeeded += 1
                report.bytes_before += outcome.result.bytes_before
                report.bytes_after += outcome.result.bytes_after
                report.cache_hits += outcome.result.cache_hits
                continue
            error = outcome.error
            recoverable = error is None or is_recoverable(error)
            report.failed += 1
            report.failures.append(
                FileFailure(path=outcome.name, error=str(error), fatal=not recoverable)
            )
            if recoverable:
                logger.warning("Skipped %s: %s", outcome.name, error)
            elif ctx.settings.ignore_errors:
                logger.warning("Ignoring error in %s: %r", outcome.name, error)
            else:
                logger.error("Failed %s: %r", outcome.name, error)
                fatal.append(error)

        report.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        logger.info(
            "Phase %s done: %d ok, %d failed, %d cache hit(s), %d bytes saved, %dms",
            self.name, report.succeeded, report.failed, report.cache_hits,
            report.bytes_saved, report.duration_ms,
        )
        if fatal:
            raise fatal[0]
        return report

    def _progress_logger(self) -> Callable[[int, int, TaskOutcome[Any]], None]:
        last_step = -1

        def on_progress(completed: int, total: int, outcome: TaskOutcome[Any]) -> None:
            nonlocal last_step
            percent = completed * 100 // total
            logger.debug("%s: %s", outcome.name, "ok" if outcome.ok else "failed")
            step = percent // PROGRESS_STEP_PERCENT
            if step > last_step or completed == total:
                last_step = step
                logger.info("Phase %s: %d/%d (%d%%)", self.name, completed, total, percent)

        return on_progress


class DiscardPhase(Phase):
    """Deletes every file whose effective configuration says ``remove``."""

    name = "discard"

    def select(self, logical_path: str, effective: EffectiveConfig) -> bool:
        return effective.remove

    def make_task(self, ctx, path, logical_path, effective):
        def discard() -> FileOutcome:
            size = path.stat().st_size
            path.unlink()
            return FileOutcome(logical_path=logical_path, bytes_before=size, bytes_after=0)

        return discard

    def finish(self, ctx: BuildContext, outcomes: list[TaskOutcome[Any]]) -> None:
        work = ctx.require_work_path()
        for outcome in outcomes:
            if not outcome.ok:
                continue
            parent = (work / outcome.name).parent
            while parent != work and parent.is_dir() and not any(parent.iterdir()):
                parent.rmdir()
                parent = parent.parent


class ImagePhase(Phase):
    """Writes resized, re-encoded variants next to every source image."""

    name = "image"

    def __init__(self) -> None:
        self._processor: ImageProcessor | None = None

    def prepare(self, ctx: BuildContext) -> None:
        self._processor = ImageProcessor(ctx.codec, ctx.cache, ctx.similarity)

    def select(self, logical_path: str, effective: EffectiveConfig) -> bool:
        return (
            not effective.remove
            and effective.images.minify
            and format_for_extension(_extension(logical_path)) is not None
        )

    def make_task(self, ctx, path, logical_path, effective):
        processor = self._processor
        work = ctx.require_work_path()
        task = ImageTask(source_file=path, logical_path=logical_path, effective_config=effective)

        def transform() -> FileOutcome:
            result = processor.process(task)
            for variant in result.variants:
                target = work / variant.logical_path
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(variant.data)
            return FileOutcome(
                logical_path=logical_path,
                bytes_before=result.original_bytes,
                bytes_after=result.original_bytes - result.bytes_saved,
                cache_hits=result.cache_hits,
            )

        return transform


class TextPhase(Phase):
    """Minifies markup, stylesheets, scripts, JSON and SVG in place."""

    name = "text"

    def __init__(self) -> None:
        self._processor: TextProcessor | None = None

    def prepare(self, ctx: BuildContext) -> None:
        self._processor = TextProcessor(ctx.minifier, ctx.cache)

    def select(self, logical_path: str, effective: EffectiveConfig) -> bool:
        return (
            not effective.remove
            and effective.files.minify
            and kind_for_extension(_extension(logical_path)) is not None
        )

    def make_task(self, ctx, path, logical_path, effective):
        processor = self._processor

        def minify() -> FileOutcome:
            result = processor.process(path, logical_path, effective)
            return FileOutcome(
                logical_path=logical_path,
                bytes_before=result.bytes_before,
                bytes_after=result.bytes_after,
                cache_hits=1 if result.cache_hit else 0,
            )

        return minify
