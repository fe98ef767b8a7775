# src/scheduler/task_scheduler.py — v1
"""Bounded parallel execution of per-file transform tasks.

Tasks are plain synchronous callables. They run on a thread pool whose
size is derived once per phase from available memory and CPU count. Each
task runs inside a copy of the caller's contextvars, so log records from
worker threads carry the run and phase context.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import psutil

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CEILING = 8
DEFAULT_MEMORY_PER_WORKER = 256 * 1024 * 1024


@dataclass
class Task(Generic[T]):
    name: str
    fn: Callable[[], T]


@dataclass
class TaskOutcome(Generic[T]):
    index: int
    name: str
    result: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


ProgressCallback = Callable[[int, int, "TaskOutcome[Any]"], None]


def compute_concurrency(
    available_memory: int,
    cpu_count: int,
    memory_per_worker: int = DEFAULT_MEMORY_PER_WORKER,
    ceiling: int = DEFAULT_CEILING,
) -> int:
    """Worker slots: min(memory budget, half the CPUs), clamped to [1, ceiling]."""
    by_memory = available_memory // max(1, memory_per_worker)
    by_cpu = cpu_count // 2
    return max(1, min(by_memory, by_cpu, ceiling))


def measure_concurrency(
    memory_per_worker: int = DEFAULT_MEMORY_PER_WORKER,
    ceiling: int = DEFAULT_CEILING,
) -> int:
    """compute_concurrency() against the current machine."""
    available = psutil.virtual_memory().available
    cpus = os.cpu_count() or 1
    slots = compute_concurrency(available, cpus, memory_per_worker, ceiling)
    logger.debug(
        "Concurrency %d (available memory %d MB, %d CPU(s))",
        slots, available // (1024 * 1024), cpus,
    )
    return slots


class TaskScheduler:
    """Runs tasks with bounded parallelism and reports progress."""

    def __init__(self, concurrency: int) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def run(
        self,
        tasks: Sequence[Task[T]],
        on_progress: ProgressCallback | None = None,
    ) -> list[TaskOutcome[T]]:
        """Run every task; failures are captured, never propagated.

        Returns:
            One outcome per task, in submission order.
        """
        total = len(tasks)
        if total == 0:
            return []

        loop = asyncio.get_running_loop()
        outcomes: list[TaskOutcome[T] | None] = [None] * total
        completed = 0

        executor = ThreadPoolExecutor(
            max_workers=self._concurrency, thread_name_prefix="webappbuilder"
        )

        async def run_one(index: int, task: Task[T]) -> None:
            nonlocal completed
            ctx = contextvars.copy_context()
            try:
                result = await loop.run_in_executor(
                    executor, functools.partial(ctx.run, task.fn)
                )
                outcome: TaskOutcome[T] = TaskOutcome(index=index, name=task.name, result=result)
            except Exception as e:
                outcome = TaskOutcome(index=index, name=task.name, error=e)
            outcomes[index] = outcome
            # Completions are handled on the loop thread, one at a time
            completed += 1
            if on_progress is not None:
                on_progress(completed, total, outcome)

        try:
            await asyncio.gather(*(run_one(i, t) for i, t in enumerate(tasks)))
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return [o for o in outcomes if o is not None]
