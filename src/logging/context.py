# src/logging/context.py — v1
"""Contextual logging support: attach run_id, phase and file to log records.

Worker threads inherit the context because the scheduler runs each task
inside a copy of the submitting coroutine's context.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_phase: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "phase", default=None
)
_file: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "file", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    run_id: str | None = None
    phase: str | None = None
    file: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(run_id=_run_id.get(), phase=_phase.get(), file=_file.get())


def set_run_context(run_id: str) -> None:
    """Set run-level context (called once per build)."""
    _run_id.set(run_id)


def set_phase_context(phase: str | None) -> None:
    _phase.set(phase)


@contextmanager
def file_context(logical_path: str) -> Iterator[None]:
    """Attach a file path to records logged inside the block."""
    token = _file.set(logical_path)
    try:
        yield
    finally:
        _file.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _phase.set(None)
    _file.set(None)
