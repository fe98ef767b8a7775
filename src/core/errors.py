# src/core/errors.py — v1
"""Error taxonomy shared by every module.

Fatal errors (BuildError subclasses) abort the run after in-flight tasks
drain. Recoverable errors are caught at the task boundary, logged as a
warning and counted; the file is left untouched.
"""

from __future__ import annotations


class BuildError(Exception):
    """Fatal error: the run cannot continue."""


class ConfigurationError(BuildError):
    """Global configuration or runtime settings are invalid."""


class InputNotFoundError(BuildError):
    """The input root (or project root) does not exist."""


class CacheUnavailableError(BuildError):
    """Cache directory is unusable while caching is mandatory."""


class RecoverableError(Exception):
    """Per-file failure: warn, skip the file, continue the phase."""


class CodecError(RecoverableError):
    """Image decode/encode failure reported by the codec collaborator."""


class SizePlanningError(RecoverableError):
    """Degenerate image geometry (e.g. zero-area original)."""


class MinifierError(RecoverableError):
    """Text minifier rejected its input."""


class CacheCollisionError(Exception):
    """Different bytes stored under an existing content-addressed key.

    Keys derive from content, so this signals a caller bug rather than an
    I/O condition.
    """
