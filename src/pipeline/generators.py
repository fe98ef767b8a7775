# src/pipeline/generators.py — v1
"""Icon and service-worker generators.

Generators are external collaborators: given the work tree and a config
blob they return new files as ``{logical path: bytes}``, which are merged
into the work tree. No default implementation is bundled.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from webappbuilder.core.errors import BuildError
from webappbuilder.matching.path_matcher import normalize_logical_path

logger = logging.getLogger(__name__)


class ArtifactGenerator(Protocol):
    def generate(self, work_root: Path, config: Mapping[str, Any]) -> Mapping[str, bytes]: ...


def merge_artifacts(work_root: Path, artifacts: Mapping[str, bytes]) -> list[str]:
    """Write generated files into the work tree.

    Raises:
        BuildError: If a generated path escapes the work tree.
    """
    root = work_root.resolve()
    written: list[str] = []
    for raw_path, data in artifacts.items():
        logical = normalize_logical_path(raw_path)
        target = (root / logical).resolve()
        if not logical or not target.is_relative_to(root):
            raise BuildError(f"Generated file {raw_path!r} is outside the work folder")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        written.append(logical)
    return sorted(written)


def icons_config(alias: str, source: str, cache_dir: Path) -> dict[str, Any]:
    return {
        "alias": alias,
        "source": source,
        "output_folder": f"{alias}/icons",
        "cache_dir": str(cache_dir),
    }


def serviceworker_config(alias: str, clean: bool, cache_dir: Path) -> dict[str, Any]:
    return {
        "alias": alias,
        "filename": f"{alias}-serviceworker.js",
        "clean": clean,
        "cache_dir": str(cache_dir),
    }
