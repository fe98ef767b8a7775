# src/cache/file_store.py — v1
"""File-based artifact store.

Each artifact is written as ``<digest>.<ext>`` with a ``<digest>.meta.json``
metadata sidecar beside it. The sidecar is written last, so its presence
marks a committed artifact. Both files go through a temp file and
``os.replace``.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from webappbuilder.cache.base_cache_store import BaseCacheStore
from webappbuilder.cache.fingerprint import hash_bytes
from webappbuilder.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SIDECAR_SUFFIX = ".meta.json"


def atomic_write(path: Path, data: bytes) -> None:
    """Write bytes to path via a sibling temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileCacheStore(BaseCacheStore):
    """Artifact store backed by a flat directory."""

    def __init__(self, items_root: Path) -> None:
        self._root = Path(items_root)

    @property
    def root(self) -> Path:
        return self._root

    def get(self, digest: str) -> tuple[CacheEntry, bytes] | None:
        sidecar = self._sidecar_path(digest)
        if not sidecar.is_file():
            return None
        try:
            entry = CacheEntry.model_validate_json(sidecar.read_text(encoding="utf-8"))
            data = self._artifact_path(digest, entry.extension).read_bytes()
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Dropping unreadable cache entry %s: %s", digest[:12], e)
            self.delete(digest)
            return None

        if len(data) != entry.size_bytes or hash_bytes(data) != entry.content_hash:
            logger.warning("Dropping corrupted cache entry %s", digest[:12])
            self.delete(digest)
            return None
        return entry, data

    def put(self, entry: CacheEntry, data: bytes) -> None:
        atomic_write(self._artifact_path(entry.digest, entry.extension), data)
        atomic_write(
            self._sidecar_path(entry.digest),
            entry.model_dump_json(indent=2).encode("utf-8"),
        )

    def delete(self, digest: str) -> None:
        for path in self._root.glob(f"{digest}.*"):
            path.unlink(missing_ok=True)

    def list_digests(self) -> list[str]:
        if not self._root.is_dir():
            return []
        digests = {
            path.name.split(".", 1)[0]
            for path in self._root.iterdir()
            if path.is_file() and not path.name.startswith(".")
        }
        return sorted(digests)

    def _artifact_path(self, digest: str, extension: str) -> Path:
        return self._root / f"{digest}.{extension.lstrip('.')}"

    def _sidecar_path(self, digest: str) -> Path:
        return self._root / f"{digest}{_SIDECAR_SUFFIX}"
