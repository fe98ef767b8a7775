# src/cache/content_cache.py — v1
"""Persistent content-addressed cache for transformed artifacts.

Lifecycle per run:
  ensure()  validate the envelope, discard everything on mismatch
  get/put   called concurrently from worker threads
  seal()    prune artifacts the run never touched, write a fresh envelope

The envelope pins the folder hash, the tool version and the configuration
hash. Any difference means the cache is untrusted and rebuilt from empty.
"""

from __future__ import annotations

import logging
import shutil
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import ValidationError

from webappbuilder.cache import layout
from webappbuilder.cache.base_cache_store import BaseCacheStore
from webappbuilder.cache.file_store import FileCacheStore, atomic_write
from webappbuilder.cache.fingerprint import folder_hash, hash_bytes
from webappbuilder.cache.models import CacheEntry, CacheEnvelope, CacheKey
from webappbuilder.core.errors import CacheCollisionError, CacheUnavailableError

logger = logging.getLogger(__name__)

EnsureStatus = Literal["ok", "rebuilt"]


class ContentCache:
    """Cache of transform outputs keyed by source bytes and parameters."""

    def __init__(
        self,
        cache_path: Path,
        tool_version: str,
        config_hash: str,
        enabled: bool = True,
        required: bool = False,
        store: BaseCacheStore | None = None,
    ) -> None:
        self._path = Path(cache_path)
        self._tool_version = tool_version
        self._config_hash = config_hash
        self._enabled = enabled
        self._required = required
        self._store = store or FileCacheStore(layout.items_dir(self._path))
        self._available = True
        self._used: set[str] = set()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def available(self) -> bool:
        return self._available

    # --- Envelope ---

    def ensure(self) -> EnsureStatus:
        """Validate the cache, emptying it when it cannot be trusted.

        Raises:
            CacheUnavailableError: If the directory is unusable and the cache
                is required.
        """
        try:
            if self._enabled:
                stored = self._read_envelope()
                if stored is not None and stored == self._current_envelope():
                    layout.create_layout(self._path)
                    logger.info("Cache valid at %s", self._path)
                    return "ok"
                reason = "missing envelope" if stored is None else "envelope mismatch"
            else:
                reason = "caching disabled"
            logger.info("Rebuilding cache at %s (%s)", self._path, reason)
            self._reset()
            return "rebuilt"
        except OSError as e:
            self._mark_unavailable(e)
            return "rebuilt"

    def seal(self) -> CacheEnvelope | None:
        """Prune unused artifacts and write the envelope.

        With caching disabled the whole directory is removed instead.
        """
        if not self._enabled:
            shutil.rmtree(self._path, ignore_errors=True)
            logger.debug("Removed disabled cache at %s", self._path)
            return None
        if not self._available:
            return None

        try:
            removed = self._prune_unused()
            envelope = self._current_envelope()
            atomic_write(
                layout.envelope_path(self._path),
                envelope.model_dump_json(indent=2).encode("utf-8"),
            )
        except OSError as e:
            logger.warning("Failed to seal cache at %s: %s", self._path, e)
            return None
        logger.info("Cache sealed (%d unused item(s) removed)", removed)
        return envelope

    # --- Artifacts ---

    def get(self, key: CacheKey) -> bytes | None:
        """Return cached bytes for key, or None on a miss."""
        if not self._available:
            return None
        digest = key.digest
        try:
            found = self._store.get(digest)
        except OSError as e:
            logger.debug("Cache read failed for %s: %s", digest[:12], e)
            return None
        if found is None:
            return None
        with self._lock:
            self._used.add(digest)
        return found[1]

    def put(self, key: CacheKey, data: bytes, extension: str) -> CacheEntry | None:
        """Store bytes under key.

        Re-putting identical bytes is a no-op. Write failures are logged and
        return None; the caller keeps using its in-memory bytes.

        Raises:
            CacheCollisionError: If key already maps to different bytes.
        """
        if not self._available:
            return None
        digest = key.digest
        content_hash = hash_bytes(data)

        existing = self._store.get(digest)
        if existing is not None:
            entry, _ = existing
            if entry.content_hash != content_hash:
                raise CacheCollisionError(
                    f"Cache key {digest[:12]} already holds different bytes"
                )
            with self._lock:
                self._used.add(digest)
            return entry

        entry = CacheEntry(
            digest=digest,
            source_hash=key.source_hash,
            kind=key.kind,
            extension=extension.lstrip("."),
            size_bytes=len(data),
            content_hash=content_hash,
            created_at=datetime.now(timezone.utc),
            tool_version=self._tool_version,
        )
        try:
            self._store.put(entry, data)
        except OSError as e:
            logger.warning("Cache write failed for %s: %s", digest[:12], e)
            return None
        with self._lock:
            self._used.add(digest)
        return entry

    # --- Helpers ---

    def _current_envelope(self) -> CacheEnvelope:
        return CacheEnvelope(
            folder_hash=folder_hash(self._path, exclude=[layout.ENVELOPE_FILE]),
            tool_version=self._tool_version,
            config_hash=self._config_hash,
        )

    def _read_envelope(self) -> CacheEnvelope | None:
        path = layout.envelope_path(self._path)
        if not path.is_file():
            return None
        try:
            return CacheEnvelope.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValueError, ValidationError) as e:
            logger.warning("Corrupt cache envelope %s: %s", path, e)
            return None

    def _reset(self) -> None:
        if self._path.exists():
            shutil.rmtree(self._path)
        layout.create_layout(self._path)
        with self._lock:
            self._used.clear()

    def _prune_unused(self) -> int:
        with self._lock:
            used = set(self._used)
        removed = 0
        for digest in self._store.list_digests():
            if digest not in used:
                self._store.delete(digest)
                removed += 1
        return removed

    def _mark_unavailable(self, error: OSError) -> None:
        if self._required:
            raise CacheUnavailableError(
                f"Cache directory {self._path} is unusable: {error}"
            ) from error
        logger.warning(
            "Cache directory %s is unusable, continuing without cache: %s",
            self._path, error,
        )
        self._available = False
