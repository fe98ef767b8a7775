# src/text/processor.py — v1
"""Minify one text file in place, going through the content cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from webappbuilder.cache.content_cache import ContentCache
from webappbuilder.cache.fingerprint import hash_bytes
from webappbuilder.cache.models import CacheKey
from webappbuilder.config.models import EffectiveConfig
from webappbuilder.core.errors import MinifierError
from webappbuilder.text.minifiers import Minifier, kind_for_extension

logger = logging.getLogger(__name__)


@dataclass
class TextResult:
    logical_path: str
    bytes_before: int
    bytes_after: int
    cache_hit: bool

    @property
    def bytes_saved(self) -> int:
        return self.bytes_before - self.bytes_after


class TextProcessor:
    def __init__(self, minifier: Minifier, cache: ContentCache) -> None:
        self._minifier = minifier
        self._cache = cache

    def process(self, path: Path, logical_path: str, config: EffectiveConfig) -> TextResult:
        """Minify path and overwrite it.

        Raises:
            MinifierError: If the file kind is unknown or the minifier fails.
        """
        extension = PurePosixPath(logical_path).suffix.lstrip(".").lower()
        kind = kind_for_extension(extension)
        if kind is None:
            raise MinifierError(f"Not a text file: {logical_path}")

        data = path.read_bytes()
        options = config.files.direct_options.get(kind, {})
        key = CacheKey(
            source_hash=hash_bytes(data),
            kind="text",
            params={"kind": kind, "options": options},
        )

        minified = self._cache.get(key)
        cache_hit = minified is not None
        if minified is None:
            minified = self._minifier.minify(kind, data, options)
            self._cache.put(key, minified, extension)

        path.write_bytes(minified)
        return TextResult(
            logical_path=logical_path,
            bytes_before=len(data),
            bytes_after=len(minified),
            cache_hit=cache_hit,
        )
