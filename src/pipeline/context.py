# src/pipeline/context.py — v1
"""Explicit per-run context passed to every phase."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path

from webappbuilder.cache.content_cache import ContentCache
from webappbuilder.config.loader import config_hash
from webappbuilder.config.models import GlobalConfig
from webappbuilder.config.resolver import ConfigResolver
from webappbuilder.config.settings import Settings
from webappbuilder.images.codec import Codec, PillowCodec
from webappbuilder.images.similarity import SimilarityFn, ssim
from webappbuilder.pipeline.generators import ArtifactGenerator
from webappbuilder.text.minifiers import DefaultMinifier, Minifier
from webappbuilder.version import __version__


@dataclass
class BuildContext:
    """Everything one build needs; no module-level state is consulted."""

    settings: Settings
    config: GlobalConfig
    resolver: ConfigResolver
    cache: ContentCache
    codec: Codec
    minifier: Minifier
    similarity: SimilarityFn
    icon_generator: ArtifactGenerator | None = None
    serviceworker_generator: ArtifactGenerator | None = None
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    work_path: Path | None = None

    @classmethod
    def create(
        cls,
        settings: Settings,
        config: GlobalConfig,
        codec: Codec | None = None,
        minifier: Minifier | None = None,
        similarity: SimilarityFn | None = None,
        icon_generator: ArtifactGenerator | None = None,
        serviceworker_generator: ArtifactGenerator | None = None,
    ) -> BuildContext:
        """Wire default collaborators around a loaded configuration."""
        cache = ContentCache(
            cache_path=config.resolved_cache_path,
            tool_version=__version__,
            config_hash=config_hash(config),
            enabled=config.use_cache,
            required=settings.cache_required,
        )
        return cls(
            settings=settings,
            config=config,
            resolver=ConfigResolver(config),
            cache=cache,
            codec=codec or PillowCodec(),
            minifier=minifier or DefaultMinifier(),
            similarity=similarity or ssim,
            icon_generator=icon_generator,
            serviceworker_generator=serviceworker_generator,
        )

    def require_work_path(self) -> Path:
        if self.work_path is None:
            raise RuntimeError("Work folder not initialized")
        return self.work_path
