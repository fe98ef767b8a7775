# src/cache/models.py — v1
"""Cache domain models: CacheKey, CacheEntry, CacheEnvelope."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from webappbuilder.cache.fingerprint import canonical_json, hash_bytes

ArtifactKind = Literal["image", "text"]


class CacheKey(BaseModel):
    """Identity of one transform: source content plus every output-affecting option."""

    model_config = ConfigDict(frozen=True)

    source_hash: str
    kind: ArtifactKind
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def canonical_params(self) -> str:
        return canonical_json(self.params)

    @property
    def digest(self) -> str:
        """Artifact identifier: SHA-256 over source hash, kind and params."""
        material = f"{self.source_hash}\n{self.kind}\n{self.canonical_params}"
        return hash_bytes(material.encode("utf-8"))


class CacheEntry(BaseModel):
    """Metadata sidecar for one stored artifact."""

    model_config = ConfigDict(frozen=True)

    digest: str
    source_hash: str
    kind: ArtifactKind
    extension: str
    size_bytes: int
    content_hash: str
    created_at: datetime
    tool_version: str


class CacheEnvelope(BaseModel):
    """Integrity record guarding the whole cache directory."""

    folder_hash: str
    tool_version: str
    config_hash: str
