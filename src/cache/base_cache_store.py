# src/cache/base_cache_store.py — v1
"""Abstract artifact store interface.

Stores are called from worker threads, so every method is synchronous and
must tolerate concurrent calls for different digests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from webappbuilder.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for content-addressed artifact storage."""

    @abstractmethod
    def get(self, digest: str) -> tuple[CacheEntry, bytes] | None:
        """Return the entry and its bytes, or None if absent or unreadable."""

    @abstractmethod
    def put(self, entry: CacheEntry, data: bytes) -> None:
        """Store an artifact atomically."""

    @abstractmethod
    def delete(self, digest: str) -> None:
        """Remove an artifact and its metadata."""

    @abstractmethod
    def list_digests(self) -> list[str]:
        """List digests of all stored artifacts."""
