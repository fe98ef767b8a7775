# src/cache/fingerprint.py — v1
"""Content hashing and canonical serialization for cache keys.

Three levels are used:
  - hash_bytes / hash_file: SHA-256 of raw source bytes.
  - canonical_json: stable text form of transform parameters.
  - folder_hash: SHA-256 over a whole directory tree, used by the envelope.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

_CHUNK_SIZE = 1024 * 1024


def hash_bytes(data: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def hash_file(path: Path) -> str:
    """SHA-256 hex digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _canonical_value(value: Any) -> Any:
    if isinstance(value, bool) or value is None or isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        # Fixed precision
        return f"{value:.6f}"
    if isinstance(value, Mapping):
        return {str(k): _canonical_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical_value(v) for v in value]
    if isinstance(value, Path):
        return value.as_posix()
    raise TypeError(f"Cannot serialize {type(value).__name__} into a cache key")


def canonical_json(value: Any) -> str:
    """Serialize with sorted keys, compact separators and fixed float format."""
    return json.dumps(
        _canonical_value(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def hash_canonical(value: Any) -> str:
    return hash_bytes(canonical_json(value).encode("utf-8"))


def folder_hash(root: Path, exclude: Iterable[str] = ()) -> str:
    """Hash every file and directory under root.

    Entries are visited in sorted relative-path order. Top-level names in
    ``exclude`` are skipped. A missing root hashes like an empty one.
    """
    excluded = set(exclude)
    digest = hashlib.sha256()
    if not root.is_dir():
        return digest.hexdigest()

    for path in sorted(root.rglob("*"), key=lambda p: p.relative_to(root).as_posix()):
        rel = path.relative_to(root)
        if rel.parts[0] in excluded:
            continue
        if path.is_dir():
            digest.update(f"d:{rel.as_posix()}\n".encode("utf-8"))
        elif path.is_file():
            digest.update(f"f:{rel.as_posix()}:{hash_file(path)}\n".encode("utf-8"))
    return digest.hexdigest()
