# src/cache/layout.py — v1
"""Cache directory structure definition.

    <cache>/
        cache-hash.json         envelope
        items/                  <digest>.<ext> artifacts + <digest>.meta.json sidecars
        icons/                  icon generator scratch space
        icons-injectables/      icon markup snippets
        serviceworker/          service worker generator scratch space
"""

from __future__ import annotations

from pathlib import Path

ENVELOPE_FILE = "cache-hash.json"
ITEMS_DIR = "items"
ICONS_DIR = "icons"
ICONS_INJECTABLES_DIR = "icons-injectables"
SERVICEWORKER_DIR = "serviceworker"

LAYOUT_DIRS = (ITEMS_DIR, ICONS_DIR, ICONS_INJECTABLES_DIR, SERVICEWORKER_DIR)


def envelope_path(cache_path: Path) -> Path:
    return cache_path / ENVELOPE_FILE


def items_dir(cache_path: Path) -> Path:
    return cache_path / ITEMS_DIR


def icons_dir(cache_path: Path) -> Path:
    return cache_path / ICONS_DIR


def serviceworker_dir(cache_path: Path) -> Path:
    return cache_path / SERVICEWORKER_DIR


def create_layout(cache_path: Path) -> None:
    """Create the cache root and all subfolders."""
    for name in LAYOUT_DIRS:
        (cache_path / name).mkdir(parents=True, exist_ok=True)
