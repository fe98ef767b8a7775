# src/__init__.py — v1
"""webappbuilder: build a deployable web-app bundle from a source tree."""

from webappbuilder.version import __version__

__all__ = ["__version__"]
