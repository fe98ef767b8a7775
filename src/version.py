# src/version.py — v1
"""Package version, also recorded in the cache envelope."""

__version__ = "0.4.0"
