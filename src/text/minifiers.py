# src/text/minifiers.py — v1
"""Text minification per content kind.

Kinds and their default backends:
  markup      minify-html
  stylesheet  rcssmin
  script      rjsmin
  data        json (compact re-serialization)
  vector      regex whitespace/comment stripping
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

import minify_html
import rcssmin
import rjsmin

from webappbuilder.core.errors import MinifierError

TEXT_KINDS: dict[str, str] = {
    "html": "markup",
    "htm": "markup",
    "css": "stylesheet",
    "js": "script",
    "mjs": "script",
    "cjs": "script",
    "json": "data",
    "svg": "vector",
}

MARKUP_DEFAULTS: dict[str, Any] = {"minify_css": True, "minify_js": True}

_SVG_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_SVG_BETWEEN_TAGS_RE = re.compile(r">\s+<")
_SVG_WHITESPACE_RE = re.compile(r"\s{2,}")


def kind_for_extension(extension: str) -> str | None:
    return TEXT_KINDS.get(extension.lower().lstrip("."))


class Minifier(Protocol):
    def minify(self, kind: str, data: bytes, options: dict[str, Any]) -> bytes: ...


class DefaultMinifier:
    """Minifier dispatching to one backend per kind."""

    def minify(self, kind: str, data: bytes, options: dict[str, Any]) -> bytes:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MinifierError(f"Not UTF-8 text: {e}") from e

        handler = getattr(self, f"_minify_{kind}", None)
        if handler is None:
            raise MinifierError(f"Unknown text kind: {kind!r}")
        try:
            return handler(text, options).encode("utf-8")
        except MinifierError:
            raise
        except Exception as e:
            raise MinifierError(f"{kind} minifier failed: {e}") from e

    def _minify_markup(self, text: str, options: dict[str, Any]) -> str:
        return minify_html.minify(text, **{**MARKUP_DEFAULTS, **options})

    def _minify_stylesheet(self, text: str, options: dict[str, Any]) -> str:
        return rcssmin.cssmin(text, keep_bang_comments=options.get("keep_bang_comments", False))

    def _minify_script(self, text: str, options: dict[str, Any]) -> str:
        return rjsmin.jsmin(text, keep_bang_comments=options.get("keep_bang_comments", False))

    def _minify_data(self, text: str, options: dict[str, Any]) -> str:
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise MinifierError(f"Invalid JSON: {e}") from e
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=options.get("ensure_ascii", False),
        )

    def _minify_vector(self, text: str, options: dict[str, Any]) -> str:
        if not options.get("keep_comments", False):
            text = _SVG_COMMENT_RE.sub("", text)
        text = _SVG_BETWEEN_TAGS_RE.sub("><", text)
        text = _SVG_WHITESPACE_RE.sub(" ", text)
        return text.strip()
