# src/matching/path_matcher.py — v1
"""Shell-glob matching on POSIX-style logical paths.

Supported syntax:
  *        any run of characters within one path segment
  **       zero or more whole segments (only as a full segment)
  ?        one character within a segment
  [abc]    character class, [!abc] / [^abc] negated
  {a,b}    brace alternatives (nestable), {1..3} numeric ranges
  @(a|b)   extglob groups, also ?(..) +(..) *(..) !(..)

Dotfiles are matched by wildcards. Patterns are compiled once and memoized.
"""

from __future__ import annotations

import re
from functools import lru_cache

from webappbuilder.core.errors import ConfigurationError

_EXTGLOB_PREFIXES = "@?+*!"
_MAX_BRACE_EXPANSION = 4096


class PatternError(ConfigurationError):
    """Raised when a glob pattern cannot be parsed."""


def normalize_logical_path(path: str) -> str:
    """Return a forward-slash path without leading './' or '/' and no empty segments."""
    path = path.replace("\\", "/")
    parts = [p for p in path.split("/") if p not in ("", ".")]
    return "/".join(parts)


def matches(pattern: str, path: str) -> bool:
    """Return True if the logical path matches the glob pattern."""
    return compile_pattern(pattern).match(normalize_logical_path(path)) is not None


def validate_pattern(pattern: str) -> None:
    """Raise PatternError if the pattern is not a valid glob."""
    compile_pattern(pattern)


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regular expression."""
    if not isinstance(pattern, str) or not pattern.strip():
        raise PatternError("Glob pattern must be a non-empty string")

    normalized = _normalize_pattern(pattern)
    alternatives = expand_braces(normalized)
    regexes = [_translate(alt, pattern) for alt in alternatives]
    try:
        return re.compile("^(?:" + "|".join(regexes) + ")$")
    except re.error as e:
        raise PatternError(f"Invalid glob pattern {pattern!r}: {e}") from e


def _normalize_pattern(pattern: str) -> str:
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    pattern = pattern.lstrip("/")
    return re.sub(r"/{2,}", "/", pattern)


# --- Brace expansion ---


def expand_braces(pattern: str) -> list[str]:
    """Expand {a,b} and {1..3} groups into plain patterns.

    A brace group without a top-level comma or range is kept literally.
    """
    results: list[str] = []
    pending = [pattern]
    while pending:
        current = pending.pop()
        group = _find_brace_group(current)
        if group is None:
            results.append(current)
            continue
        start, end, options = group
        prefix, suffix = current[:start], current[end + 1 :]
        for option in reversed(options):
            pending.append(prefix + option + suffix)
        if len(pending) + len(results) > _MAX_BRACE_EXPANSION:
            raise PatternError(f"Brace expansion too large in {pattern!r}")
    return results


def _find_brace_group(pattern: str) -> tuple[int, int, list[str]] | None:
    """Locate the first expandable brace group.

    Returns (start, end, options) or None when nothing is left to expand.
    """
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(pattern, i) + 1
            continue
        if ch == "{":
            end = _matching_close(pattern, i, "{", "}")
            body = pattern[i + 1 : end]
            options = _split_top_level(body, ",")
            if len(options) > 1:
                return i, end, options
            numeric = re.fullmatch(r"(-?\d+)\.\.(-?\d+)", body)
            if numeric:
                lo, hi = int(numeric.group(1)), int(numeric.group(2))
                step = 1 if hi >= lo else -1
                return i, end, [str(n) for n in range(lo, hi + step, step)]
            i = end + 1
            continue
        if ch == "}":
            raise PatternError(f"Unbalanced '}}' in glob pattern {pattern!r}")
        i += 1
    return None


def _matching_close(pattern: str, start: int, opener: str, closer: str) -> int:
    depth = 0
    i = start
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(pattern, i) + 1
            continue
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    raise PatternError(f"Unbalanced '{opener}' in glob pattern {pattern!r}")


def _split_top_level(body: str, separator: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            current.append(body[i : i + 2])
            i += 2
            continue
        if ch in "{(":
            depth += 1
        elif ch in "})":
            depth -= 1
        if ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    parts.append("".join(current))
    return parts


def _skip_class(pattern: str, start: int) -> int:
    """Return the index of the ']' closing the class opened at start."""
    i = start + 1
    if i < len(pattern) and pattern[i] in "!^":
        i += 1
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern):
        if pattern[i] == "\\":
            i += 2
            continue
        if pattern[i] == "]":
            return i
        i += 1
    raise PatternError(f"Unbalanced '[' in glob pattern {pattern!r}")


# --- Translation ---


def _translate(pattern: str, original: str) -> str:
    segments = pattern.split("/") if not _has_grouped_slash(pattern) else None
    if segments is None:
        return _translate_segment(pattern, original)

    segments = [
        seg for idx, seg in enumerate(segments)
        if not (seg == "**" and idx > 0 and segments[idx - 1] == "**")
    ]
    out: list[str] = []
    last = len(segments) - 1
    for idx, segment in enumerate(segments):
        if segment == "**":
            if idx == last:
                # Trailing ** swallows the rest, including nothing after a '/'
                if out:
                    out[-1] = out[-1][: -len("/")] if out[-1].endswith("/") else out[-1]
                    out.append("(?:/.*)?")
                else:
                    out.append(".*")
            else:
                out.append("(?:[^/]*/)*")
            continue
        piece = _translate_segment(segment, original)
        out.append(piece + ("/" if idx != last else ""))
    return "".join(out)


def _has_grouped_slash(pattern: str) -> bool:
    """True if a '/' appears inside an extglob group, which disables segment splitting."""
    depth = 0
    for ch in pattern:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "/" and depth > 0:
            return True
    return False


def _translate_segment(segment: str, original: str) -> str:
    out: list[str] = []
    i = 0
    n = len(segment)
    while i < n:
        ch = segment[i]
        if ch in _EXTGLOB_PREFIXES and i + 1 < n and segment[i + 1] == "(":
            end = _matching_close(segment, i + 1, "(", ")")
            alternatives = _split_top_level(segment[i + 2 : end], "|")
            group = "|".join(_translate_segment(alt, original) for alt in alternatives)
            if ch == "@":
                out.append(f"(?:{group})")
            elif ch == "?":
                out.append(f"(?:{group})?")
            elif ch == "+":
                out.append(f"(?:{group})+")
            elif ch == "*":
                out.append(f"(?:{group})*")
            else:
                rest = _translate_segment(segment[end + 1 :], original)
                out.append(f"(?:(?!(?:{group}){rest}(?:/|$))[^/]*?){rest}")
                break
            i = end + 1
            continue
        if ch == "\\":
            if i + 1 < n:
                out.append(re.escape(segment[i + 1]))
                i += 2
            else:
                out.append(re.escape("\\"))
                i += 1
            continue
        if ch == "*":
            while i < n and segment[i] == "*":
                i += 1
            out.append("[^/]*")
            continue
        if ch == "?":
            out.append("[^/]")
            i += 1
            continue
        if ch == "[":
            end = _skip_class(segment, i)
            body = segment[i + 1 : end]
            negate = body[:1] in ("!", "^")
            if negate:
                body = body[1:]
            members = _class_members(body)
            out.append(f"[^/{members}]" if negate else f"(?!/)[{members}]")
            i = end + 1
            continue
        if ch == ")":
            raise PatternError(f"Unexpected {ch!r} in glob pattern {original!r}")
        out.append(re.escape(ch))
        i += 1
    return "".join(out)


def _class_members(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            out.append(re.escape(body[i + 1]))
            i += 2
            continue
        out.append(ch if ch == "-" else re.escape(ch))
        i += 1
    return "".join(out)
