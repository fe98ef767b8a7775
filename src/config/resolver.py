# src/config/resolver.py — v1
"""Per-file effective configuration.

Resolution starts from the global image and text policies and applies every
override rule whose glob matches the path, in declaration order. Object
leaves merge recursively, lists are replaced, ``remove`` is OR'd.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from webappbuilder.config.models import EffectiveConfig, GlobalConfig, OverrideRule
from webappbuilder.core.errors import ConfigurationError
from webappbuilder.matching.path_matcher import matches, normalize_logical_path

logger = logging.getLogger(__name__)


def deep_merge(base: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new dict with patch merged over base; inputs are not mutated."""
    merged: dict[str, Any] = {k: copy.deepcopy(v) for k, v in base.items()}
    for key, value in patch.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve(
    global_config: GlobalConfig,
    rules: Sequence[OverrideRule],
    path: str,
) -> EffectiveConfig:
    """Compute the effective configuration for one logical path.

    Raises:
        ConfigurationError: If the matching rules combine into invalid settings.
    """
    logical = normalize_logical_path(path)
    merged: dict[str, Any] = {
        "images": global_config.images.model_dump(),
        "files": global_config.files.model_dump(),
    }
    remove = False
    for rule in rules:
        if not matches(rule.pattern, logical):
            continue
        merged = deep_merge(merged, rule.settings.as_update())
        remove = remove or rule.remove

    try:
        return EffectiveConfig.model_validate(
            {"alias": global_config.alias, **merged, "remove": remove}
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration for {logical}: {e}") from e


class ConfigResolver:
    """Resolver bound to one GlobalConfig, memoized by logical path."""

    def __init__(self, config: GlobalConfig) -> None:
        self._config = config
        self._memo: dict[str, EffectiveConfig] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> GlobalConfig:
        return self._config

    @property
    def rules(self) -> list[OverrideRule]:
        return self._config.file_exceptions

    def resolve(self, path: str) -> EffectiveConfig:
        logical = normalize_logical_path(path)
        with self._lock:
            cached = self._memo.get(logical)
        if cached is not None:
            return cached
        effective = resolve(self._config, self.rules, logical)
        with self._lock:
            self._memo[logical] = effective
        return effective

    def unmatched_rules(
        self,
        paths: Iterable[str],
        ignore: Sequence[OverrideRule] = (),
    ) -> list[OverrideRule]:
        """Return rules whose pattern matches none of the given paths."""
        logical_paths = [normalize_logical_path(p) for p in paths]
        return [
            rule for rule in self.rules
            if rule not in ignore
            and not any(matches(rule.pattern, p) for p in logical_paths)
        ]
