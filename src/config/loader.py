# src/config/loader.py — v1
"""Load the project configuration from its root folder.

The config file is ``.<config_name>.json`` or ``.<config_name>`` in the
project root; it is optional. Call-site overrides are merged over the file
contents, and built-in exceptions are appended after user rules.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from webappbuilder.cache.fingerprint import hash_canonical
from webappbuilder.config.models import GlobalConfig, OverrideRule
from webappbuilder.config.resolver import deep_merge
from webappbuilder.core.errors import ConfigurationError, InputNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "ewabconfig"

# Paths that differ between machines do not invalidate the cache
_HASH_EXCLUDED_FIELDS = {"root_path", "input_path", "output_path", "cache_path"}


def config_file_candidates(root: Path, config_name: str) -> list[Path]:
    return [root / f".{config_name}.json", root / f".{config_name}"]


def find_config_file(root: Path, config_name: str = DEFAULT_CONFIG_NAME) -> Path | None:
    for candidate in config_file_candidates(root, config_name):
        if candidate.is_file():
            return candidate
    return None


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a JSON config file into a dict.

    Raises:
        ConfigurationError: If the file is unreadable or not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return data


def builtin_exceptions(alias: str) -> list[OverrideRule]:
    """Rules every project gets: generated icons and service workers are left as-is."""
    return [
        OverrideRule(
            pattern=f"{alias}/icons/**/*",
            settings={"images": {"minify": False}},
        ),
        OverrideRule(
            pattern=f"**/@({alias}-serviceworker.js|workbox-*.js)",
            settings={"files": {"minify": False}},
        ),
    ]


def load_global_config(
    root_path: str | Path,
    config_name: str = DEFAULT_CONFIG_NAME,
    overrides: dict[str, Any] | None = None,
) -> GlobalConfig:
    """Load, merge and validate the project configuration.

    Args:
        root_path: Project root folder.
        config_name: Base name of the config file (without dot or extension).
        overrides: Field-level overrides keyed by snake_case field names.

    Returns:
        Validated GlobalConfig with built-in exceptions appended.

    Raises:
        InputNotFoundError: If the root folder does not exist.
        ConfigurationError: If the configuration is invalid.
    """
    root = Path(root_path).expanduser().resolve()
    if not root.is_dir():
        raise InputNotFoundError(f"Project root {root} does not exist")

    config_file = find_config_file(root, config_name)
    data: dict[str, Any] = {}
    if config_file is not None:
        logger.info("Loading configuration from %s", config_file)
        data = read_config_file(config_file)
    else:
        logger.debug("No config file found in %s, using defaults", root)

    for key in ("rootPath", "root_path"):
        data.pop(key, None)

    try:
        config = GlobalConfig.model_validate({**data, "root_path": root})
        if overrides:
            config = GlobalConfig.model_validate(
                deep_merge(config.model_dump(), overrides)
            )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    return config.model_copy(
        update={
            "file_exceptions": [
                *config.file_exceptions,
                *builtin_exceptions(config.alias),
            ]
        }
    )


def config_hash(config: GlobalConfig) -> str:
    """SHA-256 of the canonical JSON form of the machine-independent fields."""
    return hash_canonical(
        config.model_dump(mode="json", exclude=_HASH_EXCLUDED_FIELDS)
    )
