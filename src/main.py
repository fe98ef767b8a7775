# src/main.py — v1
"""CLI entry point: build and config commands.

Usage:
    webappbuilder build [root] [options]
    webappbuilder config <path> [root]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from webappbuilder.core.errors import BuildError
from webappbuilder.version import __version__

if TYPE_CHECKING:
    from webappbuilder.config.settings import Settings

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except (BuildError, ValueError) as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 1
    _setup_logging(settings)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="webappbuilder",
        description=f"webappbuilder v{__version__}: optimize a static web app for production",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- build ---
    p_build = subparsers.add_parser("build", help="Build the web app")
    p_build.add_argument(
        "root", type=Path, nargs="?", default=Path("."),
        help="Project root folder (default: current directory)",
    )
    p_build.add_argument(
        "-i", "--input", dest="input_path", default=None,
        help="Input folder, relative to the root (guessed if omitted)",
    )
    p_build.add_argument(
        "-o", "--output", dest="output_path", default=None,
        help="Output folder, relative to the root (derived from input if omitted)",
    )
    p_build.add_argument(
        "--config-name", default=None,
        help="Config file base name (default: ewabconfig)",
    )
    p_build.add_argument(
        "--no-cache", action="store_true",
        help="Do not keep a cache between builds",
    )
    p_build.add_argument(
        "--ignore-errors", action="store_true",
        help="Downgrade fatal per-phase errors to warnings",
    )
    p_build.set_defaults(func=_cmd_build)

    # --- config ---
    p_config = subparsers.add_parser(
        "config", help="Print the effective configuration of one file",
    )
    p_config.add_argument("path", help="File path relative to the input folder")
    p_config.add_argument(
        "root", type=Path, nargs="?", default=Path("."),
        help="Project root folder (default: current directory)",
    )
    p_config.add_argument(
        "--config-name", default=None,
        help="Config file base name (default: ewabconfig)",
    )
    p_config.set_defaults(func=_cmd_config)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    from webappbuilder.config.settings import load_settings

    overrides: dict[str, Any] = {}
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    if getattr(args, "ignore_errors", False):
        overrides["ignore_errors"] = True
    if getattr(args, "config_name", None):
        overrides["config_name"] = args.config_name
    return load_settings(**overrides)


async def _cmd_build(args: argparse.Namespace, settings: Settings) -> int:
    """Run a full build."""
    from webappbuilder.config.loader import load_global_config
    from webappbuilder.pipeline.context import BuildContext
    from webappbuilder.pipeline.driver import PipelineDriver

    overrides: dict[str, Any] = {}
    if args.input_path:
        overrides["input_path"] = args.input_path
    if args.output_path:
        overrides["output_path"] = args.output_path
    if args.no_cache:
        overrides["use_cache"] = False

    config = load_global_config(args.root, settings.config_name, overrides)
    ctx = BuildContext.create(settings, config)
    result = await PipelineDriver(ctx).run()

    print("\nBuild complete:")
    print(f"  Output:       {result.output_path}")
    print(f"  Cache:        {result.cache_status}")
    for report in result.phases:
        print(
            f"  {report.phase:<13} {report.succeeded}/{report.total} ok, "
            f"{report.failed} failed, {report.bytes_saved} bytes saved"
        )
    print(f"  Duration:     {result.duration_ms / 1000:.1f}s")
    return 0


async def _cmd_config(args: argparse.Namespace, settings: Settings) -> int:
    """Print the effective configuration of one file as JSON."""
    from webappbuilder.config.loader import load_global_config
    from webappbuilder.config.resolver import ConfigResolver

    config = load_global_config(args.root, settings.config_name)
    effective = ConfigResolver(config).resolve(args.path)
    print(json.dumps(effective.model_dump(mode="json", by_alias=True), indent=2))
    return 0


def _setup_logging(settings: Settings) -> None:
    from webappbuilder.logging.logger import setup_logging

    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
