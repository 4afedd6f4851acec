# src/main.py — v3
"""CLI entry point: curriculum, syllabus, roadmap, dependencies commands.

Usage:
    acadimport curriculum <file> [--validate-only]
    acadimport syllabus <file> [--validate-only]
    acadimport roadmap <file> [--overwrite-metadata] [--prune-orphans]
    acadimport dependencies <program_code>

Input files hold the raw text to import. With the default pass-through
extractor the text must already be the JSON document (markdown fences
are tolerated). The result payload is printed to stdout as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from acadimport.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_USAGE

    from acadimport.config.settings import ConfigurationError

    try:
        settings = _load_cli_settings(args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILED


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="acadimport",
        description=f"acadimport v{__version__}: academic content import and reconcile",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--store", type=Path, default=None,
        help="JSON record store file (overrides RECORD_STORE_*)",
    )
    parser.add_argument(
        "--no-cache", action="store_true",
        help="Disable the extraction cache for this run",
    )

    subparsers = parser.add_subparsers(dest="command")

    for name, help_text, func in (
        ("curriculum", "Import a program curriculum", _cmd_curriculum),
        ("syllabus", "Import one syllabus version", _cmd_syllabus),
    ):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("file", type=Path, help="File with the raw text to import")
        p.add_argument(
            "--validate-only", action="store_true",
            help="Extract and validate without writing any record",
        )
        p.set_defaults(func=func)

    p_roadmap = subparsers.add_parser("roadmap", help="Import a class roadmap")
    p_roadmap.add_argument("file", type=Path, help="File with the raw text to import")
    p_roadmap.add_argument(
        "--overwrite-metadata", action="store_true", default=None,
        help="Overwrite metadata of an existing class",
    )
    p_roadmap.add_argument(
        "--prune-orphans", action="store_true", default=None,
        help="Delete stored nodes missing from the imported tree",
    )
    p_roadmap.set_defaults(func=_cmd_roadmap)

    p_deps = subparsers.add_parser(
        "dependencies", help="Build skill dependencies for a program",
    )
    p_deps.add_argument("program_code", help="Program code")
    p_deps.set_defaults(func=_cmd_dependencies)

    return parser


def _load_cli_settings(args: argparse.Namespace):
    from acadimport.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.store is not None:
        overrides["record_store_backend"] = "json"
        overrides["record_store_path"] = args.store
    if args.no_cache:
        overrides["cache_enabled"] = False
    settings = load_settings(**overrides)
    # Records must survive between CLI invocations
    if settings.record_store_backend == "memory":
        settings = settings.model_copy(update={"record_store_backend": "json"})
    return settings


def _service(settings):
    from acadimport.api.facade import create_import_service

    return create_import_service(settings)


def _read_input(path: Path) -> str | None:
    if not path.is_file():
        logger.error("File not found: %s", path)
        return None
    return path.read_text(encoding="utf-8")


async def _cmd_curriculum(args: argparse.Namespace, settings) -> int:
    raw_text = _read_input(args.file)
    if raw_text is None:
        return EXIT_FAILED
    service = _service(settings)
    if args.validate_only:
        result = await service.validate_curriculum(raw_text)
    else:
        result = await service.import_curriculum(raw_text)
    return _emit(result.to_payload())


async def _cmd_syllabus(args: argparse.Namespace, settings) -> int:
    raw_text = _read_input(args.file)
    if raw_text is None:
        return EXIT_FAILED
    service = _service(settings)
    if args.validate_only:
        result = await service.validate_syllabus(raw_text)
    else:
        result = await service.import_syllabus(raw_text)
    return _emit(result.to_payload())


async def _cmd_roadmap(args: argparse.Namespace, settings) -> int:
    raw_text = _read_input(args.file)
    if raw_text is None:
        return EXIT_FAILED
    result = await _service(settings).import_roadmap(
        raw_text,
        overwrite_metadata=args.overwrite_metadata,
        prune_orphans=args.prune_orphans,
    )
    return _emit(result.to_payload())


async def _cmd_dependencies(args: argparse.Namespace, settings) -> int:
    result = await _service(settings).analyze_dependencies(args.program_code)
    return _emit(result.to_payload())


def _emit(payload: dict) -> int:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
    return EXIT_OK if payload.get("success") else EXIT_FAILED


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from acadimport.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
