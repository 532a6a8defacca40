# src/main.py — v1
"""CLI entry point: search, analyze, health commands.

Usage:
    reelsearch search <text> --content <records.json> [options]
    reelsearch analyze <image> [--faces]
    reelsearch health

Every command prints JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from reelsearch.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def cli() -> None:
    """Console-script wrapper."""
    sys.exit(main())


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="reelsearch",
        description=f"reelsearch v{__version__}: AI-assisted media search",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- search ---
    p_search = subparsers.add_parser("search", help="Search a content library")
    p_search.add_argument("text", help="Free-text query")
    p_search.add_argument(
        "-c", "--content", type=Path, required=True,
        help="JSON file with content records",
    )
    p_search.add_argument("--page", type=int, default=1)
    p_search.add_argument("--page-size", type=int, default=None)
    p_search.add_argument(
        "--content-type", action="append", default=[],
        help="Restrict to a content type (repeatable)",
    )
    p_search.add_argument(
        "--person", action="append", default=[],
        help="Require a tagged person (repeatable)",
    )
    p_search.add_argument(
        "--tag", action="append", default=[],
        help="Require an AI tag (repeatable)",
    )
    p_search.add_argument(
        "--preferred", default=None,
        help="Preferred provider: openai, anthropic, google, ollama",
    )
    p_search.set_defaults(func=_cmd_search)

    # --- analyze ---
    p_analyze = subparsers.add_parser("analyze", help="Analyze a single image")
    p_analyze.add_argument("image", type=Path, help="Path to image")
    p_analyze.add_argument(
        "--faces", action="store_true", help="Run face detection instead of tagging",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- health ---
    p_health = subparsers.add_parser("health", help="Probe every configured provider once")
    p_health.set_defaults(func=_cmd_health)

    return parser


async def _cmd_search(args: argparse.Namespace) -> int:
    """Run one search against a JSON content file."""
    from reelsearch.api.facade import SearchApp
    from reelsearch.api.models import ErrorResponse
    from reelsearch.search.content_store import InMemoryContentStore

    if not args.content.exists():
        logger.error("File not found: %s", args.content)
        return 1

    store = InMemoryContentStore.from_json(args.content)
    pagination: dict[str, Any] = {"page": args.page}
    if args.page_size is not None:
        pagination["page_size"] = args.page_size
    payload: dict[str, Any] = {
        "query": args.text,
        "filters": {
            "content_types": args.content_type,
            "people": args.person,
            "tags": args.tag,
        },
        "pagination": pagination,
        "preferredProvider": args.preferred,
    }

    async with SearchApp.from_settings(content_store=store) as app:
        await app.monitor.check_all()
        response = await app.search(payload)

    _print_json(response.to_wire())
    return 1 if isinstance(response, ErrorResponse) else 0


async def _cmd_analyze(args: argparse.Namespace) -> int:
    """Analyze one image with provider failover."""
    from reelsearch.api.facade import SearchApp
    from reelsearch.core.errors import ReelSearchError

    image_path: Path = args.image
    if not image_path.exists():
        logger.error("File not found: %s", image_path)
        return 1

    app = SearchApp.from_settings()
    await app.monitor.check_all()
    try:
        result = await app.analyze_image(image_path.read_bytes(), faces=args.faces)
    except ReelSearchError as exc:
        _print_json({"error": {"code": exc.code, "message": exc.public_message}})
        return 1
    finally:
        await app.stop()

    _print_json(result.model_dump(mode="json"))
    return 0


async def _cmd_health(args: argparse.Namespace) -> int:
    """Probe providers once and print their health records."""
    from reelsearch.api.facade import SearchApp

    app = SearchApp.from_settings()
    await app.monitor.check_all()
    await app.stop()
    _print_json({
        name: record.model_dump(mode="json") for name, record in app.health().items()
    })
    return 0


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from reelsearch.config.settings import Settings
    from reelsearch.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
