from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog

from linkprobe.domain.entities import LinkDiagnostic, SourceDocument
from linkprobe.infrastructure.config import AppConfig, load_config
from linkprobe.infrastructure.logging.setup import configure_logging
from linkprobe.infrastructure.scanning.url_scanner import SUPPORTED_SUFFIXES
from linkprobe.interfaces.composition import validation_context
from linkprobe.interfaces.presenter import render_diagnostic

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_BROKEN_LINKS = 1
EXIT_INPUT_ERROR = 2


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="linkprobe",
        description="Report broken asset/CDN links found in source files.",
    )

    parser.add_argument(
        "paths",
        nargs="+",
        help="Files or directories to scan.",
    )
    parser.add_argument(
        "--show-valid",
        action="store_true",
        help="Also print links that were found to be valid.",
    )

    # Engine tuning
    parser.add_argument(
        "--ttl-minutes",
        default=None,
        type=float,
        help="Override cache TTL in minutes.",
    )
    parser.add_argument(
        "--timeout-ms",
        default=None,
        type=int,
        help="Override per-probe timeout in milliseconds.",
    )
    parser.add_argument(
        "--max-concurrent",
        default=None,
        type=int,
        help="Override URLs validated in parallel per window.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    return parser.parse_args(argv)


def _iter_files(paths: Iterable[str]) -> Iterable[Path]:
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if child.is_file() and child.suffix.lower() in SUPPORTED_SUFFIXES:
                    yield child
        else:
            yield path


def read_documents(paths: Iterable[str]) -> list[SourceDocument]:
    """Read all input files as text.

    Raises:
        OSError: If a file cannot be read.
    """
    documents = []
    for path in _iter_files(paths):
        text = path.read_text(encoding="utf-8", errors="replace")
        documents.append(SourceDocument(name=str(path), text=text))
    return documents


async def run(config: AppConfig, documents: list[SourceDocument], *, show_valid: bool) -> list[LinkDiagnostic]:
    async with validation_context(config) as ctx:
        return await ctx.check_links(include_valid=show_valid).execute(documents)


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, scans the inputs, validates every
    candidate URL and prints one line per diagnostic.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.ttl_minutes is not None:
        cli_overrides["ttl_minutes"] = args.ttl_minutes
    if args.timeout_ms is not None:
        cli_overrides["timeout_ms"] = args.timeout_ms
    if args.max_concurrent is not None:
        cli_overrides["max_concurrent"] = args.max_concurrent
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )

    configure_logging(config)

    try:
        documents = read_documents(args.paths)
    except OSError as e:
        log.error("input_read_failed", path=getattr(e, "filename", None), error=str(e))
        return EXIT_INPUT_ERROR

    diagnostics = asyncio.run(run(config, documents, show_valid=args.show_valid))

    for diagnostic in diagnostics:
        print(render_diagnostic(diagnostic))

    broken = sum(1 for d in diagnostics if d.is_broken)
    log.info("check_completed", documents=len(documents), broken=broken)
    return EXIT_BROKEN_LINKS if broken else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(start())
