#!/usr/bin/env python
"""Command-line entry point for the schema import benchmark.

Usage:
    # Write proto.protodecl and proto_noidx.protodecl into a directory
    protodecl-bench generate data/

    # Time both imports and print the page
    protodecl-bench run --root data/

    # Machine-readable output
    protodecl-bench run --root data/ --json

    # Dump the package tree of a schema
    protodecl-bench inspect data/proto.protodecl
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from .config import BenchmarkSettings
from .errors import SchemaImportError
from .generate import write_variants
from .importer import load_schema
from .log import setup_logger
from .page import ProtoImportPage
from .schemas import ImportReportSchema

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protodecl-bench",
        description="Measure how long protocol declaration schemas take to import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  protodecl-bench generate data/
  protodecl-bench run --root data/
  protodecl-bench run --config bench.json --json
  protodecl-bench inspect data/proto.protodecl
        """,
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO, or the config file's value)",
    )
    parser.add_argument("--log-file", type=Path, help="Also write DEBUG-level logs to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Write indexed and non-indexed benchmark schemas")
    generate.add_argument("out_dir", type=Path, help="Directory to write the schema files into")
    generate.add_argument("--messages", type=int, default=1000, help="Number of messages (default: 1000)")
    generate.add_argument("--enums", type=int, default=200, help="Number of enums (default: 200)")
    generate.add_argument("--files", type=int, default=10, help="Number of files (default: 10)")

    run = subparsers.add_parser("run", help="Time the indexed and non-indexed imports")
    run.add_argument("--config", type=Path, help="JSON settings file")
    run.add_argument("--root", type=Path, help="Directory relative sources are resolved against")
    run.add_argument("--indexed", help="Indexed schema source")
    run.add_argument("--no-index", dest="non_indexed", help="Non-indexed schema source")
    run.add_argument(
        "--skip-index",
        action="store_true",
        default=None,
        help="Ignore prebuilt indexes when importing",
    )
    run.add_argument("--json", action="store_true", help="Print results as JSON")
    run.add_argument("--quiet", action="store_true", help="Only log warnings and errors")

    inspect = subparsers.add_parser("inspect", help="Print the package tree of a schema")
    inspect.add_argument("source", help="Schema file path")
    inspect.add_argument("--skip-index", action="store_true", help="Ignore the prebuilt index")

    return parser


def _settings_from_args(args: argparse.Namespace) -> BenchmarkSettings:
    overrides = {
        "resource_root": args.root,
        "indexed_source": args.indexed,
        "non_indexed_source": args.non_indexed,
        "skip_index": args.skip_index,
        "log_level": args.log_level,
    }
    if args.config:
        return BenchmarkSettings.from_file(args.config, **overrides)
    return BenchmarkSettings().with_overrides(**overrides)


def _run(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    setup_logger("protodecl_bench", "WARNING" if args.quiet else settings.log_level, args.log_file)

    page = ProtoImportPage(settings)
    lines = page.mount()

    if args.json:
        print(json.dumps(ImportReportSchema().dump(page.report()), indent=2))
    else:
        print("\n".join(lines))
    return 0


def _generate(args: argparse.Namespace) -> int:
    setup_logger("protodecl_bench", args.log_level or "INFO", args.log_file)
    write_variants(args.out_dir, args.messages, args.enums, args.files)
    return 0


def _inspect(args: argparse.Namespace) -> int:
    setup_logger("protodecl_bench", args.log_level or "INFO", args.log_file)
    schema = load_schema(Path(args.source), skip_index=args.skip_index)
    print(json.dumps(schema.to_debug_json(), indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI; returns the process exit status."""
    args = _build_parser().parse_args(argv)
    handlers = {"generate": _generate, "run": _run, "inspect": _inspect}

    try:
        return handlers[args.command](args)
    except SchemaImportError as e:
        logger.error("Import failed: %s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
