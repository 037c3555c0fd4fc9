"""Command line entry point: ``asset-patcher migrate|sort|unsort|patch|clear``."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .config import load_config
from .errors import PatcherError
from .logging_utils import configure_logging
from .pipeline import PatcherPipeline

KINDS = ("scriptable_objects", "prefabs")


def _env_flag(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asset-patcher",
        description="Migrate ripped game assets into a project and sort them by type",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the YAML/JSON config (default: $ASSET_PATCHER_CONFIG or patcher.yaml)",
    )
    parser.add_argument("--log-level", default=None, help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    migrate = sub.add_parser("migrate", help="Copy ripper output into the project layout")
    migrate.add_argument("--minimal", action="store_true", help="Skip large binary categories")
    migrate.add_argument("--clear", action="store_true", help="Delete stale project files first")
    migrate.add_argument(
        "--drop",
        action="append",
        default=[],
        metavar="PATH",
        help="Remove a vendored folder from the ripper output and the project first",
    )

    for name, help_text in (("sort", "Group assets into per-type folders"), ("unsort", "Flatten sorted folders")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("kind", choices=KINDS + ("all",))

    sub.add_parser("clear", help="Delete project files except preserved binaries")
    sub.add_parser("patch", help="Apply post-migration fixes to known project files")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    config_path = args.config or Path(os.getenv("ASSET_PATCHER_CONFIG", "patcher.yaml"))

    try:
        config = load_config(config_path)
    except PatcherError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.log_level:
        config.logging.level = args.log_level.upper()
    minimal = _env_flag("ASSET_PATCHER_MINIMAL_COPY")
    if minimal is not None:
        config.migration.minimal_copy = minimal
    if getattr(args, "minimal", False):
        config.migration.minimal_copy = True

    configure_logging(config.logging.level)
    try:
        pipeline = PatcherPipeline.from_config(config)
    except PatcherError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    failed = False
    try:
        if args.command == "clear":
            failed = bool(pipeline.clear().failures)
        elif args.command == "migrate":
            if args.clear:
                failed = bool(pipeline.clear().failures)
            for relative in args.drop:
                pipeline.drop(relative)
            failed = not pipeline.migrate().ok or failed
        elif args.command == "patch":
            failed = not pipeline.patch().ok
        else:
            kinds = KINDS if args.kind == "all" else (args.kind,)
            step = pipeline.sort if args.command == "sort" else pipeline.unsort
            for kind in kinds:
                failed = not step(kind).ok or failed
    except PatcherError as exc:
        pipeline.logger.log(args.command, str(exc), level="ERROR")
        return 2
    finally:
        pipeline.logger.close()
    return 1 if failed else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
