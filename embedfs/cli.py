"""
Embedfs CLI.

Commands:
    build      Build an archive from a YAML config file
    quick      Build an archive from glob patterns given on the command line

Examples:
    embedfs build
    embedfs build ./assets.yml -o app/assets.json
    embedfs quick "./static/**/*.css" "./templates/*.html" -o app/assets.py
    embedfs quick "./test_assets/*.txt" --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys

from embedfs import __version__
from embedfs.config import DEFAULT_CONFIG_PATH

DESCRIPTION = """
Create an archive of assets for Python applications.
Access assets through an embedded file system from within deployed apps.
""".strip()


def _configure_logging(*, silent: bool) -> logging.Logger:
    """
    Configure the embedfs logger.

    Args:
        silent: Only log errors

    Returns:
        Configured logger
    """
    level = logging.ERROR if silent else logging.INFO

    logger = logging.getLogger("embedfs")
    logger.setLevel(level)
    logger.propagate = False

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-10s %(message)s", datefmt="%H:%M:%S"))

    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def cmd_build(args: argparse.Namespace) -> int:
    """Handle build command."""
    from pathlib import Path

    from embedfs.config import load_config
    from embedfs.errors import EmbedFSError
    from embedfs.packager import build_archive

    logger = _configure_logging(silent=args.silent)

    config_path = Path.cwd() / args.config
    logger.info("Reading config: %s", config_path)

    try:
        config = load_config(config_path)
        build_archive(
            config.resolve_cwd(Path.cwd()),
            config.assets,
            out=None if args.dry_run else (args.out or config.out),
            allow_duplicates=args.allow_duplicates,
        )
        return 0
    except EmbedFSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_quick(args: argparse.Namespace) -> int:
    """Handle quick command."""
    from pathlib import Path

    from embedfs.errors import EmbedFSError
    from embedfs.packager import build_archive

    _configure_logging(silent=args.silent)

    try:
        build_archive(
            Path.cwd(),
            args.globs,
            out=None if args.dry_run else args.out,
            allow_duplicates=args.allow_duplicates,
        )
        return 0
    except EmbedFSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-s",
        "--silent",
        action="store_true",
        help="Disable all logging except for errors",
    )
    parser.add_argument(
        "--allow-duplicates",
        action="store_true",
        help="Emit a file once per matching pattern instead of once overall",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="embedfs",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"embedfs {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # build
    build_parser = subparsers.add_parser(
        "build",
        help="Build archive from config file",
    )
    build_parser.add_argument(
        "config",
        nargs="?",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to YAML config (default: {DEFAULT_CONFIG_PATH})",
    )
    build_output = build_parser.add_mutually_exclusive_group()
    build_output.add_argument(
        "-o",
        "--out",
        default=None,
        help="Override the configured output file (.py or .json)",
    )
    build_output.add_argument(
        "-D",
        "--dry-run",
        action="store_true",
        help="Don't write the output file",
    )
    _add_common_options(build_parser)

    # quick
    quick_parser = subparsers.add_parser(
        "quick",
        help="Build archive from command line globs",
    )
    quick_parser.add_argument(
        "globs",
        nargs="+",
        help="Glob patterns relative to the current directory",
    )
    quick_parser.add_argument(
        "-o",
        "--out",
        default="./assets.py",
        help="Output file, .py or .json (default: ./assets.py)",
    )
    quick_parser.add_argument(
        "-D",
        "--dry-run",
        action="store_true",
        help="Don't write the output file",
    )
    _add_common_options(quick_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "build":
        return cmd_build(args)
    elif args.command == "quick":
        return cmd_quick(args)

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
