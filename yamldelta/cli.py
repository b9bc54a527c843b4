"""
Command line interface for yamldelta.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from . import __version__
from .format import FormatOptions, format_file, format_stat
from .yamldiff import CompareOptions, compare_files

_log = logging.getLogger(__name__)

_log_debug = _log.debug

_DEFAULT_LOG_LEVEL = logging.WARNING


def setup_logging(verbose: Optional[int]) -> None:
    """Configure the package logger from the number of -v flags."""
    level = _DEFAULT_LOG_LEVEL
    if verbose and verbose > 1:
        level = logging.DEBUG
    elif verbose and verbose > 0:
        level = logging.INFO

    package_log = logging.getLogger("yamldelta")
    package_log.setLevel(level)
    if package_log.hasHandlers():
        package_log.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
    package_log.addHandler(handler)


def should_use_color(choice: str) -> bool:
    if choice == "always":
        return True
    if choice == "never":
        return False
    return sys.stdout.isatty() and not os.environ.get("NO_COLOR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yamldelta",
        description="Structural comparison of two YAML files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  yamldelta file1.yaml file2.yaml
  yamldelta --ignore-order --exit-code old.yaml new.yaml
  yamldelta --color=never --paths-only file1.yaml file2.yaml
  yamldelta --stat old.yaml new.yaml
        """,
    )

    parser.add_argument("left_file", help="Path to the left YAML file")
    parser.add_argument("right_file", help="Path to the right YAML file")
    parser.add_argument(
        "--color",
        choices=["always", "never", "auto"],
        default="auto",
        help="When to use color output (default: auto)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"yamldelta {__version__}",
        help="Show version number and exit",
    )
    parser.add_argument(
        "-i",
        "--ignore-order",
        action="store_true",
        help="Ignore sequence order when comparing",
    )
    parser.add_argument(
        "-c",
        "--counts",
        action="store_true",
        help="Prefix each document with a summary count of differences",
    )
    parser.add_argument(
        "-s",
        "--stat",
        action="store_true",
        help="Show only the added, deleted and modified counts",
    )
    parser.add_argument(
        "-e",
        "--exit-code",
        action="store_true",
        help="Exit with non-zero status when differences are found",
    )
    parser.add_argument(
        "-p",
        "--paths-only",
        action="store_true",
        help="Show only paths of differences without values",
    )
    parser.add_argument(
        "-m",
        "--metadata",
        action="store_true",
        help="Include line numbers and node kinds",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", help="Enable verbose output"
    )
    return parser


def _validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.paths_only and args.metadata:
        parser.error("--paths-only and --metadata are mutually exclusive")
    if args.stat and (args.paths_only or args.metadata or args.counts):
        parser.error("--stat cannot be used with --paths-only, --metadata or --counts")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)

    setup_logging(args.verbose)
    _log_debug("Comparing %s with %s", args.left_file, args.right_file)

    for name in (args.left_file, args.right_file):
        if not Path(name).exists():
            print(f"Error: file '{name}' does not exist", file=sys.stderr)
            return 1

    options = CompareOptions(ignore_seq_order=args.ignore_order)
    try:
        diffs = compare_files(args.left_file, args.right_file, options)
    except (OSError, yaml.YAMLError) as err:
        print(f"Error: failed to compare files: {err}", file=sys.stderr)
        return 1

    if args.stat:
        print(format_stat(diffs))
    elif diffs.has_differences():
        format_options = FormatOptions(
            color=should_use_color(args.color),
            paths_only=args.paths_only,
            metadata=args.metadata,
            counts=args.counts,
        )
        print(format_file(diffs, format_options))

    if args.exit_code and diffs.has_differences():
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
