"""
Command-line GraphQL normalizer.

Reads a GraphQL document from a file (or stdin when the path is `-` or
omitted), and prints its canonical text.

Usage:
    graphql-normalize query.graphql
    cat query.graphql | graphql-normalize
    graphql-normalize -m query.graphql     # minified output
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from graphql_normalize.core.errors import NormalizeError
from graphql_normalize.services.normalizer import minify, normalize

STDIN_PATH = "-"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="graphql-normalize",
        description="Print the canonical, order-independent form of a GraphQL document",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=STDIN_PATH,
        help="File to read, or '-' for stdin (default: -)",
    )
    parser.add_argument(
        "-m",
        "--minify",
        action="store_true",
        help="Strip insignificant whitespace from the output",
    )
    return parser


def read_source(path: str) -> str:
    """Read query text from a file path, or from stdin for '-'."""
    if path == STDIN_PATH:
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        source = read_source(args.path)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Unable to read input: {e}", file=sys.stderr)
        return 1

    try:
        normalized = normalize(source)
        if args.minify:
            normalized = minify(normalized)
    except NormalizeError as e:
        print(f"Could not normalize: {e.message}", file=sys.stderr)
        return 1

    print(normalized)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
