#!/usr/bin/env python3
"""Convert captured terminal output (file or stdin) into HTML."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Sequence

from markup import MarkupOptions
from settings import load_settings
from shellvetica import __version__, convert

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="shellvetica",
        description="Render ANSI-colored terminal output as HTML",
    )
    parser.add_argument("path", nargs="?", default="-", help="Input file (default: stdin)")
    parser.add_argument("-o", "--output", default="", help="Write HTML here instead of stdout")
    parser.add_argument("--pre", action="store_true", help='Wrap output in <pre class="shellvetica">')
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def read_input(path: str, stdin: BinaryIO | None = None) -> bytes:
    if path == "-":
        return (stdin or sys.stdin.buffer).read()
    return Path(path).read_bytes()


def main(argv: Sequence[str] | None = None, stdin: BinaryIO | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )
    settings = load_settings()

    try:
        raw = read_input(args.path, stdin)
    except OSError as exc:
        print(f"shellvetica: cannot read {args.path}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    logger.debug("read %d bytes from %s", len(raw), args.path)

    markup = convert(raw, MarkupOptions(wrap_pre=args.pre or settings.wrap_pre))

    if not args.output:
        sys.stdout.write(markup + "\n")
        return 0
    try:
        Path(args.output).write_text(markup + "\n", encoding="utf-8")
    except OSError as exc:
        print(f"shellvetica: cannot write {args.output}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    logger.debug("wrote %d characters to %s", len(markup), args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
