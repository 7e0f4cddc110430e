"""Command-line interface for the PTV conversion hub.

WHY: Most conversions are one-off: a dump on disk, a target format, a file
to write. The CLI wires the registry and ``convert`` behind a single
command that also works in a shell pipeline.

HOW: argparse accepts the source and target format names plus input and
output paths ("-" for stdin/stdout). Logging goes to stderr through
``logging.basicConfig``; ``-v`` switches to DEBUG, otherwise PTV_LOG_LEVEL
applies.

RULES:
- --formats prints the registered names, one per line, and exits 0
- --from and --to are required for a conversion
- Exit code 2 for an unregistered format name, 1 for parse/render failures
  and unreadable input, 0 on success
- Nothing but converted bytes is written to stdout
- Python 3.9 compatible: no match/case, no X | Y unions
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ptv import codecs
from ptv.config import LOG_LEVEL, MAX_INPUT_BYTES
from ptv.conversion import convert
from ptv.core.errors import ParseError, RenderError, UnknownFormatError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_FORMAT = 2


def _status(msg: str) -> None:
    """Print a status message to stderr so stdout stays pipeable."""
    print(msg, file=sys.stderr, flush=True)


def _read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _write_output(path: str, data: bytes) -> None:
    if path == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    Path(path).write_bytes(data)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect the parser without running a
    conversion.
    """
    parser = argparse.ArgumentParser(
        prog="ptv",
        description="Convert credential and identity data between formats.",
    )
    parser.add_argument(
        "--from",
        dest="from_format",
        default=None,
        help="Source format name (see --formats).",
    )
    parser.add_argument(
        "--to",
        dest="to_format",
        default=None,
        help="Target format name (see --formats).",
    )
    parser.add_argument(
        "-i",
        "--input",
        default="-",
        help="Input file path, or '-' for stdin (default: %(default)s).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default="-",
        help="Output file path, or '-' for stdout (default: %(default)s).",
    )
    parser.add_argument(
        "--formats",
        action="store_true",
        help="List registered format names and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Execute one CLI invocation and return its exit code."""
    if args.formats:
        for name in codecs.list_codecs():
            print(name)
        return EXIT_OK

    if not args.from_format or not args.to_format:
        _status("Error: --from and --to are required (use --formats to list names)")
        return EXIT_INVALID_FORMAT

    try:
        raw = _read_input(args.input)
    except OSError as exc:
        _status("Error: cannot read input: {}".format(exc))
        return EXIT_FAILURE
    if len(raw) > MAX_INPUT_BYTES:
        _status("Error: input exceeds {} bytes".format(MAX_INPUT_BYTES))
        return EXIT_FAILURE

    try:
        output = convert(args.from_format, args.to_format, raw)
    except UnknownFormatError:
        _status("Error: unsupported format (use --formats to list names)")
        return EXIT_INVALID_FORMAT
    except ParseError as exc:
        logger.debug("Parse failed", exc_info=True)
        _status("Error: could not parse input: {}".format(exc))
        return EXIT_FAILURE
    except RenderError as exc:
        logger.debug("Render failed", exc_info=True)
        _status("Error: could not render output: {}".format(exc))
        return EXIT_FAILURE

    try:
        _write_output(args.output, output)
    except OSError as exc:
        _status("Error: cannot write output: {}".format(exc))
        return EXIT_FAILURE
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m ptv`` and the ``ptv`` console script.

    argv=None means use sys.argv; explicit argv is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    sys.exit(run(args))


if __name__ == "__main__":
    main()
