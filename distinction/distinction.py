#!/usr/bin/env python
from __future__ import annotations
import sys
import os
import argparse
import gzip
import logging
import tempfile
import warnings
from typing import IO, Iterator, List, Optional, Tuple
from distinction.lib.cvm import DEFAULT_DELTA, DEFAULT_EPS, find_n_distinct
from distinction.lib.random_source import RandomSource

STDIN_NAME = "-"

logger = logging.getLogger(__name__)

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    arg_parser = argparse.ArgumentParser(
        description="""Estimate the number of distinct lines (or fields) in one or more files.

        Each non-blank line is one stream element. Files ending in .gz are
        decompressed on the fly. With no files, or with '-', reads stdin.
        An estimate of 0 for a non-empty input means the threshold was
        exhausted; rerun with a different --seed or a larger --eps.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    arg_parser.add_argument('files', nargs='*', default=[STDIN_NAME],
                       help='Input files (default: stdin)')
    arg_parser.add_argument("--eps", "-e", type=float, default=DEFAULT_EPS,
                       help=f"Relative error bound (default: {DEFAULT_EPS})")
    arg_parser.add_argument("--delta", "-d", type=float, default=DEFAULT_DELTA,
                       help=f"Failure probability (default: {DEFAULT_DELTA})")
    arg_parser.add_argument("--seed", type=int, default=None,
                       help="Random seed for reproducible estimates (default: OS entropy)")
    arg_parser.add_argument("--field", "-f", type=int, default=None,
                       help="0-based column to count instead of the whole line")
    arg_parser.add_argument("--sep", type=str, default="\t",
                       help="Column separator used with --field (default: tab)")
    arg_parser.add_argument("--verbose", action="store_true", help="Print verbose output")
    arg_parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    return arg_parser.parse_args(argv)

def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Send library log records to stderr at the requested level."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

def open_input(path: str) -> IO[str]:
    """Open a plain or gzipped text file for reading."""
    if path.endswith(".gz"):
        return gzip.open(path, "rt")
    return open(path, "r")

def spool_stdin(stream: IO[str]) -> IO[str]:
    """Copy stdin to a temporary file so it can be counted, then read."""
    spool = tempfile.TemporaryFile(mode="w+")
    for line in stream:
        spool.write(line)
    spool.seek(0)
    return spool

def count_elements(handle: IO[str]) -> int:
    """Count non-blank lines, leaving the handle rewound."""
    n = sum(1 for line in handle if line.strip())
    handle.seek(0)
    return n

def iter_elements(handle: IO[str], field: Optional[int] = None,
                  sep: str = "\t") -> Iterator[str]:
    """Yield one element per non-blank line.

    Args:
        handle: Text handle to read
        field: Column to extract, or None for the whole line
        sep: Column separator

    Raises:
        ValueError: if a line has fewer than field + 1 columns
    """
    for lineno, line in enumerate(handle, start=1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        if field is None:
            yield line
            continue
        columns = line.split(sep)
        if field >= len(columns):
            raise ValueError(f"Line {lineno} has {len(columns)} columns, no field {field}")
        yield columns[field]

def estimate_handle(handle: IO[str], eps: float, delta: float,
                    seed: Optional[int] = None, field: Optional[int] = None,
                    sep: str = "\t") -> int:
    """Estimate the distinct elements readable from a seekable handle."""
    m = count_elements(handle)
    logger.debug("Counted %d elements", m)
    return find_n_distinct(iter_elements(handle, field, sep), eps, delta,
                           RandomSource(seed), stream_length=m)

def estimate_path(path: str, eps: float, delta: float, seed: Optional[int] = None,
                  field: Optional[int] = None, sep: str = "\t") -> int:
    """Estimate the distinct elements in a file, or stdin for '-'."""
    if path == STDIN_NAME:
        with spool_stdin(sys.stdin) as handle:
            return estimate_handle(handle, eps, delta, seed, field, sep)
    with open_input(path) as handle:
        return estimate_handle(handle, eps, delta, seed, field, sep)

def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for distinction."""
    args = parse_args(argv)
    configure_logging(args.verbose, args.debug)

    if args.eps >= 1:
        warnings.warn(f"eps={args.eps} allows errors larger than the count itself. "
                      "This may reduce accuracy.", RuntimeWarning)
    if args.field is not None and args.field < 0:
        print("Error: --field must be non-negative", file=sys.stderr)
        sys.exit(2)

    results: List[Tuple[str, int]] = []
    for path in args.files:
        if path != STDIN_NAME and not os.path.exists(path):
            print(f"Error: File {path} does not exist", file=sys.stderr)
            sys.exit(2)
        try:
            estimate = estimate_path(path, args.eps, args.delta, args.seed,
                                     args.field, args.sep)
        except ValueError as e:
            print(f"Error: {path}: {e}", file=sys.stderr)
            sys.exit(2)
        if args.verbose:
            print(f"Estimated {estimate} distinct elements in {path}", file=sys.stderr)
        results.append((path, estimate))

    for path, estimate in results:
        print(f"{path}\t{estimate}")

if __name__ == "__main__":
    main()
