#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Entry point for the CAML fixer (markup repair + metadata merge, one year at a time)."""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path

from camlfixer import ErrorAggregator, FixerOptions, run_years

YEAR_RX = re.compile(r"^\d{4}$")


def _year(value: str) -> str:
    if not YEAR_RX.match(value):
        raise argparse.ArgumentTypeError(f"'{value}' is not a four-digit year")
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Repair scanned CAML documents and merge in their metadata sheets.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--source", required=True, help="Working directory holding one folder per year")
    parser.add_argument("--dest", required=True, help="Destination root for repaired documents and error reports")
    parser.add_argument("--years", required=True, nargs="+", type=_year, help="Years to process, e.g. 1930 1931")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads per year (defaults to CPUs - 1)")
    parser.add_argument("--no-spinner", action="store_true", help="Print plain progress lines instead of a spinner")
    parser.add_argument("--quiet", action="store_true", help="With --no-spinner, skip the per-year progress lines")
    args = parser.parse_args(argv)

    source = Path(args.source).resolve()
    dest = Path(args.dest).resolve()
    if not source.is_dir():
        parser.error(f"source directory not found: {source}")
    if source == dest:
        parser.error("source and destination must be different directories")
    dest.mkdir(parents=True, exist_ok=True)

    errors = ErrorAggregator()
    options = FixerOptions(
        max_workers=args.workers,
        show_spinner=not args.no_spinner,
        extra={"quiet": args.quiet},
    )
    results = run_years(source, dest, args.years, options, errors=errors)

    processed = sum(result.documents for result in results if not result.skipped)
    print(f"Processed {processed} CAML file(s) across {len(results)} year(s).")
    print(errors.setup_summary())
    return 1 if errors.setup_error_count else 0


if __name__ == "__main__":
    sys.exit(main())
