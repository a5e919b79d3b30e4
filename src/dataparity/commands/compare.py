"""Command line interface running the catalog on the backends.

This module provides a command line interface that runs every
operation of :data:`dataparity.catalog.CATALOG` on the selected backends
through :func:`dataparity.runner.run` and prints the report produced
by :mod:`dataparity.report`.

The exit status is ``0`` when all backends agreed on every operation,
``1`` when some operation failed or diverged, ``2`` when the seed data
could not be loaded.
"""

import argparse
import logging
import sys

from dataparity.backends import BACKENDS
from dataparity.catalog import CATALOG
from dataparity.config import RunConfig
from dataparity.equivalence import DEFAULT_TOLERANCE
from dataparity.report import FORMATS, render_catalog, render_report
from dataparity.runner import run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the same data operations on multiple backends and check they agree."
    )
    parser.add_argument(
        "-b",
        "--backend",
        action="append",
        choices=list(BACKENDS),
        help="Backend to run, can be provided multiple times. Defaults to all backends.",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=DEFAULT_TOLERANCE,
        help="Relative tolerance when comparing floats (default: %(default)s).",
    )
    parser.add_argument(
        "--stop-on-mismatch",
        action="store_true",
        help="Stop at the first operation where backends disagree.",
    )
    parser.add_argument(
        "-f", "--format", choices=FORMATS, default="markdown", help="Format of the report."
    )
    parser.add_argument("-o", "--output", help="Write the report to a file instead of stdout.")
    parser.add_argument(
        "--list", action="store_true", help="List the operations of the catalog and exit."
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log progress, twice for debug logs."
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and run the comparison."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.list:
        print(render_catalog(CATALOG, args.backend), end="")
        return 0

    try:
        config = RunConfig(
            backends=args.backend or tuple(BACKENDS),
            tolerance=args.tolerance,
            stop_on_mismatch=args.stop_on_mismatch,
        )
    except (KeyError, ValueError) as e:
        parser.error(str(e))

    report = run(config)
    document = render_report(report, fmt=args.format)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(document)
    else:
        print(document, end="")
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
