"""Command-line argument parsing for the athlete benchmark engine."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .catalog import TEST_METRICS, WAREHOUSE_TABLES

# Cataloged test types with no warehouse source, e.g. ht and slcmj.
_LIBRARY_ONLY_TEST_TYPES = tuple(
    test_type for test_type in TEST_METRICS if test_type not in WAREHOUSE_TABLES
)


def _test_type(value: str) -> str:
    """Parse and validate a warehouse-backed test type.

    Raises:
        argparse.ArgumentTypeError: If the test type has no warehouse table.
    """
    normalized = value.strip().lower()
    if normalized not in WAREHOUSE_TABLES:
        choices = ", ".join(sorted(WAREHOUSE_TABLES))
        library_only = ", ".join(_LIBRARY_ONLY_TEST_TYPES)
        raise argparse.ArgumentTypeError(
            f"must be one of: {choices} ({library_only} have no warehouse table)"
        )
    return normalized


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed CLI arguments with a ``command`` of ``sync``, ``compare`` or
        ``summary`` plus that command's options.
    """
    parser = argparse.ArgumentParser(
        prog="athlete-benchmarks",
        description=(
            "Build professional percentile benchmarks from warehouse test data "
            "and compare athletes against them."
        ),
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Recompute percentile ranges from professional athlete results.",
    )
    sync_parser.add_argument(
        "--test-type",
        dest="test_types",
        type=_test_type,
        action="append",
        default=None,
        help=(
            "Test type to sync (repeatable). Defaults to every warehouse-backed "
            f"test type: {', '.join(sorted(WAREHOUSE_TABLES))}. "
            f"{', '.join(_LIBRARY_ONLY_TEST_TYPES)} have no warehouse table and "
            "can only be built through the library API."
        ),
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Compare an athlete's test results against stored benchmarks.",
    )
    compare_parser.add_argument(
        "--input",
        required=True,
        help="Path to a JSON file with the athlete's tests.",
    )
    compare_parser.add_argument(
        "--athlete-name",
        default=None,
        help="Athlete display name (overrides the name in the input file).",
    )

    subparsers.add_parser(
        "summary",
        help="Show stored metric counts and last update per test type.",
    )

    return parser.parse_args(argv)
