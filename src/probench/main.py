"""Entry point wiring configuration, the warehouse store, builder and engine."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .builder import ReferenceBuilder
from .catalog import TEST_METRICS, WAREHOUSE_TABLES
from .cli import parse_args
from .comparison import ComparisonEngine
from .config import load_config
from .errors import (
    AuthenticationError,
    ConfigurationError,
    DataValidationError,
    StoreError,
)
from .models import AthleteTest, BuildSummary
from .report import generate_report, generate_summary_report
from .store import summarize_ranges
from .warehouse_client import WarehouseClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_INVALID_INPUT = 2
EXIT_AUTHENTICATION = 3
EXIT_STORE = 4
EXIT_PARTIAL_FAILURE = 5


def load_athlete_file(path: str) -> Tuple[str, List[AthleteTest]]:
    """Read an athlete's tests from a JSON file.

    Expected shape::

        {"name": "...", "tests": [{"testType": "cmj", "data": {"jumpHeight": 41.2}}]}

    A test whose ``data`` is not an object is kept with no metric values.

    Raises:
        DataValidationError: If the file cannot be read or has the wrong shape.
    """
    try:
        with open(path, encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, ValueError) as exc:
        raise DataValidationError(f"Could not read athlete file '{path}': {exc}") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("tests"), list):
        raise DataValidationError(f"Athlete file '{path}' must contain an object with a 'tests' list.")

    tests: List[AthleteTest] = []
    for item in payload["tests"]:
        if not isinstance(item, dict) or not item.get("testType"):
            raise DataValidationError(f"Athlete file '{path}' has a test without 'testType': {item}")
        data = item.get("data")
        tests.append(
            AthleteTest(
                test_type=str(item["testType"]),
                metric_values=data if isinstance(data, Mapping) else None,
            )
        )

    return str(payload.get("name") or "Unknown athlete"), tests


def run_sync(client: WarehouseClient, test_types: Sequence[str]) -> BuildSummary:
    """Fetch professional records per test type and rebuild their ranges.

    A test type whose records cannot be fetched counts all of its metrics as
    failed; the remaining test types still sync.
    """
    records_by_test_type: Dict[str, List[Dict[str, Any]]] = {}
    fetch_failures = BuildSummary()

    for test_type in test_types:
        try:
            records_by_test_type[test_type] = client.fetch_pro_test_records(test_type)
        except StoreError as exc:
            logger.error(
                "Failed to fetch professional records",
                extra={"test_type": test_type, "error": str(exc)},
            )
            for metric_name in TEST_METRICS[test_type]:
                fetch_failures.failed += 1
                fetch_failures.failed_metrics.append((test_type, metric_name))

    builder = ReferenceBuilder(store=client)
    summary = builder.run(
        records_by_test_type,
        catalog={test_type: TEST_METRICS[test_type] for test_type in test_types},
    )
    summary.failed += fetch_failures.failed
    summary.failed_metrics.extend(fetch_failures.failed_metrics)
    return summary


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def orchestrate(argv: Optional[Sequence[str]] = None) -> int:
    """Run one CLI command and map failures to exit codes."""
    try:
        args = parse_args(argv)
        _configure_logging(args.verbose)

        config = load_config()
        client = WarehouseClient(config=config)

        if args.command == "sync":
            test_types = args.test_types or sorted(WAREHOUSE_TABLES)
            summary = run_sync(client, test_types)
            print(
                f"Percentile sync finished: {summary.succeeded} succeeded, "
                f"{summary.failed} failed, {summary.skipped} skipped"
            )
            for test_type, metric_name in summary.failed_metrics:
                print(f"  failed: {test_type}.{metric_name}")
            return EXIT_PARTIAL_FAILURE if summary.failed else EXIT_OK

        if args.command == "compare":
            name, tests = load_athlete_file(args.input)
            profile = ComparisonEngine(store=client).compare_profile(tests)
            print(generate_report(args.athlete_name or name, profile))
            return EXIT_OK

        print(generate_summary_report(summarize_ranges(client.list_percentile_ranges())))
        return EXIT_OK
    except AuthenticationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except (ConfigurationError, DataValidationError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except StoreError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_STORE
    except Exception:
        logger.exception("Unexpected failure")
        return EXIT_UNEXPECTED


def main() -> None:
    raise SystemExit(orchestrate())


if __name__ == "__main__":
    main()
