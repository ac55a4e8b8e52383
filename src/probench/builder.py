"""Percentile reference builder.

Turns professional-athlete samples into ``PercentileRange`` records and
upserts them one metric at a time:
- Each ``(test_type, metric_name)`` key is computed and written independently.
- A metric with no usable samples is skipped, never stored as zeros.
- A failure on one metric is logged and counted; the run carries on.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from .catalog import TEST_METRICS, extract_metric_value, normalize_test_type
from .errors import ProbenchError
from .models import BuildSummary, PercentileRange
from .stats import compute_range
from .store import ReferenceStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReferenceBuilder:
    """Computes and persists reference ranges through an injected store."""

    def __init__(
        self,
        store: ReferenceStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._clock = clock or _utc_now

    def build_range(
        self,
        test_type: str,
        metric_name: str,
        values: Iterable[Any],
    ) -> Optional[PercentileRange]:
        """Compute the reference range for one metric.

        Returns ``None`` when no finite numeric value is present, which is the
        insufficient-data outcome rather than an error.
        """
        stats = compute_range(values)
        if stats is None:
            return None

        return PercentileRange(
            test_type=normalize_test_type(test_type),
            metric_name=metric_name,
            p25=stats["p25"],
            p50=stats["p50"],
            p75=stats["p75"],
            min_value=stats["min"],
            max_value=stats["max"],
            sample_size=int(stats["sample_size"]),
            last_updated=self._clock(),
        )

    def sync_metric(
        self,
        test_type: str,
        metric_name: str,
        values: Iterable[Any],
    ) -> Optional[PercentileRange]:
        """Build one metric's range and upsert it, replacing any previous row."""
        percentile_range = self.build_range(test_type, metric_name, values)
        if percentile_range is None:
            return None

        self._store.upsert_percentile_range(percentile_range)
        return percentile_range

    def sync_test_type(
        self,
        test_type: str,
        records: Sequence[Mapping[str, Any]],
        metric_paths: Iterable[str],
        summary: Optional[BuildSummary] = None,
    ) -> BuildSummary:
        """Sync every tracked metric of one test type from its records."""
        summary = summary if summary is not None else BuildSummary()
        normalized = normalize_test_type(test_type)

        for metric_path in metric_paths:
            values = [extract_metric_value(record, metric_path) for record in records]
            try:
                percentile_range = self.sync_metric(normalized, metric_path, values)
            except ProbenchError as exc:
                summary.failed += 1
                summary.failed_metrics.append((normalized, metric_path))
                logger.error(
                    "Failed to sync percentile range",
                    extra={"test_type": normalized, "metric_name": metric_path, "error": str(exc)},
                )
                continue

            if percentile_range is None:
                summary.skipped += 1
                logger.debug(
                    "Skipping metric without usable samples",
                    extra={"test_type": normalized, "metric_name": metric_path},
                )
                continue

            summary.succeeded += 1
            logger.info(
                "Synced percentile range",
                extra={
                    "test_type": normalized,
                    "metric_name": metric_path,
                    "sample_size": percentile_range.sample_size,
                },
            )

        return summary

    def run(
        self,
        records_by_test_type: Mapping[str, Sequence[Mapping[str, Any]]],
        catalog: Mapping[str, Iterable[str]] = TEST_METRICS,
    ) -> BuildSummary:
        """Sync all cataloged metrics for every test type with records.

        Test types missing from ``records_by_test_type`` or with no records are
        skipped with a log line. Returns the end-of-run counts.
        """
        summary = BuildSummary()

        for test_type, metric_paths in catalog.items():
            records = records_by_test_type.get(test_type) or []
            if not records:
                logger.info("No professional records for test type", extra={"test_type": test_type})
                continue

            self.sync_test_type(test_type, records, metric_paths, summary)

        logger.info(
            "Percentile sync finished",
            extra={
                "succeeded": summary.succeeded,
                "failed": summary.failed,
                "skipped": summary.skipped,
            },
        )
        return summary
