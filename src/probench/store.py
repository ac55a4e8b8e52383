"""Reference-store interface and an in-process implementation.

The builder writes ranges through ``upsert_percentile_range`` and the
comparison engine only ever reads. Implementations raise ``StoreError`` when
the backing storage is unreachable; a missing key is not an error.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from .catalog import normalize_test_type
from .models import PercentileRange


class ReferenceStore(Protocol):
    """Read/write access to persisted percentile ranges."""

    def get_percentile_range(self, test_type: str, metric_name: str) -> Optional[PercentileRange]:
        ...

    def get_all_ranges_for_test_type(self, test_type: str) -> Dict[str, PercentileRange]:
        ...

    def upsert_percentile_range(self, percentile_range: PercentileRange) -> None:
        ...

    def list_percentile_ranges(self) -> List[PercentileRange]:
        ...


class InMemoryReferenceStore:
    """Dictionary-backed store keyed on ``(test_type, metric_name)``."""

    def __init__(self, ranges: Iterable[PercentileRange] = ()) -> None:
        self._ranges: Dict[Tuple[str, str], PercentileRange] = {}
        for percentile_range in ranges:
            self.upsert_percentile_range(percentile_range)

    def get_percentile_range(self, test_type: str, metric_name: str) -> Optional[PercentileRange]:
        return self._ranges.get((normalize_test_type(test_type), metric_name))

    def get_all_ranges_for_test_type(self, test_type: str) -> Dict[str, PercentileRange]:
        normalized = normalize_test_type(test_type)
        return {
            metric_name: percentile_range
            for (range_test_type, metric_name), percentile_range in self._ranges.items()
            if range_test_type == normalized
        }

    def upsert_percentile_range(self, percentile_range: PercentileRange) -> None:
        key = (normalize_test_type(percentile_range.test_type), percentile_range.metric_name)
        self._ranges[key] = percentile_range

    def list_percentile_ranges(self) -> List[PercentileRange]:
        return [self._ranges[key] for key in sorted(self._ranges)]

    def __len__(self) -> int:
        return len(self._ranges)


def summarize_ranges(ranges: Iterable[PercentileRange]) -> Dict[str, Dict[str, object]]:
    """Group ranges by test type into metric counts and latest update time.

    Returns:
        Mapping of test type to ``{"metric_count": int, "last_updated": datetime}``,
        ordered by test type.
    """
    counts: Dict[str, int] = {}
    latest: Dict[str, datetime] = {}
    for percentile_range in ranges:
        test_type = percentile_range.test_type
        counts[test_type] = counts.get(test_type, 0) + 1
        if test_type not in latest or percentile_range.last_updated > latest[test_type]:
            latest[test_type] = percentile_range.last_updated

    return {
        test_type: {"metric_count": counts[test_type], "last_updated": latest[test_type]}
        for test_type in sorted(counts)
    }
