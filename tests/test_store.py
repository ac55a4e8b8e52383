"""Tests for the in-memory reference store and range summaries."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from probench.errors import DataValidationError
from probench.models import PercentileRange
from probench.store import InMemoryReferenceStore, summarize_ranges


def _range(test_type: str, metric_name: str, day: int = 1) -> PercentileRange:
    return PercentileRange(
        test_type=test_type,
        metric_name=metric_name,
        p25=1.0,
        p50=2.0,
        p75=3.0,
        min_value=0.0,
        max_value=4.0,
        sample_size=10,
        last_updated=datetime(2026, 1, day, tzinfo=timezone.utc),
    )


def test_get_percentile_range_matches_test_type_case_insensitively():
    """Verify lookups normalise test type but not metric name."""
    store = InMemoryReferenceStore([_range("cmj", "jumpHeight")])

    assert store.get_percentile_range("CMJ", "jumpHeight") is not None
    assert store.get_percentile_range("cmj", "jumpheight") is None


def test_get_all_ranges_for_test_type_filters_by_test_type():
    """Verify batch lookup returns only the requested test type's metrics."""
    store = InMemoryReferenceStore(
        [_range("cmj", "jumpHeight"), _range("cmj", "peakPower"), _range("sj", "jumpHeight")]
    )

    ranges = store.get_all_ranges_for_test_type("cmj")

    assert sorted(ranges) == ["jumpHeight", "peakPower"]
    assert store.get_all_ranges_for_test_type("imtp") == {}


def test_list_percentile_ranges_is_ordered_by_key():
    """Verify listed ranges are ordered by test type then metric name."""
    store = InMemoryReferenceStore(
        [_range("sj", "jumpHeight"), _range("cmj", "peakPower"), _range("cmj", "jumpHeight")]
    )

    keys = [item.key for item in store.list_percentile_ranges()]

    assert keys == [("cmj", "jumpHeight"), ("cmj", "peakPower"), ("sj", "jumpHeight")]


def test_summarize_ranges_counts_metrics_and_latest_update():
    """Verify the summary reports metric counts and most recent update per test type."""
    summary = summarize_ranges(
        [_range("cmj", "jumpHeight", 3), _range("cmj", "peakPower", 5), _range("sj", "jumpHeight", 2)]
    )

    assert list(summary) == ["cmj", "sj"]
    assert summary["cmj"]["metric_count"] == 2
    assert summary["cmj"]["last_updated"] == datetime(2026, 1, 5, tzinfo=timezone.utc)
    assert summary["sj"]["metric_count"] == 1


def test_percentile_range_rejects_unordered_quartiles():
    """Verify a range whose reference points are out of order is rejected."""
    with pytest.raises(DataValidationError):
        PercentileRange(
            test_type="cmj",
            metric_name="jumpHeight",
            p25=3.0,
            p50=2.0,
            p75=4.0,
            min_value=0.0,
            max_value=5.0,
            sample_size=10,
            last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )


def test_percentile_range_rejects_empty_sample():
    """Verify a range cannot claim zero samples."""
    with pytest.raises(DataValidationError):
        PercentileRange(
            test_type="cmj",
            metric_name="jumpHeight",
            p25=0.0,
            p50=0.0,
            p75=0.0,
            min_value=0.0,
            max_value=0.0,
            sample_size=0,
            last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
