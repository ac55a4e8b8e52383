"""Tests for building and persisting percentile reference ranges."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from probench.builder import ReferenceBuilder
from probench.comparison import rank
from probench.errors import StoreError
from probench.store import InMemoryReferenceStore

_FIRST_RUN = datetime(2026, 1, 1, tzinfo=timezone.utc)
_SECOND_RUN = datetime(2026, 2, 1, tzinfo=timezone.utc)


def _builder(store=None, when: datetime = _FIRST_RUN) -> ReferenceBuilder:
    store = store if store is not None else InMemoryReferenceStore()
    return ReferenceBuilder(store=store, clock=lambda: when)


def test_build_range_computes_quartiles_and_metadata():
    """Verify a range carries quartiles, extremes, sample size and build time."""
    percentile_range = _builder().build_range("CMJ", "jumpHeight", [10, 20, 20, 30, 40])

    assert percentile_range.test_type == "cmj"
    assert percentile_range.metric_name == "jumpHeight"
    assert (percentile_range.p25, percentile_range.p50, percentile_range.p75) == (20.0, 20.0, 30.0)
    assert (percentile_range.min_value, percentile_range.max_value) == (10.0, 40.0)
    assert percentile_range.sample_size == 5
    assert percentile_range.last_updated == _FIRST_RUN


def test_build_range_without_usable_values_returns_none():
    """Verify insufficient data produces no range instead of zeros."""
    assert _builder().build_range("cmj", "jumpHeight", []) is None
    assert _builder().build_range("cmj", "jumpHeight", [None, float("nan")]) is None


def test_build_then_rank_reproduces_median():
    """Verify ranking the builder's own median lands on the 50th percentile."""
    percentile_range = _builder().build_range("cmj", "jumpHeight", [10, 20, 20, 30, 40])

    ranking = rank(20, percentile_range)

    assert ranking.percentile == 50
    assert ranking.pro_comparison.p50 == percentile_range.p50


def test_sync_metric_replaces_previous_range_wholesale():
    """Verify re-syncing a key leaves exactly one row with the new values."""
    store = InMemoryReferenceStore()
    _builder(store, _FIRST_RUN).sync_metric("cmj", "jumpHeight", [10, 20, 30])
    _builder(store, _SECOND_RUN).sync_metric("cmj", "jumpHeight", [40, 50, 60, 70])

    assert len(store) == 1
    stored = store.get_percentile_range("cmj", "jumpHeight")
    assert stored.sample_size == 4
    assert stored.min_value == 40.0
    assert stored.last_updated == _SECOND_RUN


def test_sync_metric_without_values_does_not_write():
    """Verify nothing is upserted when a metric has no usable samples."""
    store = Mock()

    result = _builder(store).sync_metric("cmj", "jumpHeight", [None])

    assert result is None
    store.upsert_percentile_range.assert_not_called()


def test_sync_test_type_reads_nested_metric_paths():
    """Verify dotted metric paths pull values from nested records."""
    store = InMemoryReferenceStore()
    records = [
        {"left": {"jumpHeight": 20.0}, "right": {"jumpHeight": 22.0}},
        {"left": {"jumpHeight": 24.0}, "right": {}},
        {"left": {"jumpHeight": 28.0}},
    ]

    summary = _builder(store).sync_test_type(
        "slcmj", records, ["left.jumpHeight", "right.jumpHeight", "left.rsiMod"]
    )

    assert (summary.succeeded, summary.failed, summary.skipped) == (2, 0, 1)
    assert store.get_percentile_range("slcmj", "left.jumpHeight").sample_size == 3
    assert store.get_percentile_range("slcmj", "right.jumpHeight").sample_size == 1
    assert store.get_percentile_range("slcmj", "left.rsiMod") is None


def test_run_continues_after_a_metric_fails_to_store():
    """Verify one failed upsert is counted and the rest of the batch still runs."""
    stored = []

    def _upsert(percentile_range):
        if percentile_range.metric_name == "peakPower":
            raise StoreError("write failed")
        stored.append(percentile_range.key)

    store = Mock()
    store.upsert_percentile_range.side_effect = _upsert
    records = {
        "cmj": [
            {"jumpHeight": 40.0, "peakPower": 4000.0, "rsiMod": 0.5},
            {"jumpHeight": 44.0, "peakPower": 4400.0, "rsiMod": 0.6},
        ],
    }

    summary = _builder(store).run(
        records, catalog={"cmj": ("jumpHeight", "peakPower", "rsiMod")}
    )

    assert summary.succeeded == 2
    assert summary.failed == 1
    assert summary.failed_metrics == [("cmj", "peakPower")]
    assert stored == [("cmj", "jumpHeight"), ("cmj", "rsiMod")]


def test_run_skips_test_types_without_records():
    """Verify test types with no professional records are skipped."""
    store = InMemoryReferenceStore()

    summary = _builder(store).run(
        {"sj": [{"jumpHeight": 30.0}], "imtp": []},
        catalog={"sj": ("jumpHeight",), "imtp": ("peakVerticalForce",), "ppu": ("pushUpHeight",)},
    )

    assert (summary.succeeded, summary.failed, summary.skipped) == (1, 0, 0)
    assert [item.key for item in store.list_percentile_ranges()] == [("sj", "jumpHeight")]


def test_run_does_not_swallow_unexpected_errors():
    """Verify only engine errors are isolated per metric; programming errors propagate."""
    store = Mock()
    store.upsert_percentile_range.side_effect = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        _builder(store).run({"sj": [{"jumpHeight": 30.0}]}, catalog={"sj": ("jumpHeight",)})


def test_run_ignores_integers_too_large_for_float():
    """Verify an oversized integer sample is dropped without aborting the other metrics."""
    store = InMemoryReferenceStore()
    records = {
        "cmj": [
            {"jumpHeight": 10**400, "peakPower": 4000.0},
            {"jumpHeight": 40.0, "peakPower": 4400.0},
        ],
    }

    summary = _builder(store).run(records, catalog={"cmj": ("jumpHeight", "peakPower")})

    assert (summary.succeeded, summary.failed, summary.skipped) == (2, 0, 0)
    assert store.get_percentile_range("cmj", "jumpHeight").sample_size == 1
    assert store.get_percentile_range("cmj", "peakPower").sample_size == 2
