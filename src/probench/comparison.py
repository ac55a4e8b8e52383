"""Athlete-to-professional comparison and ranking.

A value is placed on the reference distribution by linear interpolation
inside whichever quartile band it falls in:

    value >= p75         -> 75..100  elite
    p50 <= value < p75   -> 50..75   above_average
    p25 <= value < p50   -> 25..50   average
    value < p25          ->  0..25   below_average

Values outside ``[min, max]`` extrapolate past 0 or 100; clamping is left to
presentation code.
"""

from __future__ import annotations

import logging
import math
import sys
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .catalog import normalize_test_type
from .errors import StoreError
from .models import (
    INSIGHT_IMPROVEMENT,
    INSIGHT_STRENGTH,
    OVERALL_DEVELOPING,
    TIER_ABOVE_AVERAGE,
    TIER_AVERAGE,
    TIER_BELOW_AVERAGE,
    TIER_DISPLAY,
    TIER_ELITE,
    TIER_INSUFFICIENT_DATA,
    Asymmetry,
    AthleteProfile,
    AthleteTest,
    Insight,
    MetricRanking,
    PercentileRange,
    ProComparison,
    TestComparison,
)
from .stats import calculate_asymmetry, is_finite_number, round_half_up
from .store import ReferenceStore

logger = logging.getLogger(__name__)

SUMMARY_ELITE = "Elite athlete with exceptional performance across multiple tests"
SUMMARY_STRONG = "Strong athlete performing above professional baseline"
SUMMARY_DEVELOPING = "Developing athlete with room for improvement in key areas"

_LEFT_PREFIX = "left."
_RIGHT_PREFIX = "right."


def _interpolate(value: float, lower: float, upper: float, base: float) -> float:
    """Scale ``value`` between two anchors onto a 25-point percentile band.

    A zero-width band resolves to its lower percentile when the value sits on
    or below the anchor and to its upper percentile otherwise. Results that
    overflow on extreme values are pinned to ``+/- sys.maxsize``.
    """
    if upper == lower:
        return base if value <= lower else base + 25

    percentile = base + (value - lower) / (upper - lower) * 25
    if math.isnan(percentile):
        return base
    if math.isinf(percentile):
        return math.copysign(sys.maxsize, percentile)
    return percentile


def rank(
    value: Any,
    percentile_range: Optional[PercentileRange],
    metric_name: str = "",
) -> MetricRanking:
    """Rank one athlete value against a professional reference range.

    Missing ranges and missing or non-numeric values give an
    ``insufficient_data`` ranking; this function does not raise for them.
    """
    if percentile_range is None or not is_finite_number(value):
        color, label = TIER_DISPLAY[TIER_INSUFFICIENT_DATA]
        return MetricRanking(
            metric_name=metric_name or (percentile_range.metric_name if percentile_range else ""),
            value=value if is_finite_number(value) else None,
            percentile=None,
            tier=TIER_INSUFFICIENT_DATA,
            color=color,
            label=label,
        )

    p25 = percentile_range.p25
    p50 = percentile_range.p50
    p75 = percentile_range.p75

    if value >= p75:
        percentile = _interpolate(value, p75, percentile_range.max_value, 75)
        tier = TIER_ELITE
    elif value >= p50:
        percentile = _interpolate(value, p50, p75, 50)
        tier = TIER_ABOVE_AVERAGE
    elif value >= p25:
        percentile = _interpolate(value, p25, p50, 25)
        tier = TIER_AVERAGE
    else:
        percentile = _interpolate(value, percentile_range.min_value, p25, 0)
        tier = TIER_BELOW_AVERAGE

    color, label = TIER_DISPLAY[tier]
    return MetricRanking(
        metric_name=metric_name or percentile_range.metric_name,
        value=float(value),
        percentile=round_half_up(percentile),
        tier=tier,
        color=color,
        label=label,
        pro_comparison=ProComparison.from_range(percentile_range),
    )


def overall_rank_for(percentiles: Iterable[Optional[float]]) -> Optional[str]:
    """Classify the mean of the available percentiles, or ``None`` if there are none."""
    valid = [percentile for percentile in percentiles if percentile is not None]
    if not valid:
        return None

    average = sum(valid) / len(valid)
    if average >= 75:
        return TIER_ELITE
    if average >= 50:
        return TIER_ABOVE_AVERAGE
    if average >= 25:
        return TIER_AVERAGE
    return OVERALL_DEVELOPING


def build_insight(ranking: MetricRanking) -> Optional[Insight]:
    """Return an insight for elite or below-average rankings only."""
    if ranking.tier == TIER_ELITE:
        return Insight(
            metric_name=ranking.metric_name,
            type=INSIGHT_STRENGTH,
            message=f"{ranking.metric_name}: Elite level (top 25% of pros)",
        )
    if ranking.tier == TIER_BELOW_AVERAGE:
        return Insight(
            metric_name=ranking.metric_name,
            type=INSIGHT_IMPROVEMENT,
            message=f"{ranking.metric_name}: Focus area - below pro baseline",
        )
    return None


def bilateral_asymmetries(metric_values: Mapping[str, Any]) -> Dict[str, Asymmetry]:
    """Pair ``left.<metric>`` with ``right.<metric>`` values and compute their asymmetry.

    Pairs where either side is missing, non-numeric or zero are left out.
    """
    asymmetries: Dict[str, Asymmetry] = {}
    for metric_name, left in metric_values.items():
        if not metric_name.startswith(_LEFT_PREFIX):
            continue

        base_name = metric_name[len(_LEFT_PREFIX):]
        right = metric_values.get(f"{_RIGHT_PREFIX}{base_name}")
        if not is_finite_number(left) or not is_finite_number(right):
            continue

        asymmetry = calculate_asymmetry(left, right)
        if asymmetry is not None:
            asymmetries[base_name] = asymmetry
    return asymmetries


def summarize_overall_ranks(overall_ranks: List[Optional[str]], test_count: int) -> str:
    """Pick the profile summary by strict majority over ``test_count`` tests."""
    elite_count = sum(1 for overall_rank in overall_ranks if overall_rank == TIER_ELITE)
    above_average_count = sum(
        1 for overall_rank in overall_ranks if overall_rank == TIER_ABOVE_AVERAGE
    )

    if elite_count > test_count / 2:
        return SUMMARY_ELITE
    if elite_count + above_average_count > test_count / 2:
        return SUMMARY_STRONG
    return SUMMARY_DEVELOPING


class ComparisonEngine:
    """Compares athlete tests against ranges read from an injected store."""

    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    def _load_ranges(self, test_type: str) -> Dict[str, PercentileRange]:
        """Fetch all ranges for a test in one lookup; a failed lookup counts as none found."""
        try:
            return self._store.get_all_ranges_for_test_type(test_type)
        except StoreError as exc:
            logger.warning(
                "Percentile range lookup failed; treating ranges as missing",
                extra={"test_type": test_type, "error": str(exc)},
            )
            return {}

    def compare_test(
        self,
        metric_values: Mapping[str, Any],
        test_type: str,
    ) -> TestComparison:
        """Rank every numeric metric that has a reference range.

        Metrics without a finite numeric value or without a stored range are
        left out of ``metrics`` entirely. Metric names must match the stored
        names exactly. Paired ``left.``/``right.`` values also get an
        asymmetry entry, whether or not they have a range.
        """
        comparison = TestComparison(test_type=test_type)
        ranges = self._load_ranges(normalize_test_type(test_type))

        for metric_name, value in metric_values.items():
            if not is_finite_number(value):
                continue

            percentile_range = ranges.get(metric_name)
            if percentile_range is None:
                continue

            ranking = rank(value, percentile_range, metric_name)
            comparison.metrics[metric_name] = ranking

            insight = build_insight(ranking)
            if insight is not None:
                comparison.insights.append(insight)

        comparison.overall_rank = overall_rank_for(
            ranking.percentile for ranking in comparison.metrics.values()
        )
        comparison.asymmetries = bilateral_asymmetries(metric_values)

        logger.debug(
            "Compared athlete test",
            extra={
                "test_type": test_type,
                "metrics_ranked": len(comparison.metrics),
                "insights": len(comparison.insights),
                "overall_rank": comparison.overall_rank,
            },
        )
        return comparison

    def compare_profile(self, tests: List[AthleteTest]) -> AthleteProfile:
        """Compare every test and summarise the athlete across them.

        Tests without metric values are skipped but still count towards the
        majority used for the summary sentence.
        """
        profile = AthleteProfile()

        for test in tests:
            if test.metric_values is None:
                continue

            comparison = self.compare_test(test.metric_values, test.test_type)
            profile.tests.append(comparison)

            for insight in comparison.insights:
                if insight.type == INSIGHT_STRENGTH:
                    profile.strengths.append(insight.message)
                elif insight.type == INSIGHT_IMPROVEMENT:
                    profile.improvements.append(insight.message)

        profile.overall_summary = summarize_overall_ranks(
            [comparison.overall_rank for comparison in profile.tests],
            len(tests),
        )
        return profile
