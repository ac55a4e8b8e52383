"""Domain models for professional-benchmark comparison.

Reference ranges are built in batch and read back by the comparison engine;
ranking results are immutable values created per request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import DataValidationError

TIER_ELITE = "elite"
TIER_ABOVE_AVERAGE = "above_average"
TIER_AVERAGE = "average"
TIER_BELOW_AVERAGE = "below_average"
TIER_INSUFFICIENT_DATA = "insufficient_data"

OVERALL_DEVELOPING = "developing"

INSIGHT_STRENGTH = "strength"
INSIGHT_IMPROVEMENT = "improvement"

# tier -> (color, label)
TIER_DISPLAY: Dict[str, Tuple[str, str]] = {
    TIER_ELITE: ("green", "Elite"),
    TIER_ABOVE_AVERAGE: ("lightgreen", "Above Average"),
    TIER_AVERAGE: ("yellow", "Average"),
    TIER_BELOW_AVERAGE: ("red", "Needs Improvement"),
    TIER_INSUFFICIENT_DATA: ("gray", "No Data"),
}


@dataclass(frozen=True, slots=True)
class PercentileRange:
    """Reference distribution for one ``(test_type, metric_name)`` key."""

    test_type: str
    metric_name: str
    p25: float
    p50: float
    p75: float
    min_value: float
    max_value: float
    sample_size: int
    last_updated: datetime

    def __post_init__(self) -> None:
        if self.sample_size <= 0:
            raise DataValidationError(
                f"Percentile range {self.key} must be built from at least one sample."
            )
        if not self.min_value <= self.p25 <= self.p50 <= self.p75 <= self.max_value:
            raise DataValidationError(
                f"Percentile range {self.key} is not ordered: "
                f"min={self.min_value}, p25={self.p25}, p50={self.p50}, "
                f"p75={self.p75}, max={self.max_value}"
            )

    @property
    def key(self) -> Tuple[str, str]:
        return (self.test_type, self.metric_name)


@dataclass(frozen=True, slots=True)
class ProComparison:
    """Snapshot of the reference points a ranking was computed against."""

    p25: float
    p50: float
    p75: float
    min: float
    max: float

    @classmethod
    def from_range(cls, percentile_range: PercentileRange) -> "ProComparison":
        return cls(
            p25=percentile_range.p25,
            p50=percentile_range.p50,
            p75=percentile_range.p75,
            min=percentile_range.min_value,
            max=percentile_range.max_value,
        )


@dataclass(frozen=True, slots=True)
class MetricRanking:
    """Outcome of ranking one athlete value against its reference range."""

    metric_name: str
    value: Optional[float]
    percentile: Optional[int]
    tier: str
    color: str
    label: str
    pro_comparison: Optional[ProComparison] = None


@dataclass(frozen=True, slots=True)
class Insight:
    """A generated statement flagging a metric as a strength or focus area."""

    metric_name: str
    type: str
    message: str


@dataclass(slots=True)
class TestComparison:
    """All metric rankings for one test of one athlete."""

    __test__ = False

    test_type: str
    metrics: Dict[str, MetricRanking] = field(default_factory=dict)
    insights: List[Insight] = field(default_factory=list)
    overall_rank: Optional[str] = None
    # Keyed by the metric name without its ``left.``/``right.`` prefix.
    asymmetries: Dict[str, Asymmetry] = field(default_factory=dict)


@dataclass(slots=True)
class AthleteTest:
    """Raw metric values for one athlete test, keyed by exact metric name."""

    test_type: str
    metric_values: Optional[Mapping[str, Optional[float]]]


@dataclass(slots=True)
class AthleteProfile:
    """Cross-test summary derived from per-test comparisons."""

    tests: List[TestComparison] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    overall_summary: str = ""


@dataclass(slots=True)
class BuildSummary:
    """End-of-run counters for a reference-range build."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    failed_metrics: List[Tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Asymmetry:
    """Left/right imbalance for a bilateral metric."""

    percentage: float
    dominant_side: str
    color: str
