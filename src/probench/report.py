"""Plain-text rendering of athlete comparison results."""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import (
    TIER_INSUFFICIENT_DATA,
    Asymmetry,
    AthleteProfile,
    MetricRanking,
    TestComparison,
)
from .stats import clamp_percentile

_OVERALL_LABELS: Dict[Optional[str], str] = {
    "elite": "Elite",
    "above_average": "Above Average",
    "average": "Average",
    "developing": "Developing",
    None: "N/A",
}


def _ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def format_percentile(ranking: MetricRanking) -> str:
    """Format a ranking's percentile for display.

    Returns ``"N/A"`` for insufficient data; otherwise the percentile clamped to
    ``[0, 100]`` with an ordinal suffix, e.g. ``"88th"``.
    """
    if ranking.tier == TIER_INSUFFICIENT_DATA or ranking.percentile is None:
        return "N/A"
    clamped = clamp_percentile(ranking.percentile) or 0
    return _ordinal(int(clamped))


def format_value(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}"


def format_asymmetry(asymmetry: Asymmetry) -> str:
    """Format an asymmetry as e.g. ``"4.9% L (green)"``."""
    return f"{asymmetry.percentage:.1f}% {asymmetry.dominant_side} ({asymmetry.color})"


def _test_section(comparison: TestComparison) -> List[str]:
    lines = [
        f"{comparison.test_type.upper()} Test",
        f"   Overall: {_OVERALL_LABELS.get(comparison.overall_rank, comparison.overall_rank)}",
    ]
    if not comparison.metrics:
        lines.append("   No professional benchmarks available")

    for metric_name, ranking in comparison.metrics.items():
        lines.append(
            f"   {metric_name}: {format_value(ranking.value)}"
            f" | {format_percentile(ranking)} percentile | {ranking.label}"
        )

    for metric_name, asymmetry in comparison.asymmetries.items():
        lines.append(f"   {metric_name} asymmetry: {format_asymmetry(asymmetry)}")
    return lines


def generate_report(athlete_name: str, profile: AthleteProfile) -> str:
    """Generate a human-readable benchmark report for one athlete.

    The report lists each compared test with per-metric percentiles, followed
    by strengths, focus areas and the overall summary sentence.

    Args:
        athlete_name: Athlete display name.
        profile: Result of ``ComparisonEngine.compare_profile``.

    Returns:
        Formatted multi-line text report.
    """
    lines = [
        f"Athlete: {athlete_name}",
        "Professional Benchmark Report",
    ]

    for comparison in profile.tests:
        lines.append("")
        lines.extend(_test_section(comparison))

    lines.append("")
    lines.append("Strengths")
    lines.extend(f"   - {message}" for message in profile.strengths or ["None identified"])
    lines.append("")
    lines.append("Focus Areas")
    lines.extend(f"   - {message}" for message in profile.improvements or ["None identified"])
    lines.append("")
    lines.append(f"Summary: {profile.overall_summary}")

    return "\n".join(lines)


def generate_summary_report(summary: Dict[str, Dict[str, object]]) -> str:
    """Render the per-test-type output of ``summarize_ranges``."""
    if not summary:
        return "No percentile ranges stored. Run the sync command first."

    lines = ["Percentile ranges by test type"]
    for test_type, entry in summary.items():
        lines.append(
            f"   {test_type.upper()}: {entry['metric_count']} metrics"
            f" (last updated {entry['last_updated']})"
        )
    return "\n".join(lines)
