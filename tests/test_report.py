"""Tests for plain-text report rendering."""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from probench.comparison import SUMMARY_STRONG, rank
from probench.models import AthleteProfile, Asymmetry, PercentileRange, TestComparison
from probench.report import format_percentile, generate_report, generate_summary_report


def _range() -> PercentileRange:
    return PercentileRange(
        test_type="cmj",
        metric_name="jumpHeight",
        p25=10.0,
        p50=20.0,
        p75=30.0,
        min_value=0.0,
        max_value=40.0,
        sample_size=25,
        last_updated=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


def test_format_percentile_handles_missing_and_out_of_range_values():
    """Verify display percentiles show N/A for no data and are clamped to [0, 100]."""
    assert format_percentile(rank(None, _range())) == "N/A"
    assert format_percentile(rank(35, _range())) == "88th"
    assert format_percentile(rank(-100, _range())) == "0th"
    assert format_percentile(rank(60, _range())) == "100th"


def test_format_percentile_ordinal_suffixes():
    """Verify ordinal suffixes including the teens."""
    reference = _range()
    expected = {0.4: "1st", 0.8: "2nd", 1.2: "3rd", 1.6: "4th", 4.4: "11th", 5.2: "13th", 8.8: "22nd"}

    for value, label in expected.items():
        assert format_percentile(rank(value, reference)) == label


def test_generate_report_contains_tests_insights_and_summary():
    """Verify the report lists each test, its metrics, insights and the summary line."""
    elite = rank(35, _range(), "jumpHeight")
    comparison = TestComparison(
        test_type="cmj",
        metrics={"jumpHeight": elite},
        overall_rank="elite",
    )
    empty = TestComparison(test_type="ppu")
    profile = AthleteProfile(
        tests=[comparison, empty],
        strengths=["jumpHeight: Elite level (top 25% of pros)"],
        improvements=[],
        overall_summary=SUMMARY_STRONG,
    )

    report = generate_report("Jane Doe", profile)

    assert "Athlete: Jane Doe" in report
    assert "Professional Benchmark Report" in report
    assert "CMJ Test" in report
    assert "   Overall: Elite" in report
    assert "   jumpHeight: 35.00 | 88th percentile | Elite" in report
    assert "PPU Test" in report
    assert "   Overall: N/A" in report
    assert "   No professional benchmarks available" in report
    assert "   - jumpHeight: Elite level (top 25% of pros)" in report
    assert "Focus Areas\n   - None identified" in report
    assert report.endswith(f"Summary: {SUMMARY_STRONG}")


def test_generate_summary_report_lists_test_types():
    """Verify the stored-range summary lists counts per test type."""
    report = generate_summary_report(
        {"cmj": {"metric_count": 12, "last_updated": datetime(2026, 1, 5, tzinfo=timezone.utc)}}
    )

    assert "CMJ: 12 metrics" in report
    assert generate_summary_report({}).startswith("No percentile ranges stored")


def test_generate_report_lists_bilateral_asymmetry():
    """Verify left/right asymmetries are rendered under their test, even without benchmarks."""
    comparison = TestComparison(
        test_type="slcmj",
        asymmetries={"jumpHeight": Asymmetry(percentage=4.9, dominant_side="L", color="green")},
    )
    profile = AthleteProfile(tests=[comparison], overall_summary=SUMMARY_STRONG)

    report = generate_report("Jane Doe", profile)

    assert "SLCMJ Test" in report
    assert "   No professional benchmarks available\n   jumpHeight asymmetry: 4.9% L (green)" in report


def test_format_percentile_clamps_extreme_rankings():
    """Verify overflow-pinned percentiles still display inside [0, 100]."""
    assert format_percentile(rank(1e308, _range())) == "100th"
    assert format_percentile(rank(-1e308, _range())) == "0th"
