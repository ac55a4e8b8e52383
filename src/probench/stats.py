"""Statistics helpers for professional reference ranges.

This module provides utilities for:
- Computing linear-interpolation percentiles from pre-sorted samples.
- Summarising a metric's samples into min, max, P25, P50, P75 and count.
- Left/right asymmetry for bilateral metrics.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Dict, Iterable, List, Optional

from .models import Asymmetry


def is_finite_number(value: Any) -> bool:
    """Return ``True`` for real, finite numbers. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers too large for a float.
        return False


def calculate_percentile(sorted_values: List[float], p: float) -> Optional[float]:
    """Calculate a percentile using linear interpolation.

    The input sequence is expected to already be sorted in ascending order.
    The position of percentile ``p`` is ``(n - 1) * p / 100`` and the result is
    interpolated between the order statistics either side of it:
    - Empty input returns ``None``.
    - ``p <= 0`` returns the first value.
    - ``p >= 100`` returns the last value.

    Args:
        sorted_values: Sorted numeric samples.
        p: Percentile in the inclusive range ``[0, 100]``.

    Returns:
        Percentile value as ``float`` or ``None`` when input is empty.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    if p <= 0:
        return float(sorted_values[0])

    if p >= 100:
        return float(sorted_values[-1])

    position = (len(sorted_values) - 1) * (p / 100.0)
    lower_index = math.floor(position)
    upper_index = math.ceil(position)

    if lower_index == upper_index:
        return float(sorted_values[int(position)])

    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return lower_value + (upper_value - lower_value) * (position - lower_index)


def clean_samples(values: Iterable[Any]) -> List[float]:
    """Drop missing, non-numeric and non-finite values and sort the rest."""
    return sorted(float(value) for value in values if is_finite_number(value))


def compute_range(values: Iterable[Any]) -> Optional[Dict[str, float]]:
    """Compute min, max, P25, P50, P75 and sample size for one metric.

    Samples are cleaned with :func:`clean_samples` before any statistic is
    taken, so the caller may pass raw warehouse values.

    Returns:
        Dictionary with keys ``min``, ``max``, ``p25``, ``p50``, ``p75`` and
        ``sample_size``, or ``None`` when no valid samples remain.
    """
    samples = clean_samples(values)
    if not samples:
        return None

    return {
        "min": samples[0],
        "max": samples[-1],
        "p25": calculate_percentile(samples, 25),
        "p50": calculate_percentile(samples, 50),
        "p75": calculate_percentile(samples, 75),
        "sample_size": len(samples),
    }


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards positive infinity."""
    return int(math.floor(value + 0.5))


def clamp_percentile(percentile: Optional[float]) -> Optional[float]:
    """Clamp a percentile into ``[0, 100]`` for display."""
    if percentile is None:
        return None
    return max(0, min(100, percentile))


def calculate_asymmetry(left: Optional[float], right: Optional[float]) -> Optional[Asymmetry]:
    """Compute left/right asymmetry relative to the mean of both sides.

    Returns ``None`` when either side is missing or zero, or when both sides
    cancel out to a zero mean. Under 5% is ``green``, under 10% is ``yellow``
    and anything larger is ``red``.
    """
    if not left or not right:
        return None

    difference = abs(left - right)
    average = (left + right) / 2
    if average == 0:
        return None
    percentage = difference / abs(average) * 100
    if not math.isfinite(percentage):
        return None

    if percentage < 5:
        color = "green"
    elif percentage < 10:
        color = "yellow"
    else:
        color = "red"

    return Asymmetry(
        percentage=round(percentage, 1),
        dominant_side="L" if left > right else "R",
        color=color,
    )
