"""Tracked test types, their metrics and where professional samples live."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

# Metric paths tracked per test type. Dotted paths address nested records,
# e.g. ``left.jumpHeight`` for single-leg tests. Only higher-is-better metrics
# are tracked, so timings such as time to peak force are not.
TEST_METRICS: Dict[str, Tuple[str, ...]] = {
    "cmj": (
        "jumpHeight",
        "eccentricBrakingRFD",
        "forceAtZeroVelocity",
        "eccentricPeakForce",
        "concentricImpulse",
        "eccentricPeakVelocity",
        "concentricPeakVelocity",
        "eccentricPeakPower",
        "eccentricPeakPowerPerBM",
        "peakPower",
        "peakPowerPerBM",
        "rsiMod",
    ),
    "sj": (
        "jumpHeight",
        "forceAtPeakPower",
        "concentricPeakVelocity",
        "peakPower",
        "peakPowerPerBM",
    ),
    "ht": ("rsi", "jumpHeight"),
    "slcmj": tuple(
        f"{side}.{metric}"
        for side in ("left", "right")
        for metric in (
            "jumpHeight",
            "eccentricPeakForce",
            "eccentricBrakingRFD",
            "concentricPeakForce",
            "eccentricPeakVelocity",
            "concentricPeakVelocity",
            "peakPower",
            "peakPowerPerBM",
            "rsiMod",
        )
    ),
    "imtp": (
        "peakVerticalForce",
        "peakVerticalForcePerBM",
        "forceAt100ms",
    ),
    "ppu": (
        "pushUpHeight",
        "eccentricPeakForce",
        "concentricPeakForce",
        "concentricRFDLeft",
        "concentricRFDRight",
        "eccentricBrakingRFD",
    ),
}

# Warehouse results table and metric -> column mapping for test types whose
# professional samples are stored in the warehouse.
WAREHOUSE_TABLES: Dict[str, Tuple[str, Dict[str, str]]] = {
    "cmj": (
        "cmj_results",
        {
            "jumpHeight": "JUMP_HEIGHT_Trial_cm",
            "eccentricBrakingRFD": "ECCENTRIC_BRAKING_RFD_Trial_N_per_s",
            "forceAtZeroVelocity": "FORCE_AT_ZERO_VELOCITY_Trial_N",
            "eccentricPeakForce": "PEAK_ECCENTRIC_FORCE_Trial_N",
            "concentricImpulse": "CONCENTRIC_IMPULSE_Trial_Ns",
            "eccentricPeakVelocity": "ECCENTRIC_PEAK_VELOCITY_Trial_m_per_s",
            "concentricPeakVelocity": "PEAK_TAKEOFF_VELOCITY_Trial_m_per_s",
            "eccentricPeakPower": "ECCENTRIC_PEAK_POWER_Trial_W",
            "eccentricPeakPowerPerBM": "BODYMASS_RELATIVE_ECCENTRIC_PEAK_POWER_Trial_W_per_kg",
            "peakPower": "PEAK_TAKEOFF_POWER_Trial_W",
            "peakPowerPerBM": "BODYMASS_RELATIVE_TAKEOFF_POWER_Trial_W_per_kg",
            "rsiMod": "RSI_MODIFIED_Trial_RSI_mod",
        },
    ),
    "sj": (
        "squat_jump_results",
        {
            "jumpHeight": "JUMP_HEIGHT_Trial_cm",
            "forceAtPeakPower": "FORCE_AT_PEAK_POWER_Trial_N",
            "concentricPeakVelocity": "VELOCITY_AT_PEAK_POWER_Trial_m_per_s",
            "peakPower": "PEAK_TAKEOFF_POWER_Trial_W",
            "peakPowerPerBM": "BODYMASS_RELATIVE_TAKEOFF_POWER_Trial_W_per_kg",
        },
    ),
    "imtp": (
        "imtp_results",
        {
            "peakVerticalForce": "PEAK_VERTICAL_FORCE_Trial_N",
            "peakVerticalForcePerBM": "ISO_BM_REL_FORCE_PEAK_Trial_N_per_kg",
            "forceAt100ms": "FORCE_AT_100MS_Trial_N",
        },
    ),
    "ppu": (
        "ppu_results",
        {
            "pushUpHeight": "PUSHUP_HEIGHT_INCHES_Trial_in",
            "eccentricPeakForce": "PEAK_ECCENTRIC_FORCE_Trial_N",
            "concentricPeakForce": "PEAK_CONCENTRIC_FORCE_Trial_N",
            "concentricRFDLeft": "CONCENTRIC_RFD_Left_N_per_s",
            "concentricRFDRight": "CONCENTRIC_RFD_Right_N_per_s",
            "eccentricBrakingRFD": "ECCENTRIC_BRAKING_RFD_Trial_N_per_s",
        },
    ),
}

PRO_GROUP_NAMES: Tuple[str, ...] = ("MLB/ MiLB", "Pro", "Pro Baseball", "MLB", "MiLB")
PRO_LOOKBACK_YEARS = 2


def normalize_test_type(test_type: str) -> str:
    """Test types are matched case-insensitively; metric names are not."""
    return test_type.strip().lower()


def extract_metric_value(record: Mapping[str, Any], metric_path: str) -> Optional[Any]:
    """Walk a dotted metric path through nested mappings.

    Returns ``None`` as soon as a segment is missing or the current value is
    not a mapping.
    """
    value: Any = record
    for key in metric_path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
        if value is None:
            return None
    return value
