"""Cycling power metrics (NP, IF, VI, TSS) and device data sanitizing."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..models.activity import Activity
from ..utils.rounding import round_half_up


logger = logging.getLogger(__name__)


# Max power at or above this is a device error code (e.g. 65535), not data
POWER_SENTINEL_WATTS = 2500.0

# NP estimate from average/max power
NP_MAX_BOOST = 0.25
NP_BOOST_FACTOR = 0.1

# NP/avg multipliers when max power is unusable
VARIABILITY_MULTIPLIERS: Dict[str, float] = {
    "steady": 1.03,
    "moderate": 1.08,
    "variable": 1.15,
    "highly_variable": 1.20,
}
DEFAULT_VARIABILITY = "moderate"


@dataclass
class NormalizedMetrics:
    """
    Comparable training-stress inputs for one activity.

    Any field is None when its inputs were missing. ``source`` records where
    the TSS came from: "device" (trusted device value), "estimated" (derived
    from average/max power) or None (no TSS).
    """

    normalized_power: Optional[float] = None
    intensity_factor: Optional[float] = None
    variability_index: Optional[float] = None
    tss: Optional[int] = None
    corrupted: bool = False
    source: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "normalized_power": self.normalized_power,
            "intensity_factor": self.intensity_factor,
            "variability_index": self.variability_index,
            "tss": self.tss,
            "corrupted": self.corrupted,
            "source": self.source,
        }


def _positive(value: Optional[float]) -> Optional[float]:
    """Return the value if it is a usable positive number, else None."""
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or value <= 0:
        return None
    return value


def is_power_sentinel(
    max_power: Optional[float],
    sentinel_watts: float = POWER_SENTINEL_WATTS,
) -> bool:
    """
    Check whether a max-power reading is a device error code.

    Head units report 65535 (and similar) when the power meter drops out.
    No human sustains a 2500W peak, so anything at or above the sentinel
    threshold is treated as corrupted.

    Args:
        max_power: Max power reading in watts
        sentinel_watts: Threshold at or above which the reading is invalid

    Returns:
        True if the reading is a sentinel value
    """
    return max_power is not None and max_power >= sentinel_watts


def estimate_normalized_power(
    avg_power: Optional[float],
    max_power: Optional[float] = None,
    variability: Optional[str] = None,
    sentinel_watts: float = POWER_SENTINEL_WATTS,
    max_boost: float = NP_MAX_BOOST,
    boost_factor: float = NP_BOOST_FACTOR,
    multipliers: Optional[Dict[str, float]] = None,
) -> Optional[float]:
    """
    Estimate Normalized Power from summary fields.

    With a valid max power the average is scaled by
    ``1 + min(max_boost, (max/avg - 1) * boost_factor)``. Without one, a
    fixed multiplier for the ride's variability tier is used
    (``moderate`` when no tier is given).

    Args:
        avg_power: Average power in watts
        max_power: Max power in watts (ignored if missing or a sentinel)
        variability: Variability tier name (steady, moderate, variable,
                     highly_variable)
        sentinel_watts: Sentinel threshold for max power
        max_boost: Upper bound on the max-power boost
        boost_factor: Weight of the max/avg ratio
        multipliers: Tier multipliers (defaults to VARIABILITY_MULTIPLIERS)

    Returns:
        Estimated NP in watts (rounded), or None without average power
    """
    avg = _positive(avg_power)
    if avg is None:
        return None

    peak = _positive(max_power)
    if peak is not None and not is_power_sentinel(peak, sentinel_watts):
        # A max below average is a recording glitch; NP never drops below avg
        boost = max(0.0, min(max_boost, (peak / avg - 1) * boost_factor))
        return float(round_half_up(avg * (1 + boost)))

    multipliers = multipliers or VARIABILITY_MULTIPLIERS
    tier = variability if variability in multipliers else DEFAULT_VARIABILITY
    multiplier = multipliers.get(tier, VARIABILITY_MULTIPLIERS[DEFAULT_VARIABILITY])
    return float(round_half_up(avg * multiplier))


def calculate_normalized_power(power_samples: List[int], sample_rate_hz: int = 1) -> Optional[float]:
    """
    Calculate Normalized Power (NP) from a power stream.

    Formula: NP = (mean(rolling_30s_power^4))^0.25

    Args:
        power_samples: List of power values in watts (one per sample)
        sample_rate_hz: Sample rate in Hz (samples per second), default 1

    Returns:
        Normalized Power in watts, or None if there is too little data
    """
    if not power_samples or sample_rate_hz <= 0:
        return None

    window_size = 30 * sample_rate_hz

    if len(power_samples) < window_size:
        # Short streams use what they have, but only if a few seconds exist
        if len(power_samples) < 3 * sample_rate_hz:
            return None
        window_size = len(power_samples)

    # Running sum keeps the rolling average linear in stream length
    window_sum = float(sum(power_samples[:window_size]))
    fourth_power_sum = (window_sum / window_size) ** 4
    count = 1
    for i in range(window_size, len(power_samples)):
        window_sum += power_samples[i] - power_samples[i - window_size]
        fourth_power_sum += (window_sum / window_size) ** 4
        count += 1

    normalized_power = (fourth_power_sum / count) ** 0.25
    return round_half_up(normalized_power, 1)


def calculate_intensity_factor(
    normalized_power: Optional[float],
    ftp: Optional[float],
) -> Optional[float]:
    """
    Calculate Intensity Factor (IF).

    Formula: IF = NP / FTP

    Args:
        normalized_power: Normalized Power in watts
        ftp: Functional Threshold Power in watts

    Returns:
        IF rounded to 2 decimals, or None if either input is missing
    """
    np_watts = _positive(normalized_power)
    threshold = _positive(ftp)
    if np_watts is None or threshold is None:
        return None
    return round_half_up(np_watts / threshold, 2)


def calculate_variability_index(
    normalized_power: Optional[float],
    avg_power: Optional[float],
) -> Optional[float]:
    """
    Calculate Variability Index (VI).

    VI = 1.0 means perfectly steady power. Typical values:
    - <1.05: Very steady (time trial, indoor trainer)
    - 1.05-1.15: Moderate variability (road race, group ride)
    - >1.15: High variability (criterium, mountain bike)

    Returns:
        VI rounded to 2 decimals, or None if either input is missing
    """
    np_watts = _positive(normalized_power)
    avg = _positive(avg_power)
    if np_watts is None or avg is None:
        return None
    return round_half_up(np_watts / avg, 2)


def calculate_tss(
    duration_sec: Optional[float],
    normalized_power: Optional[float],
    intensity_factor: Optional[float],
    ftp: Optional[float],
) -> Optional[int]:
    """
    Calculate Training Stress Score from power.

    A TSS of 100 represents one hour at FTP.

    Formula: TSS = (duration_sec * NP * IF) / (FTP * 3600) * 100

    Returns:
        TSS rounded to the nearest integer, or None if any input is missing
    """
    duration = _positive(duration_sec)
    np_watts = _positive(normalized_power)
    factor = _positive(intensity_factor)
    threshold = _positive(ftp)
    if None in (duration, np_watts, factor, threshold):
        return None

    tss = (duration * np_watts * factor) / (threshold * 3600) * 100
    return round_half_up(tss)


def normalize_activity(
    activity: Activity,
    ftp: Optional[float],
    variability: Optional[str] = None,
    sentinel_watts: float = POWER_SENTINEL_WATTS,
    max_boost: float = NP_MAX_BOOST,
    boost_factor: float = NP_BOOST_FACTOR,
    multipliers: Optional[Dict[str, float]] = None,
) -> NormalizedMetrics:
    """
    Produce comparable NP/IF/VI/TSS for an activity.

    Device-reported values are used when present, unless the max-power
    reading is a sentinel: then all device NP/IF/TSS values are presumed
    corrupted and replaced by estimates from average power.

    Args:
        activity: The completed activity
        ftp: Athlete FTP in watts (None if unknown)
        variability: Optional variability tier for the NP fallback

    Returns:
        NormalizedMetrics; fields are None where inputs are missing
    """
    corrupted = is_power_sentinel(activity.max_power, sentinel_watts)
    if corrupted:
        logger.warning(
            "Activity %s max power %.0fW is a device sentinel; discarding device NP/IF/TSS",
            activity.id, activity.max_power,
        )

    trusted_np = None if corrupted else _positive(activity.device_normalized_power)
    trusted_if = None if corrupted else _positive(activity.device_intensity_factor)
    trusted_tss = None if corrupted else _positive(activity.device_tss)

    normalized_power = trusted_np
    if normalized_power is None:
        normalized_power = estimate_normalized_power(
            activity.avg_power,
            activity.max_power,
            variability=variability,
            sentinel_watts=sentinel_watts,
            max_boost=max_boost,
            boost_factor=boost_factor,
            multipliers=multipliers,
        )

    intensity_factor = (
        round_half_up(trusted_if, 2) if trusted_if is not None
        else calculate_intensity_factor(normalized_power, ftp)
    )

    if trusted_tss is not None:
        tss: Optional[int] = round_half_up(trusted_tss)
        source: Optional[str] = "device"
    else:
        tss = calculate_tss(activity.duration_sec, normalized_power, intensity_factor, ftp)
        source = "estimated" if tss is not None else None

    return NormalizedMetrics(
        normalized_power=normalized_power,
        intensity_factor=intensity_factor,
        variability_index=calculate_variability_index(normalized_power, activity.avg_power),
        tss=tss,
        corrupted=corrupted,
        source=source,
    )
