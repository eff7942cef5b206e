"""Per-activity training stress (power TSS, HRSS and duration estimates)."""

import logging
from typing import Optional, Tuple

from ..models.activity import Activity
from ..models.plans import AthleteProfile
from .power import normalize_activity
from ..utils.rounding import round_half_up


logger = logging.getLogger(__name__)


# Duration/elevation estimate used when neither power nor HR is usable
ESTIMATE_TSS_PER_HOUR = 50.0
ESTIMATE_TSS_PER_300M_CLIMB = 10.0
ESTIMATE_BASELINE_WATTS = 150.0
ESTIMATE_MIN_MULTIPLIER = 0.5
ESTIMATE_MAX_MULTIPLIER = 1.8


def calculate_hrss(
    duration_min: float,
    avg_hr: float,
    threshold_hr: int,
    max_hr: int,
    rest_hr: int,
) -> Optional[float]:
    """
    Heart Rate Stress Score - TSS equivalent for HR-based training.
    Uses normalized HR and intensity factor.

    Args:
        duration_min: Duration of activity in minutes
        avg_hr: Average heart rate during activity
        threshold_hr: Lactate threshold heart rate
        max_hr: Maximum heart rate
        rest_hr: Resting heart rate

    Returns:
        HRSS value (similar scale to TSS: 100 = 1 hour at threshold),
        or None if the HR profile is inconsistent
    """
    hr_reserve = max_hr - rest_hr
    if hr_reserve <= 0 or duration_min <= 0:
        return None

    normalized_hr = (avg_hr - rest_hr) / hr_reserve
    normalized_hr = max(0, min(1, normalized_hr))

    threshold_reserve_ratio = (threshold_hr - rest_hr) / hr_reserve
    if threshold_reserve_ratio <= 0:
        return None

    intensity_factor = normalized_hr / threshold_reserve_ratio

    # ~100 HRSS for 1 hour at threshold
    hrss = (duration_min * (intensity_factor ** 2)) / 60 * 100
    return round_half_up(hrss, 1)


def estimate_tss_from_duration(
    duration_sec: float,
    elevation_gain_m: Optional[float] = None,
    avg_power: Optional[float] = None,
) -> Optional[int]:
    """
    Rough TSS estimate for activities without power or HR data.

    Base of 50 TSS/hour plus ~10 TSS per 300m of climbing, scaled by
    average watts relative to a 150W endurance baseline when known.

    Args:
        duration_sec: Moving time in seconds
        elevation_gain_m: Total climbing in metres
        avg_power: Average power in watts, if recorded

    Returns:
        Estimated TSS, or None without a duration
    """
    if not duration_sec or duration_sec <= 0:
        return None

    base_tss = duration_sec / 3600 * ESTIMATE_TSS_PER_HOUR
    elevation_factor = (elevation_gain_m or 0) / 300 * ESTIMATE_TSS_PER_300M_CLIMB

    multiplier = 1.0
    if avg_power and avg_power > 0:
        multiplier = min(
            ESTIMATE_MAX_MULTIPLIER,
            max(ESTIMATE_MIN_MULTIPLIER, avg_power / ESTIMATE_BASELINE_WATTS),
        )

    return round_half_up((base_tss + elevation_factor) * multiplier)


def resolve_activity_stress(
    activity: Activity,
    ftp: Optional[float],
    profile: Optional[AthleteProfile] = None,
    **power_options,
) -> Tuple[float, str]:
    """
    Resolve the training stress one activity contributes to its day.

    Sources are tried in order: power/device TSS from the normalizer,
    heart-rate stress (needs a full HR profile), then the duration and
    elevation estimate.

    Args:
        activity: The completed activity
        ftp: Athlete FTP in watts (None if unknown)
        profile: Athlete profile, used for the HR fallback
        **power_options: Extra keyword arguments for normalize_activity

    Returns:
        (stress, source) where source is "device", "power",
        "heart_rate", "estimated" or "none"
    """
    metrics = normalize_activity(activity, ftp, **power_options)
    if metrics.tss is not None:
        return float(metrics.tss), "device" if metrics.source == "device" else "power"

    if profile is not None and profile.has_hr_profile and activity.avg_hr:
        hrss = calculate_hrss(
            duration_min=activity.duration_min,
            avg_hr=activity.avg_hr,
            threshold_hr=profile.threshold_hr,
            max_hr=profile.max_hr,
            rest_hr=profile.rest_hr,
        )
        if hrss is not None:
            return hrss, "heart_rate"

    estimate = estimate_tss_from_duration(
        activity.duration_sec,
        activity.elevation_gain_m,
        activity.avg_power,
    )
    if estimate is not None:
        logger.debug("Activity %s has no power/HR stress; using duration estimate %d", activity.id, estimate)
        return float(estimate), "estimated"

    return 0.0, "none"
