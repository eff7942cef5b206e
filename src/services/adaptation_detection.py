"""
Adaptation detection service for comparing planned vs actual workouts.

This service:
- Infers the workout category an activity actually trained
- Classifies the deviation from the planned workout
- Breaks down the training stimulus that was missed or gained
- Stores one adaptation per planned workout (upsert)
"""

import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config import EngineSettings, get_settings
from ..exceptions import AdaptationNotFoundError
from ..metrics.power import NormalizedMetrics, normalize_activity
from ..models.activity import Activity
from ..models.adaptation import (
    Adaptation,
    AdaptationAssessment,
    AdaptationType,
    StimulusAnalysis,
)
from ..models.plans import PlannedWorkout, TrainingContext, TrainingPhase
from ..utils.rounding import round_half_up
from .activity_matching import find_best_matching_activity


logger = logging.getLogger(__name__)


# Tolerance thresholds (fractions of the planned value)
DURATION_MATCH_TOLERANCE = 0.10      # within 10% = as planned
DURATION_DEVIATION_TOLERANCE = 0.15  # beyond 15% = truncated / extended
TSS_MATCH_TOLERANCE = 0.15           # within 15% = comparable stress
TSS_SIGNIFICANT_TOLERANCE = 0.25     # beyond 25% = upgraded / downgraded
STIMULUS_PCT_CAP = 500

DEFAULT_CATEGORY = "endurance"

# Higher = more intense
CATEGORY_INTENSITY_RANK: Dict[str, int] = {
    "rest": 0,
    "off": 0,
    "recovery": 1,
    "flexibility": 1,
    "core": 2,
    "strength": 2,
    "endurance": 3,
    "tempo": 4,
    "sweet_spot": 5,
    "threshold": 6,
    "climbing": 6,
    "vo2max": 7,
    "anaerobic": 8,
    "racing": 9,
}
DEFAULT_INTENSITY_RANK = 3

# Categories that can stand in for each other
SIMILAR_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "recovery": ("endurance", "flexibility"),
    "endurance": ("recovery", "tempo"),
    "tempo": ("endurance", "sweet_spot"),
    "sweet_spot": ("tempo", "threshold"),
    "threshold": ("sweet_spot", "vo2max"),
    "vo2max": ("threshold", "anaerobic"),
    "anaerobic": ("vo2max", "racing"),
    "climbing": ("threshold", "sweet_spot"),
}

# Upper bounds (exclusive) of intensity factor per category
IF_CATEGORY_BOUNDS: Tuple[Tuple[float, str], ...] = (
    (0.55, "recovery"),
    (0.75, "endurance"),
    (0.87, "tempo"),
    (0.94, "sweet_spot"),
    (1.05, "threshold"),
    (1.20, "vo2max"),
)

# Running: pace / threshold pace lower bounds (exclusive), slowest first
PACE_RATIO_BOUNDS: Tuple[Tuple[float, str], ...] = (
    (1.40, "recovery"),
    (1.20, "endurance"),
    (1.08, "tempo"),
    (0.98, "threshold"),
    (0.90, "vo2max"),
)

# Running without a threshold pace: min/km lower bounds (exclusive)
PACE_MIN_PER_KM_BOUNDS: Tuple[Tuple[float, str], ...] = (
    (7.0, "recovery"),
    (5.5, "endurance"),
    (4.8, "tempo"),
    (4.3, "threshold"),
    (3.8, "vo2max"),
)

# Running without pace: TSS per hour upper bounds (exclusive)
TSS_PER_HOUR_BOUNDS: Tuple[Tuple[float, str], ...] = (
    (35, "recovery"),
    (55, "endurance"),
    (75, "tempo"),
    (95, "threshold"),
)

HIGH_INTENSITY_CATEGORIES = frozenset({"threshold", "vo2max", "anaerobic"})


def _category_key(category: Any) -> str:
    """Plain string key for a category (enum or string)."""
    value = getattr(category, "value", category)
    return str(value) if value else DEFAULT_CATEGORY


# ============================================================================
# Category inference
# ============================================================================

def _infer_running_category(
    activity: Activity,
    tss: Optional[float],
    threshold_pace_sec: Optional[float],
) -> str:
    pace = activity.pace_sec_per_km

    if pace and threshold_pace_sec and threshold_pace_sec > 0:
        ratio = pace / threshold_pace_sec
        for lower_bound, category in PACE_RATIO_BOUNDS:
            if ratio > lower_bound:
                return category
        return "anaerobic"

    if pace:
        min_per_km = pace / 60
        for lower_bound, category in PACE_MIN_PER_KM_BOUNDS:
            if min_per_km > lower_bound:
                return category
        return "anaerobic"

    if tss and activity.duration_sec > 0:
        tss_per_hour = tss / (activity.duration_sec / 3600)
        for upper_bound, category in TSS_PER_HOUR_BOUNDS:
            if tss_per_hour < upper_bound:
                return category
        return "vo2max"

    return DEFAULT_CATEGORY


def infer_workout_category(
    activity: Activity,
    ftp: Optional[float] = None,
    metrics: Optional[NormalizedMetrics] = None,
    threshold_pace_sec: Optional[float] = None,
) -> str:
    """
    Infer the workout category an activity actually trained.

    Cycling uses the first intensity factor available: normalized IF
    (device or NP/FTP), then average power / FTP, then
    ``sqrt(TSS / (hours * 100))``. Running uses pace relative to threshold
    pace, then absolute pace, then TSS per hour.

    Args:
        activity: The completed activity
        ftp: Athlete FTP in watts
        metrics: Normalized metrics, if already computed
        threshold_pace_sec: Running threshold pace in seconds per km

    Returns:
        Category name (endurance when nothing is known)
    """
    metrics = metrics or normalize_activity(activity, ftp)

    if activity.is_running:
        return _infer_running_category(activity, metrics.tss, threshold_pace_sec)

    intensity_factor = metrics.intensity_factor

    if not intensity_factor and activity.avg_power and ftp and ftp > 0:
        intensity_factor = activity.avg_power / ftp

    if not intensity_factor and metrics.tss and activity.duration_sec > 0:
        hours = activity.duration_sec / 3600
        intensity_factor = math.sqrt(metrics.tss / (hours * 100))

    if not intensity_factor:
        return DEFAULT_CATEGORY

    for upper_bound, category in IF_CATEGORY_BOUNDS:
        if intensity_factor < upper_bound:
            return category
    return "anaerobic"


def is_similar_category(category1: Any, category2: Any) -> bool:
    """Check if two workout categories are equal or interchangeable."""
    first, second = _category_key(category1), _category_key(category2)
    if first == second:
        return True
    return (
        second in SIMILAR_CATEGORIES.get(first, ())
        or first in SIMILAR_CATEGORIES.get(second, ())
    )


def get_intensity_rank_delta(planned_type: Any, actual_type: Any) -> int:
    """Intensity rank difference; positive when the actual is harder."""
    planned_rank = CATEGORY_INTENSITY_RANK.get(_category_key(planned_type), DEFAULT_INTENSITY_RANK)
    actual_rank = CATEGORY_INTENSITY_RANK.get(_category_key(actual_type), DEFAULT_INTENSITY_RANK)
    return actual_rank - planned_rank


# ============================================================================
# Stimulus analysis
# ============================================================================

def calculate_stimulus_achieved(
    planned_tss: Optional[float],
    actual_tss: Optional[float],
    cap: int = STIMULUS_PCT_CAP,
) -> Optional[int]:
    """
    Percentage of the planned training stress that was achieved.

    Returns:
        ``actual / planned * 100`` rounded half up and clamped to [0, cap], or None when
        the planned TSS is missing or zero or the actual TSS is unknown
    """
    if not planned_tss or planned_tss <= 0 or actual_tss is None:
        return None
    pct = round_half_up(actual_tss / planned_tss * 100)
    return max(0, min(cap, pct))


def _assess_stimulus_change(
    planned_type: str,
    planned_tss: Optional[float],
    actual_type: str,
    actual_tss: Optional[float],
) -> AdaptationAssessment:
    tss_pct = 0.0
    if planned_tss and planned_tss > 0 and actual_tss is not None:
        tss_pct = (actual_tss - planned_tss) / planned_tss * 100
    rank_delta = get_intensity_rank_delta(planned_type, actual_type)

    if tss_pct > 10 and rank_delta >= 0:
        return AdaptationAssessment.BENEFICIAL
    if abs(tss_pct) <= 20 and abs(rank_delta) <= 1:
        return AdaptationAssessment.ACCEPTABLE
    if abs(tss_pct) <= 40 or abs(rank_delta) <= 2:
        return AdaptationAssessment.MINOR_CONCERN
    return AdaptationAssessment.CONCERNING


def _put(target: Dict[str, float], key: str, value: Optional[float]) -> None:
    if value is not None:
        target[key] = round_half_up(value, 1)


def analyze_stimulus_delta(
    planned_type: Any,
    planned_duration: Optional[float],
    planned_tss: Optional[float],
    actual_type: Any,
    actual_duration: Optional[float],
    actual_tss: Optional[float],
) -> StimulusAnalysis:
    """
    Break down which training stimulus was missed and which was gained.

    For the same category only the shortfall or surplus counts. For a
    different category the whole planned stimulus is missing and the whole
    actual stimulus is gained. Unknown values are left out.

    Returns:
        StimulusAnalysis with minutes per category plus a ``tss`` entry
    """
    planned_key, actual_key = _category_key(planned_type), _category_key(actual_type)
    missing: Dict[str, float] = {}
    gained: Dict[str, float] = {}

    if planned_key == actual_key:
        if planned_duration is not None and actual_duration is not None:
            if actual_duration < planned_duration:
                _put(missing, planned_key, planned_duration - actual_duration)
            elif actual_duration > planned_duration:
                _put(gained, actual_key, actual_duration - planned_duration)
        if planned_tss is not None and actual_tss is not None:
            if actual_tss < planned_tss:
                _put(missing, "tss", planned_tss - actual_tss)
            elif actual_tss > planned_tss:
                _put(gained, "tss", actual_tss - planned_tss)
    else:
        _put(missing, planned_key, planned_duration)
        _put(missing, "tss", planned_tss)
        _put(gained, actual_key, actual_duration)
        _put(gained, "tss", actual_tss)

    return StimulusAnalysis(
        missing=missing,
        gained=gained,
        net_assessment=_assess_stimulus_change(planned_key, planned_tss, actual_key, actual_tss),
    )


# ============================================================================
# Classification
# ============================================================================

def _relative_delta(actual: Optional[float], planned: Optional[float]) -> float:
    """(actual - planned) / planned; 0 when either side is unknown."""
    if not planned or planned <= 0 or actual is None:
        return 0.0
    return (actual - planned) / planned


def detect_adaptation_type(
    planned_type: Any,
    planned_duration: Optional[float],
    planned_tss: Optional[float],
    actual_type: Optional[Any],
    actual_duration: Optional[float],
    actual_tss: Optional[float],
    duration_match_tolerance: float = DURATION_MATCH_TOLERANCE,
    duration_deviation_tolerance: float = DURATION_DEVIATION_TOLERANCE,
    tss_match_tolerance: float = TSS_MATCH_TOLERANCE,
    tss_significant_tolerance: float = TSS_SIGNIFICANT_TOLERANCE,
) -> AdaptationType:
    """
    Classify the deviation between planned and actual metrics.

    Decision order:
    1. completed_as_planned: duration and TSS within tolerance, same category
    2. time_truncated / time_extended: same category, duration off
    3. intensity_swap: category changed, TSS comparable
    4. upgraded: harder category or TSS well over
    5. downgraded: easier category or TSS well under
    6. anything else is an intensity_swap

    A missing ``actual_type`` means no activity was done (skipped).
    """
    if actual_type is None:
        return AdaptationType.SKIPPED

    duration_delta = _relative_delta(actual_duration, planned_duration)
    tss_delta = _relative_delta(actual_tss, planned_tss)

    type_changed = not is_similar_category(planned_type, actual_type)
    rank_delta = get_intensity_rank_delta(planned_type, actual_type)

    if (
        abs(duration_delta) <= duration_match_tolerance
        and abs(tss_delta) <= tss_match_tolerance
        and not type_changed
    ):
        return AdaptationType.COMPLETED_AS_PLANNED

    if not type_changed and abs(rank_delta) <= 1:
        if duration_delta < -duration_deviation_tolerance:
            return AdaptationType.TIME_TRUNCATED
        if duration_delta > duration_deviation_tolerance:
            return AdaptationType.TIME_EXTENDED

    if type_changed and abs(tss_delta) <= tss_match_tolerance:
        return AdaptationType.INTENSITY_SWAP

    if rank_delta > 0 or tss_delta > tss_significant_tolerance:
        return AdaptationType.UPGRADED

    if rank_delta < 0 or tss_delta < -tss_significant_tolerance:
        return AdaptationType.DOWNGRADED

    return AdaptationType.INTENSITY_SWAP


def generate_assessment(
    adaptation_type: AdaptationType,
    stimulus: Optional[StimulusAnalysis],
    planned_duration: Optional[float] = None,
    actual_duration: Optional[float] = None,
    context: Optional[TrainingContext] = None,
) -> Tuple[AdaptationAssessment, str]:
    """Rule-based assessment and explanation for an adaptation."""
    phase = context.training_phase if context else None
    tsb = context.form if context else None

    if adaptation_type == AdaptationType.COMPLETED_AS_PLANNED:
        return AdaptationAssessment.ACCEPTABLE, "Workout completed as planned. Great consistency!"

    if adaptation_type == AdaptationType.TIME_TRUNCATED:
        shortened = 0
        if planned_duration and planned_duration > 0 and actual_duration is not None:
            shortened = round_half_up((planned_duration - actual_duration) / planned_duration * 100)
        if shortened <= 20:
            return (
                AdaptationAssessment.ACCEPTABLE,
                f"Workout shortened by ~{shortened}%. Minor reduction in training stimulus.",
            )
        if shortened <= 35:
            return (
                AdaptationAssessment.MINOR_CONCERN,
                f"Workout shortened by ~{shortened}%. "
                "Consider adding volume later in the week to compensate.",
            )
        return (
            AdaptationAssessment.CONCERNING,
            f"Workout significantly shortened by ~{shortened}%. May need to adjust weekly targets.",
        )

    if adaptation_type == AdaptationType.TIME_EXTENDED:
        if phase in (TrainingPhase.RECOVERY, TrainingPhase.TAPER):
            return (
                AdaptationAssessment.MINOR_CONCERN,
                "Extended workout during recovery/taper phase. Monitor fatigue levels.",
            )
        return (
            AdaptationAssessment.BENEFICIAL,
            "Extended workout duration. Extra training stimulus achieved.",
        )

    if adaptation_type == AdaptationType.INTENSITY_SWAP:
        net = stimulus.net_assessment if stimulus else AdaptationAssessment.ACCEPTABLE
        detail = (
            "Similar training load achieved."
            if net == AdaptationAssessment.ACCEPTABLE
            else "Training stimulus changed and may affect weekly balance."
        )
        return net, f"Swapped workout type. {detail}"

    if adaptation_type == AdaptationType.UPGRADED:
        if tsb is not None and tsb < -20:
            return (
                AdaptationAssessment.CONCERNING,
                "Upgraded to harder workout while fatigued (TSB < -20). Risk of overtraining.",
            )
        return AdaptationAssessment.ACCEPTABLE, "Upgraded to harder workout. Extra intensity achieved."

    if adaptation_type == AdaptationType.DOWNGRADED:
        missed_key_session = bool(
            stimulus and HIGH_INTENSITY_CATEGORIES.intersection(stimulus.missing)
        )
        if missed_key_session:
            return (
                AdaptationAssessment.MINOR_CONCERN,
                "Downgraded from high-intensity workout. Key session stimulus missed.",
            )
        return (
            AdaptationAssessment.ACCEPTABLE,
            "Downgraded workout intensity. May be appropriate based on fatigue.",
        )

    if adaptation_type == AdaptationType.SKIPPED:
        return AdaptationAssessment.CONCERNING, "Workout skipped. Planned training stimulus not achieved."

    return (
        AdaptationAssessment.ACCEPTABLE,
        "Unplanned activity completed. Consider how it fits into your training load.",
    )


def _context_fields(
    context: Optional[TrainingContext],
    week_number: Optional[int] = None,
) -> Dict[str, Any]:
    if context is None:
        return {"week_number": week_number}
    return {
        "week_number": context.week_number if context.week_number is not None else week_number,
        "training_phase": context.training_phase.value if context.training_phase else None,
        "ctl_at_time": context.ctl,
        "atl_at_time": context.atl,
        "tsb_at_time": context.form,
    }


def _difference(actual: Optional[float], planned: Optional[float]) -> Optional[float]:
    if actual is None or planned is None:
        return None
    return round_half_up(actual - planned, 1)


def detect_adaptation(
    planned: PlannedWorkout,
    activity: Optional[Activity],
    ftp: Optional[float] = None,
    context: Optional[TrainingContext] = None,
    threshold_pace_sec: Optional[float] = None,
    stimulus_pct_cap: int = STIMULUS_PCT_CAP,
    **tolerances,
) -> Adaptation:
    """
    Detect how an activity deviated from its planned workout.

    Never raises for missing optional fields: unknown metrics are stored
    as None.

    Args:
        planned: The planned workout
        activity: The matched activity (None if nothing was done)
        ftp: Athlete FTP in watts
        context: Training context at the time
        threshold_pace_sec: Running threshold pace in seconds per km
        stimulus_pct_cap: Upper bound for stimulus_achieved_pct
        **tolerances: Overrides for detect_adaptation_type tolerances

    Returns:
        The Adaptation record
    """
    planned_type = _category_key(planned.category)
    planned_duration = planned.target_duration_min
    planned_tss = planned.target_tss

    if activity is None:
        missing: Dict[str, float] = {}
        _put(missing, planned_type, planned_duration)
        _put(missing, "tss", planned_tss)
        stimulus = StimulusAnalysis(missing=missing, net_assessment=AdaptationAssessment.CONCERNING)
        assessment, explanation = generate_assessment(AdaptationType.SKIPPED, stimulus, context=context)
        return Adaptation(
            planned_workout_id=planned.id,
            activity_id=None,
            adaptation_type=AdaptationType.SKIPPED,
            planned_workout_type=planned_type,
            planned_tss=planned_tss,
            planned_duration=planned_duration,
            planned_intensity_factor=planned.target_intensity_factor,
            tss_delta=-planned_tss if planned_tss is not None else None,
            duration_delta=-planned_duration if planned_duration is not None else None,
            stimulus_achieved_pct=calculate_stimulus_achieved(planned_tss, 0.0, stimulus_pct_cap),
            stimulus_analysis=stimulus,
            assessment=assessment,
            explanation=explanation,
            **_context_fields(context, planned.week_number),
        )

    metrics = normalize_activity(activity, ftp)
    actual_type = infer_workout_category(activity, ftp, metrics, threshold_pace_sec)
    actual_duration = round_half_up(activity.duration_min, 1)
    actual_tss = float(metrics.tss) if metrics.tss is not None else None

    adaptation_type = detect_adaptation_type(
        planned_type, planned_duration, planned_tss,
        actual_type, actual_duration, actual_tss,
        **tolerances,
    )
    stimulus = analyze_stimulus_delta(
        planned_type, planned_duration, planned_tss,
        actual_type, actual_duration, actual_tss,
    )
    assessment, explanation = generate_assessment(
        adaptation_type, stimulus, planned_duration, actual_duration, context
    )

    logger.debug(
        "Planned %s (%s) vs activity %s (%s): %s",
        planned.id, planned_type, activity.id, actual_type, adaptation_type.value,
    )

    return Adaptation(
        planned_workout_id=planned.id,
        activity_id=activity.id,
        adaptation_type=adaptation_type,
        planned_workout_type=planned_type,
        planned_tss=planned_tss,
        planned_duration=planned_duration,
        planned_intensity_factor=planned.target_intensity_factor,
        actual_workout_type=actual_type,
        actual_tss=actual_tss,
        actual_duration=actual_duration,
        actual_intensity_factor=metrics.intensity_factor,
        actual_normalized_power=metrics.normalized_power,
        tss_delta=_difference(actual_tss, planned_tss),
        duration_delta=_difference(actual_duration, planned_duration),
        stimulus_achieved_pct=calculate_stimulus_achieved(planned_tss, actual_tss, stimulus_pct_cap),
        stimulus_analysis=stimulus,
        assessment=assessment,
        explanation=explanation,
        **_context_fields(context, planned.week_number),
    )


def detect_unplanned(
    activity: Activity,
    ftp: Optional[float] = None,
    context: Optional[TrainingContext] = None,
    threshold_pace_sec: Optional[float] = None,
) -> Adaptation:
    """Adaptation record for an activity with no planned workout."""
    metrics = normalize_activity(activity, ftp)
    assessment, explanation = generate_assessment(AdaptationType.UNPLANNED, None)
    return Adaptation(
        planned_workout_id=None,
        activity_id=activity.id,
        adaptation_type=AdaptationType.UNPLANNED,
        actual_workout_type=infer_workout_category(activity, ftp, metrics, threshold_pace_sec),
        actual_tss=float(metrics.tss) if metrics.tss is not None else None,
        actual_duration=round_half_up(activity.duration_min, 1),
        actual_intensity_factor=metrics.intensity_factor,
        actual_normalized_power=metrics.normalized_power,
        assessment=assessment,
        explanation=explanation,
        **_context_fields(context),
    )


def detect_week_adaptations(
    planned_workouts: List[PlannedWorkout],
    activities: List[Activity],
    ftp: Optional[float] = None,
    context: Optional[TrainingContext] = None,
    as_of: Optional[date] = None,
    **options,
) -> List[Adaptation]:
    """
    Detect adaptations for a block of planned workouts (usually a week).

    Workouts are matched in date order, each activity at most once. Rest
    days are ignored. Activities left unmatched are reported as unplanned.
    With ``as_of``, unmatched workouts scheduled after that date are not
    yet due and are left out instead of being reported as skipped.

    Args:
        planned_workouts: Planned workouts in the block
        activities: Activities in and around the block
        ftp: Athlete FTP in watts
        context: Training context at the time
        as_of: Last date on which workouts are due
        **options: Extra keyword arguments for detect_adaptation

    Returns:
        Adaptations for planned workouts (date order) then unplanned activities
    """
    adaptations = []
    used_ids: Set[str] = set()

    for planned in sorted(planned_workouts, key=lambda w: w.scheduled_date):
        if planned.is_rest:
            continue

        activity = find_best_matching_activity(planned, activities, used_ids, ftp)
        if activity is None and as_of is not None and planned.scheduled_date > as_of:
            continue
        if activity is not None:
            used_ids.add(activity.id)

        adaptations.append(detect_adaptation(planned, activity, ftp, context, **options))

    threshold_pace_sec = options.get("threshold_pace_sec")
    for activity in activities:
        if activity.id not in used_ids:
            adaptations.append(detect_unplanned(activity, ftp, context, threshold_pace_sec))

    return adaptations


# ============================================================================
# Service
# ============================================================================

class AdaptationService:
    """
    Service for detecting and recording plan adaptations.

    Detection is pure; when a repository is configured each detected
    adaptation is upserted, keyed by planned workout id.
    """

    def __init__(
        self,
        repository=None,
        settings: Optional[EngineSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the adaptation service.

        Args:
            repository: Optional AdaptationRepository for persistence
            settings: Engine settings (defaults to get_settings())
            logger: Optional logger instance
        """
        self.repository = repository
        self.settings = settings or get_settings()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def _options(self) -> Dict[str, Any]:
        return {
            "stimulus_pct_cap": self.settings.stimulus_pct_cap,
            "duration_match_tolerance": self.settings.duration_match_tolerance,
            "duration_deviation_tolerance": self.settings.duration_deviation_tolerance,
            "tss_match_tolerance": self.settings.tss_match_tolerance,
            "tss_significant_tolerance": self.settings.tss_significant_tolerance,
        }

    def detect(
        self,
        planned: PlannedWorkout,
        activity: Optional[Activity],
        ftp: Optional[float] = None,
        context: Optional[TrainingContext] = None,
    ) -> Adaptation:
        """Detect without storing."""
        return detect_adaptation(planned, activity, ftp, context, **self._options)

    def record(
        self,
        planned: PlannedWorkout,
        activity: Optional[Activity],
        ftp: Optional[float] = None,
        context: Optional[TrainingContext] = None,
    ) -> Adaptation:
        """
        Detect an adaptation and upsert it.

        A later activity matched to the same planned workout replaces the
        stored adaptation in place.
        """
        adaptation = self.detect(planned, activity, ftp, context)
        self._save(adaptation)
        return adaptation

    def record_week(
        self,
        planned_workouts: List[PlannedWorkout],
        activities: List[Activity],
        ftp: Optional[float] = None,
        context: Optional[TrainingContext] = None,
        as_of: Optional[date] = None,
    ) -> List[Adaptation]:
        """Detect adaptations for a block of workouts and upsert each one."""
        adaptations = detect_week_adaptations(
            planned_workouts, activities, ftp, context, as_of, **self._options
        )
        for adaptation in adaptations:
            self._save(adaptation)
        return adaptations

    def get_adaptation(self, planned_workout_id: str) -> Adaptation:
        """Stored adaptation for a planned workout; raises if none exists."""
        adaptation = None
        if self.repository is not None:
            adaptation = self.repository.get_by_planned_workout(planned_workout_id)
        if adaptation is None:
            raise AdaptationNotFoundError(planned_workout_id)
        return adaptation

    def _save(self, adaptation: Adaptation) -> None:
        if self.repository is None:
            return
        self.repository.save(adaptation)
        self._logger.info(
            "Recorded %s adaptation for planned workout %s (activity %s)",
            adaptation.adaptation_type.value,
            adaptation.planned_workout_id,
            adaptation.activity_id,
        )


# ============================================================================
# Factory function for dependency injection
# ============================================================================

_adaptation_service: Optional[AdaptationService] = None


def get_adaptation_service() -> AdaptationService:
    """Get or create the adaptation service singleton (SQLite-backed)."""
    global _adaptation_service
    if _adaptation_service is None:
        from ..db.repositories.adaptation_repository import AdaptationRepository

        settings = get_settings()
        _adaptation_service = AdaptationService(
            repository=AdaptationRepository(settings.adaptations_db_path),
            settings=settings,
        )
    return _adaptation_service


def reset_adaptation_service() -> None:
    """Reset the adaptation service singleton (for testing)."""
    global _adaptation_service
    _adaptation_service = None
