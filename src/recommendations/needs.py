"""
Training needs analysis.

Scores what the athlete needs today from race proximity, today's plan,
current form and the zones missing from the last week. Each stage raises
category scores with ``max`` so the strongest signal wins; only the zone
gap bonuses are additive.
"""

import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..metrics.fitness import FORM_BANDS, get_form_status
from ..models.activity import Activity
from ..models.plans import PlannedWorkout, RaceGoal
from ..models.recommendation import (
    RacePhase,
    RaceProximity,
    TrainingNeeds,
    TrainingNeedsAnalysis,
    ZoneGaps,
)


logger = logging.getLogger(__name__)


# Upper bound (days until race) of each race phase, nearest first
RACE_PHASES: Tuple[Tuple[int, RacePhase], ...] = (
    (7, RacePhase.RACE_WEEK),
    (14, RacePhase.TAPER),
    (28, RacePhase.FINAL_BUILD),
    (56, RacePhase.BUILD),
)

# Fixed needs while a race is close; scoring stops here
RACE_WEEK_NEEDS: Dict[str, float] = {
    "recovery": 95, "endurance": 15, "intensity": 5, "vo2max": 0, "threshold": 5,
}
TAPER_NEEDS: Dict[str, float] = {
    "recovery": 40, "endurance": 70, "intensity": 20, "vo2max": 10, "threshold": 20,
}

# Needs lifted by the category planned for today
PLANNED_CATEGORY_NEEDS: Dict[str, Tuple[Dict[str, float], str, str]] = {
    "recovery": ({"recovery": 80}, "recovery", "Planned recovery day"),
    "rest": ({"recovery": 80}, "recovery", "Planned recovery day"),
    "off": ({"recovery": 80}, "recovery", "Planned recovery day"),
    "vo2max": ({"vo2max": 80, "intensity": 75}, "vo2max", "Planned VO2max workout today"),
    "threshold": ({"threshold": 80, "intensity": 75}, "threshold", "Planned threshold workout today"),
    "endurance": ({"endurance": 75}, "endurance", "Planned endurance workout today"),
}

# Baseline scores per form band
FORM_SCORING: Dict[str, Dict[str, float]] = {
    "fatigued": {"recovery": 90, "endurance": 20, "intensity": 5},
    "tired": {"recovery": 60, "endurance": 50, "intensity": 30},
    "optimal": {"recovery": 30, "endurance": 65, "intensity": 50, "threshold": 55},
    "ready": {"recovery": 20, "endurance": 60, "intensity": 65, "threshold": 60},
    "fresh": {"recovery": 10, "intensity": 80, "vo2max": 70, "threshold": 75},
}

FORM_REASONS: Dict[str, Tuple[str, str]] = {
    "fatigued": ("recovery", "High fatigue: recovery is essential"),
    "tired": ("recovery", "Moderate fatigue: easy day recommended"),
    "fresh": ("intensity", "Fresh and ready for hard work!"),
}

# Zone gap detection
GAP_LOOKBACK_DAYS = 7
FALLBACK_FTP = 200
Z2_POWER_RATIO = 0.75
INTENSITY_POWER_RATIO = 0.90
Z2_MIN_DURATION_MIN = 60.0
Z2_MIN_RIDES = 2
MISSING_Z2_BONUS = 20.0
MISSING_INTENSITY_BONUS = 15.0
INTENSITY_SUPPRESSION_FORM = -10.0


def _as_race_goal(goal: Union[RaceGoal, dict]) -> RaceGoal:
    if isinstance(goal, RaceGoal):
        return goal
    return RaceGoal.model_validate(goal)


def get_race_proximity(
    race_goals: Optional[Iterable[Union[RaceGoal, dict]]],
    today: Optional[date] = None,
) -> RaceProximity:
    """
    Find the nearest future race and the phase it implies.

    Races today or in the past are ignored.

    Args:
        race_goals: Athlete race goals
        today: Reference date (defaults to the current date)

    Returns:
        RaceProximity with no race and no phase if nothing is upcoming
    """
    today = today or date.today()

    closest: Optional[RaceGoal] = None
    closest_days: Optional[int] = None
    for goal in race_goals or []:
        race = _as_race_goal(goal)
        days = (race.race_date - today).days
        if days > 0 and (closest_days is None or days < closest_days):
            closest, closest_days = race, days

    if closest is None:
        return RaceProximity()

    phase = RacePhase.BASE
    for max_days, candidate in RACE_PHASES:
        if closest_days <= max_days:
            phase = candidate
            break

    return RaceProximity(next_race=closest, days_until_race=closest_days, phase=phase)


def detect_zone_gaps(
    activities: Optional[Iterable[Activity]],
    ftp: Optional[float] = None,
    today: Optional[date] = None,
    lookback_days: int = GAP_LOOKBACK_DAYS,
    fallback_ftp: float = FALLBACK_FTP,
    z2_power_ratio: float = Z2_POWER_RATIO,
    intensity_power_ratio: float = INTENSITY_POWER_RATIO,
    z2_min_duration_min: float = Z2_MIN_DURATION_MIN,
    z2_min_rides: int = Z2_MIN_RIDES,
) -> ZoneGaps:
    """
    Detect training zones missing from the trailing week.

    A long ride (over ``z2_min_duration_min``) counts as Z2 when its average
    power is below ``z2_power_ratio`` of FTP, or when it has no power data.
    A ride counts as intensity when its average power exceeds
    ``intensity_power_ratio`` of FTP. Z2 is only reported missing once
    there have been at least ``z2_min_rides`` rides.

    Args:
        activities: Activity history (any order, any range)
        ftp: Athlete FTP; ``fallback_ftp`` is used when unknown
        today: Reference date (defaults to the current date)

    Returns:
        ZoneGaps flags plus the number of rides considered
    """
    today = today or date.today()
    reference_ftp = ftp if ftp and ftp > 0 else fallback_ftp
    since = today - timedelta(days=lookback_days)

    recent = [a for a in activities or [] if since <= a.date <= today]

    z2_ceiling = reference_ftp * z2_power_ratio
    intensity_floor = reference_ftp * intensity_power_ratio

    has_z2 = any(
        a.duration_min > z2_min_duration_min and (not a.avg_power or a.avg_power < z2_ceiling)
        for a in recent
    )
    has_intensity = any(a.avg_power and a.avg_power > intensity_floor for a in recent)

    return ZoneGaps(
        missing_z2=not has_z2 and len(recent) >= z2_min_rides,
        missing_intensity=not has_intensity,
        total_rides=len(recent),
    )


def find_todays_workout(
    planned_workouts: Optional[Sequence[PlannedWorkout]],
    today: date,
    open_only: bool = False,
) -> Optional[PlannedWorkout]:
    """First planned workout scheduled for ``today`` (optionally still open)."""
    for workout in planned_workouts or []:
        if workout.scheduled_date != today:
            continue
        if open_only and not workout.is_open:
            continue
        return workout
    return None


def _fixed_needs(scores: Dict[str, float], reason_key: str, reason: str) -> TrainingNeeds:
    needs = TrainingNeeds()
    for key, score in scores.items():
        needs.get(key).score = score
    needs.get(reason_key).reason = reason
    return needs


def analyze_training_needs(
    form: float = 0.0,
    activities: Optional[List[Activity]] = None,
    race_goals: Optional[List[Union[RaceGoal, dict]]] = None,
    planned_workouts: Optional[List[PlannedWorkout]] = None,
    ftp: Optional[float] = None,
    today: Optional[date] = None,
    form_bands: Sequence[Tuple[str, float]] = FORM_BANDS,
    missing_z2_bonus: float = MISSING_Z2_BONUS,
    missing_intensity_bonus: float = MISSING_INTENSITY_BONUS,
    intensity_suppression_form: float = INTENSITY_SUPPRESSION_FORM,
    **gap_options,
) -> TrainingNeedsAnalysis:
    """
    Score today's training needs.

    Stages, highest priority first:
    1. Race proximity: race week and taper fix the scores and stop here
    2. Today's planned category lifts its needs
    3. Form band baseline scores
    4. Zone gap bonuses (the intensity bonus is withheld when form is
       below ``intensity_suppression_form``)

    Args:
        form: Current form (fitness - fatigue)
        activities: Recent activity history
        race_goals: Athlete race goals
        planned_workouts: Planned workouts around today
        ftp: Athlete FTP in watts
        today: Reference date (defaults to the current date)
        **gap_options: Extra keyword arguments for detect_zone_gaps

    Returns:
        TrainingNeedsAnalysis with needs, race proximity, gaps and form band
    """
    today = today or date.today()
    form_status = get_form_status(form, form_bands)
    race_proximity = get_race_proximity(race_goals, today)

    if race_proximity.phase == RacePhase.RACE_WEEK:
        race = race_proximity.next_race
        needs = _fixed_needs(
            RACE_WEEK_NEEDS,
            "recovery",
            f"Race week: {race.name} in {race_proximity.days_until_race} days. "
            "Recovery and openers only.",
        )
        logger.debug("Race week (%d days): forcing recovery", race_proximity.days_until_race)
        return TrainingNeedsAnalysis(needs, race_proximity, ZoneGaps(), form_status, form)

    if race_proximity.phase == RacePhase.TAPER:
        race = race_proximity.next_race
        needs = _fixed_needs(
            TAPER_NEEDS,
            "endurance",
            f"Taper: {race.name} in {race_proximity.days_until_race} days. "
            "Easy endurance, maintain some sharpness.",
        )
        logger.debug("Taper (%d days): forcing endurance", race_proximity.days_until_race)
        return TrainingNeedsAnalysis(needs, race_proximity, ZoneGaps(), form_status, form)

    needs = TrainingNeeds()

    planned_today = find_todays_workout(planned_workouts, today)
    if planned_today is not None:
        lifted = PLANNED_CATEGORY_NEEDS.get(planned_today.category.value)
        if lifted:
            scores, reason_key, reason = lifted
            for key, score in scores.items():
                needs.raise_to(key, score)
            needs.raise_to(reason_key, 0, reason)

    for key, score in FORM_SCORING[form_status].items():
        needs.raise_to(key, score)
    if form_status in FORM_REASONS:
        reason_key, reason = FORM_REASONS[form_status]
        needs.raise_to(reason_key, 0, reason)

    gaps = detect_zone_gaps(activities, ftp, today, **gap_options)

    if gaps.missing_z2:
        needs.add("endurance", missing_z2_bonus, "No long Z2 ride in the last week")

    if gaps.missing_intensity and form >= intensity_suppression_form:
        needs.add("intensity", missing_intensity_bonus)
        needs.add("vo2max", missing_intensity_bonus, "No high intensity in the last week")

    return TrainingNeedsAnalysis(needs, race_proximity, gaps, form_status, form)
