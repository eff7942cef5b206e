"""
Workout Recommendation Engine

Answers "what should I ride today?" from:
- Race proximity (race week / taper)
- Today's planned workout
- Form-based scoring
- Zone gaps in the last week
- Available time

The decision order is a chain of guard clauses: race week, then taper,
then today's plan, then the scored ranking.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from ..config import EngineSettings
from ..models.activity import Activity
from ..models.plans import AthleteProfile, PlannedWorkout
from ..models.recommendation import (
    CategoryRecommendation,
    LibraryWorkout,
    RacePhase,
    Recommendation,
    RecommendationSet,
    RecommendedWorkout,
    TrainingNeeds,
    TrainingNeedsAnalysis,
)
from .library import get_workout_by_id, get_workouts_by_category
from .needs import analyze_training_needs, find_todays_workout


logger = logging.getLogger(__name__)


TIME_GRACE_MIN = 15
PLANNED_SCORE = 90
MAX_CATEGORIES = 3
WORKOUTS_PER_CATEGORY = 2
MAX_ALTERNATIVES = 2

RACE_WEEK_WORKOUTS = ("recovery_spin", "easy_recovery_ride")
TAPER_WORKOUTS = ("foundation_miles", "endurance_base_build")

PLANNED_REST_REASON = "Rest day: your training plan has a rest day scheduled today."


@dataclass(frozen=True)
class CategoryDefinition:
    """How a scored need maps onto library workouts."""
    key: str
    title: str
    min_score: float
    library_categories: Tuple[str, ...]
    default_reason: str


# Listed in tie-break priority order
CATEGORY_DEFINITIONS: Tuple[CategoryDefinition, ...] = (
    CategoryDefinition(
        "recovery", "Recovery", 60, ("recovery",),
        "Active recovery to reduce fatigue",
    ),
    CategoryDefinition(
        "endurance", "Endurance", 50, ("endurance",),
        "Build aerobic base",
    ),
    CategoryDefinition(
        "threshold", "Threshold / Sweet Spot", 50, ("threshold", "sweet_spot"),
        "Improve FTP and lactate clearance",
    ),
    CategoryDefinition(
        "vo2max", "VO2 Max", 50, ("vo2max",),
        "Develop maximum aerobic capacity",
    ),
)


def _fits_time(workout: LibraryWorkout, time_available: Optional[float], grace_min: float) -> bool:
    if time_available is None or workout.duration is None:
        return True
    return workout.duration <= time_available + grace_min


def build_category_recommendations(
    needs: TrainingNeeds,
    time_available: Optional[float] = None,
    time_grace_min: float = TIME_GRACE_MIN,
) -> List[CategoryRecommendation]:
    """
    Rank categories by score and attach their candidate workouts.

    Categories below their minimum score, or with no workout that fits
    ``time_available`` plus the grace margin, are dropped. The sort is
    stable, so ties keep the order of CATEGORY_DEFINITIONS.

    Args:
        needs: Scored training needs
        time_available: Minutes available today (None for no limit)
        time_grace_min: Minutes a workout may exceed the time budget

    Returns:
        Up to three CategoryRecommendation, best first
    """
    recommendations = []
    for definition in CATEGORY_DEFINITIONS:
        need = needs.get(definition.key)
        if need.score < definition.min_score:
            continue

        workouts = [
            workout
            for library_category in definition.library_categories
            for workout in get_workouts_by_category(library_category)
            if _fits_time(workout, time_available, time_grace_min)
        ]
        if not workouts:
            logger.debug("Dropping %s: no workout fits %s min", definition.key, time_available)
            continue

        recommendations.append(
            CategoryRecommendation(
                category=definition.key,
                title=definition.title,
                reason=need.reason or definition.default_reason,
                score=need.score,
                workouts=workouts[:WORKOUTS_PER_CATEGORY],
            )
        )

    recommendations.sort(key=lambda rec: rec.score, reverse=True)
    return recommendations[:MAX_CATEGORIES]


def _first_workout(workout_ids: Tuple[str, ...]) -> Optional[LibraryWorkout]:
    for workout_id in workout_ids:
        workout = get_workout_by_id(workout_id)
        if workout is not None:
            return workout
    return None


def _workout_from_plan(planned: PlannedWorkout) -> LibraryWorkout:
    """Library workout for a plan row, or one built from its targets."""
    workout = get_workout_by_id(planned.workout_id)
    if workout is not None:
        return workout

    title = planned.category.value.replace("_", " ").title()
    return LibraryWorkout(
        id=planned.workout_id or planned.id,
        name=planned.name or f"{title} Workout",
        category=planned.category.value,
        duration=int(planned.target_duration_min) if planned.target_duration_min else None,
        target_tss=int(planned.target_tss) if planned.target_tss else None,
        intensity_factor=planned.target_intensity_factor,
    )


def _analysis_options(settings: Optional[EngineSettings]) -> Dict[str, Any]:
    """Keyword arguments for analyze_training_needs taken from settings."""
    if settings is None:
        return {}
    return {
        "form_bands": (
            ("fresh", settings.form_fresh_min),
            ("ready", settings.form_ready_min),
            ("optimal", settings.form_optimal_min),
            ("tired", settings.form_tired_min),
        ),
        "missing_z2_bonus": settings.missing_z2_bonus,
        "missing_intensity_bonus": settings.missing_intensity_bonus,
        "intensity_suppression_form": settings.intensity_suppression_form,
        "lookback_days": settings.gap_lookback_days,
        "fallback_ftp": settings.fallback_ftp,
        "z2_power_ratio": settings.z2_power_ratio,
        "intensity_power_ratio": settings.intensity_power_ratio,
        "z2_min_duration_min": settings.z2_min_duration_min,
        "z2_min_rides": settings.z2_min_rides,
    }


def _analyze(
    form: float,
    activities: Optional[List[Activity]],
    profile: Optional[AthleteProfile],
    planned_workouts: Optional[List[PlannedWorkout]],
    today: date,
    settings: Optional[EngineSettings],
) -> TrainingNeedsAnalysis:
    return analyze_training_needs(
        form=form,
        activities=activities,
        race_goals=profile.race_goals if profile else None,
        planned_workouts=planned_workouts,
        ftp=profile.ftp if profile else None,
        today=today,
        **_analysis_options(settings),
    )


def recommend_workout(
    form: float = 0.0,
    activities: Optional[List[Activity]] = None,
    profile: Optional[AthleteProfile] = None,
    planned_workouts: Optional[List[PlannedWorkout]] = None,
    time_available: Optional[float] = None,
    today: Optional[date] = None,
    settings: Optional[EngineSettings] = None,
) -> Recommendation:
    """
    Recommend one workout for today plus up to two alternatives.

    Args:
        form: Current form (fitness - fatigue)
        activities: Recent activity history
        profile: Athlete profile (FTP and race goals)
        planned_workouts: Planned workouts around today
        time_available: Minutes available today (None for no limit)
        today: Reference date (defaults to the current date)
        settings: Engine settings overriding the module defaults

    Returns:
        Recommendation with primary, alternatives and the analysis
    """
    today = today or date.today()
    grace = settings.time_grace_min if settings else TIME_GRACE_MIN
    analysis = _analyze(form, activities, profile, planned_workouts, today, settings)
    needs = analysis.needs
    phase = analysis.race_proximity.phase

    if phase == RacePhase.RACE_WEEK:
        workout = _first_workout(RACE_WEEK_WORKOUTS)
        primary = RecommendedWorkout(
            workout=workout,
            reason=needs.recovery.reason,
            score=needs.recovery.score,
            category="recovery",
        ) if workout else None
        return Recommendation(primary=primary, alternatives=[], analysis=analysis)

    if phase == RacePhase.TAPER:
        workout = _first_workout(TAPER_WORKOUTS)
        primary = RecommendedWorkout(
            workout=workout,
            reason=needs.endurance.reason,
            score=needs.endurance.score,
            category="endurance",
        ) if workout else None
        return Recommendation(primary=primary, alternatives=[], analysis=analysis)

    planned = find_todays_workout(planned_workouts, today, open_only=True)
    if planned is not None:
        if planned.is_rest:
            logger.debug("Planned rest day %s", planned.id)
            return Recommendation(
                primary=None,
                alternatives=[],
                analysis=analysis,
                planned_rest=True,
                planned_rest_reason=PLANNED_REST_REASON,
            )

        workout = _workout_from_plan(planned)
        alternatives = [
            rec.to_recommended()
            for rec in build_category_recommendations(needs, time_available, grace)
            if rec.workouts[0].id != workout.id
        ][:MAX_ALTERNATIVES]

        return Recommendation(
            primary=RecommendedWorkout(
                workout=workout,
                reason=f"Planned: {planned.name or workout.name}",
                score=PLANNED_SCORE,
                category=workout.category or planned.category.value,
                source="plan",
            ),
            alternatives=alternatives,
            analysis=analysis,
        )

    recommendations = build_category_recommendations(needs, time_available, grace)
    if not recommendations:
        return Recommendation(primary=None, alternatives=[], analysis=analysis)

    return Recommendation(
        primary=recommendations[0].to_recommended(),
        alternatives=[rec.to_recommended() for rec in recommendations[1:]],
        analysis=analysis,
    )


def get_workout_recommendations(
    form: float = 0.0,
    activities: Optional[List[Activity]] = None,
    profile: Optional[AthleteProfile] = None,
    planned_workouts: Optional[List[PlannedWorkout]] = None,
    time_available: Optional[float] = None,
    today: Optional[date] = None,
    settings: Optional[EngineSettings] = None,
) -> RecommendationSet:
    """
    Full ranked categories for multi-card displays.

    Race week returns only recovery workouts and taper only endurance
    workouts (time-filtered); otherwise the scored ranking is returned.
    """
    today = today or date.today()
    grace = settings.time_grace_min if settings else TIME_GRACE_MIN
    analysis = _analyze(form, activities, profile, planned_workouts, today, settings)
    needs = analysis.needs
    phase = analysis.race_proximity.phase

    if phase == RacePhase.RACE_WEEK:
        workouts = get_workouts_by_category("recovery")
        categories = [
            CategoryRecommendation(
                "recovery", "Recovery", needs.recovery.reason, needs.recovery.score,
                workouts[:WORKOUTS_PER_CATEGORY],
            )
        ] if workouts else []
        return RecommendationSet(categories=categories, analysis=analysis)

    if phase == RacePhase.TAPER:
        workouts = [
            w for w in get_workouts_by_category("endurance")
            if _fits_time(w, time_available, grace)
        ]
        categories = [
            CategoryRecommendation(
                "endurance", "Endurance", needs.endurance.reason, needs.endurance.score,
                workouts[:WORKOUTS_PER_CATEGORY],
            )
        ] if workouts else []
        return RecommendationSet(categories=categories, analysis=analysis)

    return RecommendationSet(
        categories=build_category_recommendations(needs, time_available, grace),
        analysis=analysis,
    )
