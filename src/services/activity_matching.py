"""
Matching of completed activities to planned workouts.

An activity can only satisfy a workout scheduled within a day of it, and
each activity is used at most once.
"""

from typing import Iterable, Optional, Set

from ..models.activity import Activity
from ..models.plans import PlannedWorkout
from ..metrics.power import normalize_activity


MAX_DAYS_APART = 1
MIN_MATCH_SCORE = 40.0

DATE_WEIGHT = 40.0
DURATION_WEIGHT = 30.0
TSS_WEIGHT = 30.0


def _ratio(a: Optional[float], b: Optional[float]) -> Optional[float]:
    """min/max ratio of two positive values, None if either is missing."""
    if not a or not b or a <= 0 or b <= 0:
        return None
    return min(a, b) / max(a, b)


def calculate_match_score(
    planned: PlannedWorkout,
    activity: Activity,
    activity_tss: Optional[float] = None,
) -> Optional[float]:
    """
    Score how well an activity fits a planned workout (0-100).

    - Date proximity: up to 40 points (40 same day, 0 one day apart)
    - Duration ratio: up to 30 points
    - TSS ratio: up to 30 points

    Args:
        planned: The planned workout
        activity: Candidate activity
        activity_tss: Stress of the activity, if already resolved

    Returns:
        Match score, or None if the activity is too far from the date
    """
    days_apart = abs((activity.date - planned.scheduled_date).days)
    if days_apart > MAX_DAYS_APART:
        return None

    score = DATE_WEIGHT * (1 - days_apart)

    duration_ratio = _ratio(activity.duration_min, planned.target_duration_min)
    if duration_ratio is not None:
        score += DURATION_WEIGHT * duration_ratio

    tss_ratio = _ratio(activity_tss, planned.target_tss)
    if tss_ratio is not None:
        score += TSS_WEIGHT * tss_ratio

    return score


def find_best_matching_activity(
    planned: PlannedWorkout,
    activities: Iterable[Activity],
    used_ids: Optional[Set[str]] = None,
    ftp: Optional[float] = None,
    min_score: float = MIN_MATCH_SCORE,
) -> Optional[Activity]:
    """
    Pick the unused activity that best fits a planned workout.

    Ties keep the first activity in input order.

    Args:
        planned: The planned workout
        activities: Candidate activities
        used_ids: Ids of activities already matched elsewhere
        ftp: Athlete FTP, used to resolve activity TSS
        min_score: Minimum score for a match

    Returns:
        Best activity, or None if nothing scores at least ``min_score``
    """
    used_ids = used_ids or set()
    best: Optional[Activity] = None
    best_score = 0.0

    for activity in activities:
        if activity.id in used_ids:
            continue
        tss = normalize_activity(activity, ftp).tss
        score = calculate_match_score(planned, activity, tss)
        if score is not None and score > best_score:
            best, best_score = activity, score

    return best if best_score >= min_score else None
