"""Fitness-Fatigue model calculations (fitness, fatigue, form and form bands)."""

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import ValidationError
from ..models.activity import Activity
from ..models.plans import AthleteProfile
from .load import resolve_activity_stress
from ..utils.rounding import round_half_up


CTL_DAYS = 42
ATL_DAYS = 7
DEFAULT_WINDOW_DAYS = 90

# Lower edges (inclusive) of each form band, highest first
FORM_BANDS: Tuple[Tuple[str, float], ...] = (
    ("fresh", 15.0),
    ("ready", 5.0),
    ("optimal", -10.0),
    ("tired", -25.0),
)
LOWEST_FORM_BAND = "fatigued"

FORM_ADVICE: Dict[str, str] = {
    "fresh": "Fresh and recovered. Good day for a hard workout or race.",
    "ready": "Positive form. Ready for quality training.",
    "optimal": "Productive training zone. Keep building.",
    "tired": "Fatigued. Easy training recommended.",
    "fatigued": "Very fatigued. Consider rest or very easy activity.",
}


@dataclass
class FitnessSnapshot:
    """Daily point of the fitness/fatigue/form series."""

    date: date
    daily_stress: float  # summed activity stress for the day
    fitness: int  # chronic load (CTL)
    fatigue: int  # acute load (ATL)
    form: int  # fitness - fatigue (TSB)
    status: str  # form band

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "date": self.date.isoformat(),
            "daily_stress": self.daily_stress,
            "fitness": self.fitness,
            "fatigue": self.fatigue,
            "form": self.form,
            "status": self.status,
        }


def _weighted_load(daily_stress: Sequence[float], days: int) -> int:
    """
    Exponentially weighted load, most recent day last.

    Each value is weighted by ``exp(-i / days)`` where ``i`` is its distance
    from the most recent day, and the sum is scaled by ``1 / days``.
    """
    if not daily_stress:
        return 0

    decay = 1 / days
    last = len(daily_stress) - 1
    total = 0.0
    for index, stress in enumerate(daily_stress):
        total += (stress or 0.0) * math.exp(-decay * (last - index))
    return round_half_up(total / days)


def calculate_fitness(daily_stress: Sequence[float], days: int = CTL_DAYS) -> int:
    """
    Calculate fitness (chronic training load).

    Args:
        daily_stress: One stress value per consecutive day, oldest first
        days: Time constant in days

    Returns:
        Fitness rounded to a whole number (0 for an empty series)
    """
    return _weighted_load(daily_stress, days)


def calculate_fatigue(daily_stress: Sequence[float], days: int = ATL_DAYS) -> int:
    """
    Calculate fatigue (acute training load).

    Only the most recent ``days`` values contribute.
    """
    return _weighted_load(list(daily_stress)[-days:], days)


def get_form_status(
    form: float,
    bands: Sequence[Tuple[str, float]] = FORM_BANDS,
) -> str:
    """
    Map a form value onto its band.

    Bands are checked from the highest lower edge down; anything below
    the last edge is ``fatigued``.
    """
    for name, lower_edge in bands:
        if form >= lower_edge:
            return name
    return LOWEST_FORM_BAND


def get_form_advice(form: float) -> str:
    """Short textual interpretation of a form value."""
    return FORM_ADVICE[get_form_status(form)]


def build_daily_stress(
    activities: Iterable[Activity],
    start: date,
    end: date,
    ftp: Optional[float] = None,
    profile: Optional[AthleteProfile] = None,
    **power_options,
) -> List[Tuple[date, float]]:
    """
    Sum activity stress into one value per calendar day.

    Days without activities contribute 0. Activities outside
    ``[start, end]`` are ignored.

    Args:
        activities: Completed activities (any order)
        start: First day of the series
        end: Last day of the series (inclusive)
        ftp: Athlete FTP in watts
        profile: Athlete profile for the heart-rate fallback

    Returns:
        List of (date, stress) tuples, one per day, oldest first
    """
    if end < start:
        raise ValidationError(
            f"End date {end.isoformat()} is before start date {start.isoformat()}",
            field="end",
        )

    totals: Dict[date, float] = {}
    for activity in activities:
        day = activity.date
        if day < start or day > end:
            continue
        stress, _source = resolve_activity_stress(activity, ftp, profile, **power_options)
        totals[day] = totals.get(day, 0.0) + stress

    days = [start + timedelta(days=offset) for offset in range((end - start).days + 1)]
    return [(day, round_half_up(totals.get(day, 0.0), 1)) for day in days]


def calculate_fitness_series(
    daily_loads: List[Tuple[date, float]],
    window_days: int = DEFAULT_WINDOW_DAYS,
    ctl_days: int = CTL_DAYS,
    atl_days: int = ATL_DAYS,
    bands: Sequence[Tuple[str, float]] = FORM_BANDS,
) -> List[FitnessSnapshot]:
    """
    Calculate a fitness/fatigue/form snapshot for each day.

    Each day's fitness uses the trailing ``window_days`` of stress ending on
    that day; fatigue uses the trailing ``atl_days``. Gaps in the input are
    filled with zero-stress days.

    Args:
        daily_loads: List of (date, stress) tuples, need not be consecutive
        window_days: History window used for fitness
        ctl_days: Fitness time constant
        atl_days: Fatigue time constant

    Returns:
        List of FitnessSnapshot, one per day from the first to the last date
    """
    if window_days <= 0:
        raise ValidationError("window_days must be positive", field="window_days")
    if not daily_loads:
        return []

    by_date: Dict[date, float] = {}
    for day, stress in daily_loads:
        by_date[day] = by_date.get(day, 0.0) + (stress or 0.0)

    first, last = min(by_date), max(by_date)
    series = [by_date.get(first + timedelta(days=i), 0.0) for i in range((last - first).days + 1)]

    snapshots = []
    for index, stress in enumerate(series):
        window = series[max(0, index + 1 - window_days):index + 1]
        fitness = calculate_fitness(window, ctl_days)
        fatigue = calculate_fatigue(window, atl_days)
        form = fitness - fatigue
        snapshots.append(
            FitnessSnapshot(
                date=first + timedelta(days=index),
                daily_stress=stress,
                fitness=fitness,
                fatigue=fatigue,
                form=form,
                status=get_form_status(form, bands),
            )
        )

    return snapshots
