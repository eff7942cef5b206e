"""
Static cycling workout library.

Workouts are listed in display order; lookups by category preserve that
order, so the first entry of a category is its default pick.
"""

from typing import Dict, List, Optional

from ..exceptions import WorkoutNotFoundError
from ..models.recommendation import LibraryWorkout


_WORKOUTS = [
    # Recovery
    LibraryWorkout(
        "recovery_spin", "Recovery Spin", "recovery", 30, 20, 0.40,
        "Easy spinning for active recovery. Focus on smooth pedaling and recovery.",
    ),
    LibraryWorkout(
        "easy_recovery_ride", "Easy Recovery Ride", "recovery", 45, 30, 0.45,
        "Extended recovery ride with easy Zone 1-2 effort.",
    ),
    # Endurance
    LibraryWorkout(
        "foundation_miles", "Foundation Miles", "endurance", 60, 55, 0.65,
        "Classic Zone 2 endurance ride for aerobic base building.",
    ),
    LibraryWorkout(
        "endurance_base_build", "Endurance Base Build", "endurance", 90, 70, 0.67,
        "90-minute Zone 2 ride for building aerobic capacity.",
    ),
    LibraryWorkout(
        "long_endurance_ride", "Long Endurance Ride", "endurance", 180, 140, 0.68,
        "Classic 3-hour Zone 2 long ride for weekend training.",
    ),
    LibraryWorkout(
        "endurance_with_bursts", "Endurance with Neuromuscular Bursts", "endurance", 85, 70, 0.68,
        "Zone 2 endurance ride with periodic 15-second bursts for neuromuscular activation.",
    ),
    # Tempo
    LibraryWorkout(
        "tempo_ride", "Tempo Ride", "tempo", 60, 65, 0.83,
        "Sustained Zone 3 tempo effort. Moderately hard but sustainable.",
    ),
    LibraryWorkout(
        "two_by_twenty_tempo", "2x20 Tempo", "tempo", 75, 80, 0.85,
        "Classic 2x20-minute tempo intervals. Builds muscular endurance.",
    ),
    # Sweet spot
    LibraryWorkout(
        "traditional_sst", "Traditional Sweet Spot", "sweet_spot", 65, 85, 0.90,
        "45-minute sustained Sweet Spot effort. Classic SST workout.",
    ),
    LibraryWorkout(
        "three_by_ten_sst", "3x10 Sweet Spot", "sweet_spot", 60, 80, 0.88,
        "3x10-minute Sweet Spot intervals with short recovery.",
    ),
    LibraryWorkout(
        "four_by_twelve_sst", "4x12 Sweet Spot", "sweet_spot", 80, 95, 0.90,
        "4x12-minute Sweet Spot intervals. High training stress.",
    ),
    # Threshold
    LibraryWorkout(
        "two_by_twenty_ftp", "2x20 at FTP", "threshold", 70, 90, 0.95,
        "Classic 2x20-minute intervals at FTP. The gold standard threshold workout.",
    ),
    LibraryWorkout(
        "over_under_intervals", "Over-Under Intervals", "threshold", 75, 100, 0.98,
        "Alternating efforts above and below FTP. Improves lactate clearance.",
    ),
    LibraryWorkout(
        "threshold_pyramid", "Threshold Pyramid", "threshold", 70, 105, 0.98,
        "Descending pyramid: 20min + 10min + 5min at 98% FTP.",
    ),
    LibraryWorkout(
        "three_by_twelve_threshold", "3x12 Threshold", "threshold", 75, 95, 0.96,
        "3x12-minute threshold intervals. High-quality FTP work.",
    ),
    # VO2max
    LibraryWorkout(
        "thirty_thirty_intervals", "30/30 Intervals", "vo2max", 60, 85, 0.95,
        "30 seconds hard, 30 seconds easy. Maximizes time at VO2max.",
    ),
    LibraryWorkout(
        "forty_twenty_intervals", "40/20 Intervals", "vo2max", 55, 80, 0.93,
        "40 seconds on, 20 seconds off. High-intensity VO2max work.",
    ),
    LibraryWorkout(
        "five_by_four_vo2", "5x4min VO2 Max", "vo2max", 65, 95, 0.98,
        "Classic 5x4-minute VO2max intervals.",
    ),
    LibraryWorkout(
        "four_by_eight_vo2", "4x8min VO2 Max", "vo2max", 75, 105, 1.00,
        "Long VO2max intervals.",
    ),
    LibraryWorkout(
        "bossi_intervals", "Bossi Intervals (5x5)", "vo2max", 65, 100, 1.00,
        "Surging VO2max intervals. Alternates between VO2max and threshold.",
    ),
    # Climbing, anaerobic, racing
    LibraryWorkout(
        "hill_repeats", "Hill Repeats", "climbing", 70, 80, 0.88,
        "6x3-minute hill repeats at threshold power.",
    ),
    LibraryWorkout(
        "sprint_intervals", "Sprint Intervals", "anaerobic", 75, 70, 0.75,
        "10x30-second max sprints with full recovery.",
    ),
    LibraryWorkout(
        "race_simulation", "Race Simulation", "racing", 90, 105, 0.95,
        "Simulates race dynamics with varied efforts and surges.",
    ),
]

WORKOUT_LIBRARY: Dict[str, LibraryWorkout] = {w.id: w for w in _WORKOUTS}


def get_workout_by_id(workout_id: Optional[str]) -> Optional[LibraryWorkout]:
    """Look up a library workout, returning None for unknown ids."""
    if not workout_id:
        return None
    return WORKOUT_LIBRARY.get(workout_id)


def require_workout(workout_id: str) -> LibraryWorkout:
    """Look up a library workout, raising WorkoutNotFoundError if missing."""
    workout = get_workout_by_id(workout_id)
    if workout is None:
        raise WorkoutNotFoundError(workout_id)
    return workout


def get_workouts_by_category(category: str) -> List[LibraryWorkout]:
    """All library workouts of a category, in library order."""
    key = getattr(category, "value", category)
    return [w for w in _WORKOUTS if w.category == key]
