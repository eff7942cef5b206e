"""Tests for matching activities to planned workouts."""

from datetime import date, datetime

import pytest

from adaptive_training.models.activity import Activity
from adaptive_training.models.plans import PlannedWorkout, WorkoutCategory
from adaptive_training.services.activity_matching import (
    calculate_match_score,
    find_best_matching_activity,
)


@pytest.fixture
def planned():
    """One-hour endurance ride planned for Monday."""
    return PlannedWorkout(
        id="p1",
        scheduled_date=date(2024, 6, 3),
        category=WorkoutCategory.ENDURANCE,
        target_duration_min=60,
        target_tss=60,
    )


def ride(activity_id: str, day: int, minutes: float = 60, tss: float = 60) -> Activity:
    return Activity(
        id=activity_id,
        start_time=datetime(2024, 6, day, 8, 0),
        duration_sec=minutes * 60,
        device_tss=tss,
    )


class TestMatchScore:
    """Tests for the match score."""

    def test_perfect_match(self, planned):
        assert calculate_match_score(planned, ride("a", 3), 60) == 100

    def test_one_day_apart_loses_date_points(self, planned):
        assert calculate_match_score(planned, ride("a", 4), 60) == 60

    def test_two_days_apart_never_matches(self, planned):
        assert calculate_match_score(planned, ride("a", 5), 60) is None

    def test_partial_duration(self, planned):
        assert calculate_match_score(planned, ride("a", 3, minutes=30), None) == 55

    def test_unknown_tss_adds_nothing(self, planned):
        assert calculate_match_score(planned, ride("a", 3), None) == 70


class TestFindBestMatchingActivity:
    """Tests for choosing the activity for a planned workout."""

    def test_prefers_same_day(self, planned):
        activities = [ride("tuesday", 4), ride("monday", 3)]
        assert find_best_matching_activity(planned, activities).id == "monday"

    def test_skips_used_activities(self, planned):
        activities = [ride("monday", 3), ride("tuesday", 4)]
        best = find_best_matching_activity(planned, activities, used_ids={"monday"})
        assert best.id == "tuesday"

    def test_ties_keep_input_order(self, planned):
        activities = [ride("first", 3), ride("second", 3)]
        assert find_best_matching_activity(planned, activities).id == "first"

    def test_nothing_close_enough(self, planned):
        activities = [ride("later", 6), ride("earlier", 1)]
        assert find_best_matching_activity(planned, activities) is None

    def test_low_score_is_rejected(self, planned):
        activities = [ride("short", 4, minutes=5, tss=5)]
        assert find_best_matching_activity(planned, activities) is None
