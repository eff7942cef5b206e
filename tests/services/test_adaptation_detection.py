"""Tests for the Adaptation Detection Service."""

from datetime import date, datetime

import pytest

from adaptive_training.config import EngineSettings
from adaptive_training.db.repositories.adaptation_repository import AdaptationRepository
from adaptive_training.exceptions import AdaptationNotFoundError
from adaptive_training.models.activity import Activity
from adaptive_training.models.adaptation import (
    Adaptation,
    AdaptationAssessment,
    AdaptationType,
)
from adaptive_training.models.plans import (
    PlannedWorkout,
    TrainingContext,
    TrainingPhase,
    WorkoutCategory,
)
from adaptive_training.services.adaptation_detection import (
    AdaptationService,
    calculate_stimulus_achieved,
    detect_adaptation,
    detect_adaptation_type,
    detect_unplanned,
    detect_week_adaptations,
    get_intensity_rank_delta,
    infer_workout_category,
    is_similar_category,
)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def endurance_plan():
    """One-hour endurance ride, 60 TSS."""
    return PlannedWorkout(
        id="plan-endurance",
        scheduled_date=date(2024, 6, 3),
        category=WorkoutCategory.ENDURANCE,
        target_duration_min=60,
        target_tss=60,
        week_number=4,
    )


@pytest.fixture
def vo2max_plan():
    """One-hour VO2max session, 90 TSS."""
    return PlannedWorkout(
        id="plan-vo2",
        scheduled_date=date(2024, 6, 5),
        category=WorkoutCategory.VO2MAX,
        target_duration_min=60,
        target_tss=90,
    )


def ride(
    minutes: float,
    tss: float,
    intensity_factor: float,
    day: int = 3,
    activity_id: str = "ride-1",
) -> Activity:
    return Activity(
        id=activity_id,
        start_time=datetime(2024, 6, day, 9, 0),
        duration_sec=minutes * 60,
        device_tss=tss,
        device_intensity_factor=intensity_factor,
    )


# ============================================================================
# Category inference and comparison
# ============================================================================

class TestInferWorkoutCategory:
    """Tests for inferring what an activity actually trained."""

    @pytest.mark.parametrize("intensity_factor,expected", [
        (0.50, "recovery"),
        (0.65, "endurance"),
        (0.80, "tempo"),
        (0.90, "sweet_spot"),
        (1.00, "threshold"),
        (1.10, "vo2max"),
        (1.30, "anaerobic"),
    ])
    def test_cycling_by_intensity_factor(self, intensity_factor, expected):
        activity = ride(60, 60, intensity_factor)
        assert infer_workout_category(activity) == expected

    def test_cycling_from_tss_when_no_if(self):
        """sqrt(100 TSS / 1h / 100) = IF 1.0."""
        activity = Activity("a", datetime(2024, 6, 3), 3600, device_tss=100)
        assert infer_workout_category(activity) == "threshold"

    def test_nothing_known_is_endurance(self):
        activity = Activity("a", datetime(2024, 6, 3), 3600)
        assert infer_workout_category(activity) == "endurance"

    def test_running_by_absolute_pace(self):
        """5:00/km without a threshold pace is tempo."""
        run = Activity("r", datetime(2024, 6, 3), 3000, distance_m=10000, sport_type="running")
        assert infer_workout_category(run) == "tempo"

    def test_running_relative_to_threshold_pace(self):
        """5:00/km against a 4:00/km threshold pace is easy running."""
        run = Activity("r", datetime(2024, 6, 3), 3000, distance_m=10000, sport_type="run")
        assert infer_workout_category(run, threshold_pace_sec=240) == "endurance"


class TestCategoryComparison:
    """Tests for category similarity and intensity ranks."""

    def test_same_category_is_similar(self):
        assert is_similar_category("threshold", WorkoutCategory.THRESHOLD)

    def test_neighbours_are_similar(self):
        assert is_similar_category(WorkoutCategory.ENDURANCE, "tempo")
        assert is_similar_category("flexibility", "recovery")

    def test_distant_categories_differ(self):
        assert not is_similar_category("endurance", "vo2max")

    def test_rank_delta(self):
        assert get_intensity_rank_delta("endurance", "threshold") == 3
        assert get_intensity_rank_delta(WorkoutCategory.VO2MAX, "recovery") == -6


# ============================================================================
# Stimulus and classification
# ============================================================================

class TestStimulusAchieved:
    """Tests for the achieved stimulus percentage."""

    def test_rounds_to_whole_percent(self):
        assert calculate_stimulus_achieved(60, 28) == 47

    def test_unknown_inputs(self):
        assert calculate_stimulus_achieved(None, 50) is None
        assert calculate_stimulus_achieved(0, 50) is None
        assert calculate_stimulus_achieved(60, None) is None

    def test_half_percent_rounds_up(self):
        assert calculate_stimulus_achieved(40, 5) == 13

    def test_capped(self):
        assert calculate_stimulus_achieved(10, 1000) == 500


class TestDetectAdaptationType:
    """Tests for the classification decision order."""

    def test_no_activity_is_skipped(self):
        assert detect_adaptation_type("endurance", 60, 60, None, None, None) == AdaptationType.SKIPPED

    def test_within_tolerance(self):
        result = detect_adaptation_type("endurance", 60, 60, "endurance", 63, 65)
        assert result == AdaptationType.COMPLETED_AS_PLANNED

    def test_unknown_actual_tss_does_not_count_against(self):
        result = detect_adaptation_type("endurance", 60, 60, "endurance", 60, None)
        assert result == AdaptationType.COMPLETED_AS_PLANNED

    def test_similar_category_counts_as_same(self):
        result = detect_adaptation_type("endurance", 60, 60, "tempo", 40, 45)
        assert result == AdaptationType.TIME_TRUNCATED

    def test_same_category_harder_effort_is_intensity_swap(self):
        """Right length, right category, 20% more stress."""
        result = detect_adaptation_type("endurance", 60, 60, "endurance", 60, 72)
        assert result == AdaptationType.INTENSITY_SWAP

    def test_tolerance_override(self):
        result = detect_adaptation_type(
            "endurance", 60, 60, "endurance", 50, 52,
            duration_match_tolerance=0.20, tss_match_tolerance=0.20,
        )
        assert result == AdaptationType.COMPLETED_AS_PLANNED


class TestDetectAdaptation:
    """Tests for building adaptation records."""

    def test_half_length_ride_is_truncated(self, endurance_plan):
        """Planned 60 min / 60 TSS, rode 30 min / 28 TSS."""
        adaptation = detect_adaptation(endurance_plan, ride(30, 28, 0.65))

        assert adaptation.adaptation_type == AdaptationType.TIME_TRUNCATED
        assert adaptation.stimulus_achieved_pct == 47
        assert adaptation.actual_workout_type == "endurance"
        assert adaptation.tss_delta == -32.0
        assert adaptation.duration_delta == -30.0
        assert adaptation.stimulus_analysis.missing == {"endurance": 30.0, "tss": 32.0}
        assert adaptation.assessment == AdaptationAssessment.CONCERNING
        assert "50%" in adaptation.explanation
        assert adaptation.week_number == 4

    def test_completed_as_planned(self, endurance_plan):
        adaptation = detect_adaptation(endurance_plan, ride(62, 63, 0.68))

        assert adaptation.adaptation_type == AdaptationType.COMPLETED_AS_PLANNED
        assert adaptation.assessment == AdaptationAssessment.ACCEPTABLE
        assert adaptation.stimulus_achieved_pct == 105

    def test_extended_is_beneficial_outside_taper(self, endurance_plan):
        adaptation = detect_adaptation(endurance_plan, ride(90, 85, 0.68))

        assert adaptation.adaptation_type == AdaptationType.TIME_EXTENDED
        assert adaptation.assessment == AdaptationAssessment.BENEFICIAL
        assert adaptation.stimulus_analysis.gained == {"endurance": 30.0, "tss": 25.0}

    def test_extended_during_taper(self, endurance_plan):
        context = TrainingContext(training_phase=TrainingPhase.TAPER)
        adaptation = detect_adaptation(endurance_plan, ride(90, 85, 0.68), context=context)

        assert adaptation.assessment == AdaptationAssessment.MINOR_CONCERN
        assert adaptation.training_phase == "taper"

    def test_upgraded(self, endurance_plan):
        adaptation = detect_adaptation(endurance_plan, ride(60, 100, 1.0))

        assert adaptation.adaptation_type == AdaptationType.UPGRADED
        assert adaptation.actual_workout_type == "threshold"
        assert adaptation.assessment == AdaptationAssessment.ACCEPTABLE

    def test_upgraded_while_fatigued(self, endurance_plan):
        context = TrainingContext(ctl=50, atl=75, tsb=-25)
        adaptation = detect_adaptation(endurance_plan, ride(60, 100, 1.0), context=context)

        assert adaptation.assessment == AdaptationAssessment.CONCERNING
        assert adaptation.tsb_at_time == -25

    def test_form_derived_from_loads(self, endurance_plan):
        context = TrainingContext(ctl=50, atl=75, tsb=10)
        adaptation = detect_adaptation(endurance_plan, ride(60, 100, 1.0), context=context)

        assert adaptation.assessment == AdaptationAssessment.CONCERNING
        assert adaptation.tsb_at_time == -25

    def test_form_without_loads(self, endurance_plan):
        context = TrainingContext(tsb=-30)
        adaptation = detect_adaptation(endurance_plan, ride(60, 100, 1.0), context=context)

        assert adaptation.assessment == AdaptationAssessment.CONCERNING
        assert adaptation.tsb_at_time == -30

    def test_downgraded_from_key_session(self, vo2max_plan):
        adaptation = detect_adaptation(vo2max_plan, ride(60, 45, 0.65, day=5))

        assert adaptation.adaptation_type == AdaptationType.DOWNGRADED
        assert adaptation.stimulus_analysis.missing["vo2max"] == 60.0
        assert adaptation.assessment == AdaptationAssessment.MINOR_CONCERN

    def test_intensity_swap(self, endurance_plan):
        adaptation = detect_adaptation(endurance_plan, ride(36, 60, 1.0))

        assert adaptation.adaptation_type == AdaptationType.INTENSITY_SWAP
        assert adaptation.stimulus_analysis.missing == {"endurance": 60.0, "tss": 60.0}
        assert adaptation.stimulus_analysis.gained == {"threshold": 36.0, "tss": 60.0}
        assert adaptation.assessment == AdaptationAssessment.MINOR_CONCERN

    def test_skipped(self, endurance_plan):
        adaptation = detect_adaptation(endurance_plan, None)

        assert adaptation.adaptation_type == AdaptationType.SKIPPED
        assert adaptation.activity_id is None
        assert adaptation.stimulus_achieved_pct == 0
        assert adaptation.tss_delta == -60
        assert adaptation.stimulus_analysis.missing == {"endurance": 60.0, "tss": 60.0}
        assert adaptation.assessment == AdaptationAssessment.CONCERNING

    def test_skipped_without_planned_tss(self):
        plan = PlannedWorkout(
            id="plan-open",
            scheduled_date=date(2024, 6, 3),
            category=WorkoutCategory.ENDURANCE,
            target_duration_min=60,
        )
        adaptation = detect_adaptation(plan, None)

        assert adaptation.adaptation_type == AdaptationType.SKIPPED
        assert adaptation.stimulus_achieved_pct is None
        assert adaptation.tss_delta is None

    def test_missing_plan_targets_do_not_raise(self):
        plan = PlannedWorkout(id="bare", scheduled_date=date(2024, 6, 3))
        adaptation = detect_adaptation(plan, ride(45, 40, 0.65))

        assert adaptation.stimulus_achieved_pct is None
        assert adaptation.tss_delta is None
        assert adaptation.planned_tss is None

    def test_unplanned(self):
        adaptation = detect_unplanned(ride(45, 40, 0.65))

        assert adaptation.adaptation_type == AdaptationType.UNPLANNED
        assert adaptation.planned_workout_id is None
        assert adaptation.is_planned is False
        assert adaptation.actual_tss == 40.0

    def test_serialization(self, endurance_plan):
        adaptation = detect_adaptation(endurance_plan, ride(30, 28, 0.65))
        restored = Adaptation.from_dict(adaptation.to_dict())

        assert restored == adaptation


class TestDetectWeekAdaptations:
    """Tests for detecting a week of adaptations."""

    @pytest.fixture
    def week(self, endurance_plan, vo2max_plan):
        rest = PlannedWorkout(id="plan-rest", scheduled_date=date(2024, 6, 4), category=WorkoutCategory.REST)
        thursday = PlannedWorkout(
            id="plan-thursday",
            scheduled_date=date(2024, 6, 6),
            category=WorkoutCategory.ENDURANCE,
            target_duration_min=90,
            target_tss=80,
        )
        return [thursday, vo2max_plan, rest, endurance_plan]

    @pytest.fixture
    def activities(self):
        return [
            ride(60, 60, 0.68, day=3, activity_id="monday"),
            ride(60, 50, 0.66, day=8, activity_id="saturday"),
        ]

    def test_full_week(self, week, activities):
        adaptations = detect_week_adaptations(week, activities)

        assert [(a.planned_workout_id, a.adaptation_type) for a in adaptations] == [
            ("plan-endurance", AdaptationType.COMPLETED_AS_PLANNED),
            ("plan-vo2", AdaptationType.SKIPPED),
            ("plan-thursday", AdaptationType.SKIPPED),
            (None, AdaptationType.UNPLANNED),
        ]
        assert adaptations[0].activity_id == "monday"
        assert adaptations[-1].activity_id == "saturday"

    def test_future_workouts_are_not_skipped(self, week, activities):
        adaptations = detect_week_adaptations(week, activities, as_of=date(2024, 6, 5))

        planned_ids = [a.planned_workout_id for a in adaptations if a.is_planned]
        assert planned_ids == ["plan-endurance", "plan-vo2"]

    def test_each_activity_used_once(self, endurance_plan):
        twin = PlannedWorkout(
            id="plan-twin",
            scheduled_date=date(2024, 6, 3),
            category=WorkoutCategory.ENDURANCE,
            target_duration_min=60,
            target_tss=60,
        )
        adaptations = detect_week_adaptations([endurance_plan, twin], [ride(60, 60, 0.68)])

        assert [a.adaptation_type for a in adaptations] == [
            AdaptationType.COMPLETED_AS_PLANNED,
            AdaptationType.SKIPPED,
        ]


# ============================================================================
# Service
# ============================================================================

class TestAdaptationService:
    """Tests for recording adaptations through the service."""

    @pytest.fixture
    def service(self, tmp_path):
        repository = AdaptationRepository(tmp_path / "adaptations.db")
        return AdaptationService(repository=repository, settings=EngineSettings())

    def test_detect_does_not_store(self, service, endurance_plan):
        service.detect(endurance_plan, ride(30, 28, 0.65))
        assert service.repository.count() == 0

    def test_later_activity_replaces_adaptation(self, service, endurance_plan):
        service.record(endurance_plan, None)
        assert service.get_adaptation("plan-endurance").adaptation_type == AdaptationType.SKIPPED

        service.record(endurance_plan, ride(62, 63, 0.68))

        stored = service.get_adaptation("plan-endurance")
        assert stored.adaptation_type == AdaptationType.COMPLETED_AS_PLANNED
        assert service.repository.count() == 1

    def test_record_week(self, service, endurance_plan):
        activities = [ride(60, 60, 0.68), ride(40, 30, 0.6, day=7, activity_id="extra")]
        service.record_week([endurance_plan], activities)

        assert service.repository.count() == 2
        assert service.repository.count(planned_only=True) == 1

    def test_missing_adaptation(self, service):
        with pytest.raises(AdaptationNotFoundError):
            service.get_adaptation("nope")

    def test_without_repository(self, endurance_plan):
        service = AdaptationService(settings=EngineSettings())
        adaptation = service.record(endurance_plan, ride(30, 28, 0.65))

        assert adaptation.adaptation_type == AdaptationType.TIME_TRUNCATED
        with pytest.raises(AdaptationNotFoundError):
            service.get_adaptation("plan-endurance")
