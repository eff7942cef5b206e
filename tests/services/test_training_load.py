"""Tests for the training load service."""

from datetime import date, datetime, timedelta

import pytest

from adaptive_training.config import EngineSettings
from adaptive_training.exceptions import ValidationError
from adaptive_training.models.activity import Activity
from adaptive_training.models.plans import TrainingContext
from adaptive_training.services.training_load import (
    TrainingLoadService,
    get_training_load_service,
    reset_training_load_service,
)


@pytest.fixture
def service():
    return TrainingLoadService(settings=EngineSettings())


@pytest.fixture
def activities():
    """Ten days of riding with two rest days."""
    rides = []
    for day, tss in [(1, 60), (2, 90), (4, 120), (5, 45), (6, 70), (8, 150), (9, 30), (10, 80)]:
        rides.append(Activity(f"ride-{day}", datetime(2024, 6, day, 8, 0), 3600, device_tss=tss))
    return rides


class TestComputeSeries:
    """Tests for the daily load series."""

    def test_one_snapshot_per_day(self, service, activities):
        series = service.compute_series(activities, end_date=date(2024, 6, 10), window_days=10)

        assert len(series) == 10
        assert series[0].date == date(2024, 6, 1)
        assert series[-1].date == date(2024, 6, 10)
        assert series[2].daily_stress == 0.0
        assert series[7].daily_stress == 150.0

    def test_form_is_fitness_minus_fatigue(self, service, activities):
        for snapshot in service.compute_series(activities, end_date=date(2024, 6, 10)):
            assert snapshot.form == snapshot.fitness - snapshot.fatigue

    def test_window_must_be_positive(self, service, activities):
        with pytest.raises(ValidationError):
            service.compute_series(activities, end_date=date(2024, 6, 10), window_days=0)

    def test_each_day_sees_its_full_window(self, service):
        """Early days of a series include load from before the series starts."""
        end = date(2024, 6, 30)
        rides = []
        for offset in range(120):
            day = end - timedelta(days=offset)
            rides.append(Activity(f"ride-{offset}", datetime(day.year, day.month, day.day, 8, 0), 3600, device_tss=100))

        series = service.compute_series(rides, end_date=end, window_days=60)

        assert len(series) == 60
        assert series[0].date == end - timedelta(days=59)
        for index in (0, 1, 30, 59):
            snapshot = service.current_snapshot(rides, end_date=series[index].date, window_days=60)
            assert series[index] == snapshot
        assert series[0].fitness == series[-1].fitness

    def test_recomputation_is_identical(self, service, activities):
        first = service.compute_series(activities, end_date=date(2024, 6, 10))
        second = service.compute_series(activities, end_date=date(2024, 6, 10))
        assert first == second


class TestCurrentSnapshot:
    """Tests for the single-day snapshot."""

    def test_matches_last_day_of_series(self, service, activities):
        end = date(2024, 6, 10)
        snapshot = service.current_snapshot(activities, end_date=end)
        assert snapshot == service.compute_series(activities, end_date=end)[-1]

    def test_context_overrides_load(self, service, activities):
        context = TrainingContext(ctl=60, atl=70, tsb=99)
        snapshot = service.current_snapshot(activities, end_date=date(2024, 6, 10), context=context)

        assert snapshot.fitness == 60
        assert snapshot.fatigue == 70
        assert snapshot.form == -10
        assert snapshot.status == "optimal"

    def test_partial_context_is_ignored(self, service, activities):
        context = TrainingContext(ctl=60)
        end = date(2024, 6, 10)
        snapshot = service.current_snapshot(activities, end_date=end, context=context)
        assert snapshot == service.compute_series(activities, end_date=end)[-1]

    def test_configured_form_bands(self, activities):
        service = TrainingLoadService(settings=EngineSettings(form_fresh_min=30.0))
        context = TrainingContext(ctl=70, atl=50)

        snapshot = service.current_snapshot(activities, context=context)
        assert snapshot.status == "ready"


class TestFactory:
    """Tests for the service singleton."""

    def test_singleton(self):
        reset_training_load_service()
        assert get_training_load_service() is get_training_load_service()

    def test_reset(self):
        first = get_training_load_service()
        reset_training_load_service()
        assert get_training_load_service() is not first
