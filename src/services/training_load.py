"""
Training load service.

Turns activity history into the fitness/fatigue/form series. Every call
recomputes from the activities it is given; nothing is cached between
calls.
"""

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from ..config import EngineSettings, get_settings
from ..exceptions import ValidationError
from ..metrics.fitness import (
    FitnessSnapshot,
    build_daily_stress,
    calculate_fitness_series,
    get_form_status,
)
from ..models.activity import Activity
from ..models.plans import AthleteProfile, TrainingContext


class TrainingLoadService:
    """Computes fitness/fatigue/form snapshots from activity history."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize the training load service.

        Args:
            settings: Engine settings (defaults to get_settings())
            logger: Optional logger instance
        """
        self.settings = settings or get_settings()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def form_bands(self) -> Tuple[Tuple[str, float], ...]:
        return (
            ("fresh", self.settings.form_fresh_min),
            ("ready", self.settings.form_ready_min),
            ("optimal", self.settings.form_optimal_min),
            ("tired", self.settings.form_tired_min),
        )

    def compute_series(
        self,
        activities: Iterable[Activity],
        profile: Optional[AthleteProfile] = None,
        end_date: Optional[date] = None,
        window_days: Optional[int] = None,
    ) -> List[FitnessSnapshot]:
        """
        Fitness/fatigue/form for each day of the window ending on ``end_date``.

        Args:
            activities: Activity history
            profile: Athlete profile (FTP and HR settings)
            end_date: Last day of the series (defaults to today)
            window_days: Days in the series (defaults to the configured window)

        Returns:
            One FitnessSnapshot per day, oldest first
        """
        window_days = window_days if window_days is not None else self.settings.history_window_days
        if window_days <= 0:
            raise ValidationError("window_days must be positive", field="window_days")

        end_date = end_date or date.today()
        start_date = end_date - timedelta(days=window_days - 1)
        # The first day of the series still needs its own trailing window
        history_start = start_date - timedelta(days=window_days - 1)
        ftp = profile.ftp if profile else None

        daily = build_daily_stress(
            activities,
            history_start,
            end_date,
            ftp=ftp,
            profile=profile,
            variability=self.settings.default_variability,
            sentinel_watts=self.settings.power_sentinel_watts,
            max_boost=self.settings.np_max_boost,
            boost_factor=self.settings.np_boost_factor,
            multipliers=self.settings.variability_multipliers,
        )
        self._logger.debug(
            "Computing load series %s..%s (%d days, FTP %s)",
            start_date, end_date, window_days, ftp,
        )
        series = calculate_fitness_series(
            daily,
            window_days=window_days,
            ctl_days=self.settings.ctl_days,
            atl_days=self.settings.atl_days,
            bands=self.form_bands,
        )
        return series[-window_days:]

    def current_snapshot(
        self,
        activities: Iterable[Activity],
        profile: Optional[AthleteProfile] = None,
        end_date: Optional[date] = None,
        window_days: Optional[int] = None,
        context: Optional[TrainingContext] = None,
    ) -> FitnessSnapshot:
        """
        Snapshot for ``end_date``.

        A training context carrying ctl and atl replaces the recomputed
        values. Form is always their difference, so a supplied tsb that
        disagrees with them is ignored.
        """
        end_date = end_date or date.today()

        if context is not None and context.has_load_override:
            form = context.form
            self._logger.debug("Using caller-supplied load for %s", end_date)
            return FitnessSnapshot(
                date=end_date,
                daily_stress=0.0,
                fitness=context.ctl,
                fatigue=context.atl,
                form=form,
                status=get_form_status(form, self.form_bands),
            )

        series = self.compute_series(activities, profile, end_date, window_days)
        return series[-1]


# ============================================================================
# Factory function for dependency injection
# ============================================================================

_training_load_service: Optional[TrainingLoadService] = None


def get_training_load_service() -> TrainingLoadService:
    """Get or create the training load service singleton."""
    global _training_load_service
    if _training_load_service is None:
        _training_load_service = TrainingLoadService()
    return _training_load_service


def reset_training_load_service() -> None:
    """Reset the training load service singleton (for testing)."""
    global _training_load_service
    _training_load_service = None
