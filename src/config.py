"""Configuration settings for the training engine."""

from functools import lru_cache
from pathlib import Path
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_ROOT = Path(__file__).parent.parent


class EngineSettings(BaseSettings):
    """Engine tuning constants loaded from environment variables.

    Every heuristic threshold used by the metrics, adaptation and
    recommendation code lives here so it can be overridden per deployment
    (e.g. ``TRAINING_ENGINE_POWER_SENTINEL_WATTS=2000``).
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAINING_ENGINE_",
        env_file=str(PACKAGE_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Power normalizer
    power_sentinel_watts: float = 2500.0
    np_max_boost: float = 0.25
    np_boost_factor: float = 0.1
    variability_multipliers: Dict[str, float] = {
        "steady": 1.03,
        "moderate": 1.08,
        "variable": 1.15,
        "highly_variable": 1.20,
    }
    default_variability: str = "moderate"

    # Fitness / fatigue model
    ctl_days: int = 42
    atl_days: int = 7
    history_window_days: int = 90
    form_fresh_min: float = 15.0
    form_ready_min: float = 5.0
    form_optimal_min: float = -10.0
    form_tired_min: float = -25.0

    # Zone gap detection
    z2_power_ratio: float = 0.75
    intensity_power_ratio: float = 0.90
    z2_min_duration_min: float = 60.0
    z2_min_rides: int = 2
    gap_lookback_days: int = 7
    fallback_ftp: int = 200

    # Recommendation scoring
    missing_z2_bonus: float = 20.0
    missing_intensity_bonus: float = 15.0
    intensity_suppression_form: float = -10.0
    time_grace_min: int = 15

    # Adaptation detection
    duration_match_tolerance: float = 0.10
    duration_deviation_tolerance: float = 0.15
    tss_match_tolerance: float = 0.15
    tss_significant_tolerance: float = 0.25
    stimulus_pct_cap: int = 500

    # Storage
    adaptations_db_path: Path = PACKAGE_ROOT / "adaptations.db"


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
