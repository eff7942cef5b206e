"""Training metrics calculations."""

from .power import (
    NormalizedMetrics,
    is_power_sentinel,
    estimate_normalized_power,
    calculate_normalized_power,
    calculate_intensity_factor,
    calculate_variability_index,
    calculate_tss,
    normalize_activity,
)
from .load import (
    calculate_hrss,
    estimate_tss_from_duration,
    resolve_activity_stress,
)
from .fitness import (
    FitnessSnapshot,
    FORM_BANDS,
    build_daily_stress,
    calculate_fitness,
    calculate_fatigue,
    calculate_fitness_series,
    get_form_status,
    get_form_advice,
)
