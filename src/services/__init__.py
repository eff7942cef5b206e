"""Services for training load, plan adaptation and activity matching."""

from .activity_matching import calculate_match_score, find_best_matching_activity
from .adaptation_detection import (
    AdaptationService,
    analyze_stimulus_delta,
    calculate_stimulus_achieved,
    detect_adaptation,
    detect_adaptation_type,
    detect_unplanned,
    detect_week_adaptations,
    get_adaptation_service,
    get_intensity_rank_delta,
    infer_workout_category,
    is_similar_category,
    reset_adaptation_service,
)
from .training_load import (
    TrainingLoadService,
    get_training_load_service,
    reset_training_load_service,
)
