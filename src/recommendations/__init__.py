"""Daily workout recommendations."""

from .library import (
    WORKOUT_LIBRARY,
    get_workout_by_id,
    get_workouts_by_category,
    require_workout,
)
from .needs import (
    FORM_SCORING,
    analyze_training_needs,
    detect_zone_gaps,
    get_race_proximity,
)
from .workout import (
    CATEGORY_DEFINITIONS,
    build_category_recommendations,
    get_workout_recommendations,
    recommend_workout,
)
