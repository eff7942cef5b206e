"""Data models for activities, plans, adaptations and recommendations."""

from .activity import Activity
from .plans import (
    AthleteProfile,
    PlannedWorkout,
    RaceGoal,
    TrainingContext,
    TrainingPhase,
    WorkoutCategory,
)
from .adaptation import (
    Adaptation,
    AdaptationAssessment,
    AdaptationType,
    StimulusAnalysis,
)
from .recommendation import (
    CategoryNeed,
    CategoryRecommendation,
    LibraryWorkout,
    RacePhase,
    RaceProximity,
    Recommendation,
    RecommendationSet,
    RecommendedWorkout,
    TrainingNeeds,
    TrainingNeedsAnalysis,
    ZoneGaps,
)

__all__ = [
    "Activity",
    "AthleteProfile",
    "PlannedWorkout",
    "RaceGoal",
    "TrainingContext",
    "TrainingPhase",
    "WorkoutCategory",
    "Adaptation",
    "AdaptationAssessment",
    "AdaptationType",
    "StimulusAnalysis",
    "CategoryNeed",
    "CategoryRecommendation",
    "LibraryWorkout",
    "RacePhase",
    "RaceProximity",
    "Recommendation",
    "RecommendationSet",
    "RecommendedWorkout",
    "TrainingNeeds",
    "TrainingNeedsAnalysis",
    "ZoneGaps",
]
