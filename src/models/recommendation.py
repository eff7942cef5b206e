"""
Data models for the daily workout recommendation.

Recommendations are ephemeral: they are recomputed on every request and
never persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .plans import RaceGoal


class RacePhase(str, Enum):
    """Training phase implied by the distance to the next race."""
    RACE_WEEK = "race_week"      # 1-7 days out
    TAPER = "taper"              # 8-14 days out
    FINAL_BUILD = "final_build"  # 15-28 days out
    BUILD = "build"              # 29-56 days out
    BASE = "base"                # more than 56 days out


NEED_KEYS = ("recovery", "endurance", "intensity", "vo2max", "threshold")


@dataclass(frozen=True)
class LibraryWorkout:
    """A structured workout from the workout library."""
    id: str
    name: str
    category: str
    duration: Optional[int]  # minutes
    target_tss: Optional[int] = None
    intensity_factor: Optional[float] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "duration": self.duration,
            "target_tss": self.target_tss,
            "intensity_factor": self.intensity_factor,
            "description": self.description,
        }


@dataclass
class CategoryNeed:
    """Score (0-100+) and reason for one training category."""
    score: float = 0.0
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "reason": self.reason}


@dataclass
class TrainingNeeds:
    """Scores for each training category, combined across scoring stages."""
    recovery: CategoryNeed = field(default_factory=CategoryNeed)
    endurance: CategoryNeed = field(default_factory=CategoryNeed)
    intensity: CategoryNeed = field(default_factory=CategoryNeed)
    vo2max: CategoryNeed = field(default_factory=CategoryNeed)
    threshold: CategoryNeed = field(default_factory=CategoryNeed)

    def get(self, key: str) -> CategoryNeed:
        if key not in NEED_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def raise_to(self, key: str, score: float, reason: Optional[str] = None) -> None:
        """
        Combine a stage's score with ``max``.

        The reason is only filled in when none has been set yet, so the
        first stage to explain a category keeps its explanation.
        """
        need = self.get(key)
        need.score = max(need.score, score)
        if reason and not need.reason:
            need.reason = reason

    def add(self, key: str, bonus: float, reason: Optional[str] = None) -> None:
        """Add a fixed bonus on top of the current score."""
        need = self.get(key)
        need.score += bonus
        if reason and not need.reason:
            need.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        return {key: self.get(key).to_dict() for key in NEED_KEYS}


@dataclass
class RaceProximity:
    """Nearest future race and the phase it implies."""
    next_race: Optional[RaceGoal] = None
    days_until_race: Optional[int] = None
    phase: Optional[RacePhase] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next_race": (
                {"name": self.next_race.name, "race_date": self.next_race.race_date.isoformat()}
                if self.next_race else None
            ),
            "days_until_race": self.days_until_race,
            "phase": self.phase.value if self.phase else None,
        }


@dataclass
class ZoneGaps:
    """Training zones missing from the trailing week."""
    missing_z2: bool = False
    missing_intensity: bool = False
    total_rides: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "missing_z2": self.missing_z2,
            "missing_intensity": self.missing_intensity,
            "total_rides": self.total_rides,
        }


@dataclass
class TrainingNeedsAnalysis:
    """Everything the ranking step needs to know about today."""
    needs: TrainingNeeds
    race_proximity: RaceProximity
    gaps: ZoneGaps
    form_status: str
    form: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "needs": self.needs.to_dict(),
            "race_proximity": self.race_proximity.to_dict(),
            "gaps": self.gaps.to_dict(),
            "form_status": self.form_status,
            "form": self.form,
        }


@dataclass
class RecommendedWorkout:
    """One suggested workout with its category, score and reason."""
    workout: LibraryWorkout
    reason: str
    score: float
    category: str
    source: Optional[str] = None  # "plan" when taken from today's plan
    runner_up: Optional[LibraryWorkout] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "workout": self.workout.to_dict(),
            "reason": self.reason,
            "score": self.score,
            "category": self.category,
            "runner_up": self.runner_up.to_dict() if self.runner_up else None,
        }
        if self.source:
            result["source"] = self.source
        return result


@dataclass
class CategoryRecommendation:
    """A ranked category with its candidate workouts (at most two)."""
    category: str
    title: str
    reason: str
    score: float
    workouts: List[LibraryWorkout] = field(default_factory=list)

    def to_recommended(self) -> RecommendedWorkout:
        """Top workout of the category, with the next one as runner-up."""
        return RecommendedWorkout(
            workout=self.workouts[0],
            reason=self.reason,
            score=self.score,
            category=self.category,
            runner_up=self.workouts[1] if len(self.workouts) > 1 else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "title": self.title,
            "reason": self.reason,
            "score": self.score,
            "workouts": [w.to_dict() for w in self.workouts],
        }


@dataclass
class Recommendation:
    """Primary suggestion for today plus up to two alternatives."""
    primary: Optional[RecommendedWorkout]
    alternatives: List[RecommendedWorkout]
    analysis: TrainingNeedsAnalysis
    planned_rest: bool = False
    planned_rest_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict() if self.primary else None,
            "alternatives": [a.to_dict() for a in self.alternatives],
            "analysis": self.analysis.to_dict(),
            "planned_rest": self.planned_rest,
            "planned_rest_reason": self.planned_rest_reason,
        }


@dataclass
class RecommendationSet:
    """Full ranked categories for multi-card displays."""
    categories: List[CategoryRecommendation]
    analysis: TrainingNeedsAnalysis

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": [c.to_dict() for c in self.categories],
            "analysis": self.analysis.to_dict(),
        }
