"""
Training plan inputs: planned workouts, athlete profile and race goals.

Planned workouts are owned by the training-plan subsystem and are read-only
here. The athlete profile and training context arrive from other
collaborators and are validated with pydantic.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..exceptions import ValidationError


class WorkoutCategory(str, Enum):
    """Workout categories shared by plans, the library and adaptation."""

    REST = "rest"
    OFF = "off"
    RECOVERY = "recovery"
    ENDURANCE = "endurance"
    TEMPO = "tempo"
    SWEET_SPOT = "sweet_spot"
    THRESHOLD = "threshold"
    CLIMBING = "climbing"
    VO2MAX = "vo2max"
    ANAEROBIC = "anaerobic"
    RACING = "racing"

    @property
    def is_rest(self) -> bool:
        return self in (WorkoutCategory.REST, WorkoutCategory.OFF)

    @classmethod
    def parse(cls, value: Any, default: "WorkoutCategory" = None) -> "WorkoutCategory":
        """Parse a category string, falling back to ``default`` (endurance)."""
        if isinstance(value, cls):
            return value
        if value:
            try:
                return cls(str(value).lower())
            except ValueError:
                pass
        return default or cls.ENDURANCE


class TrainingPhase(str, Enum):
    """Periodization phase of the plan at the time of a workout."""

    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RECOVERY = "recovery"
    RACE = "race"


@dataclass(frozen=True)
class PlannedWorkout:
    """A scheduled session from the training plan."""

    id: str
    scheduled_date: date
    category: WorkoutCategory = WorkoutCategory.ENDURANCE
    target_duration_min: Optional[float] = None
    target_tss: Optional[float] = None
    target_intensity_factor: Optional[float] = None
    workout_id: Optional[str] = None  # workout library id
    name: Optional[str] = None
    week_number: Optional[int] = None
    completed: bool = False
    skipped_reason: Optional[str] = None

    @property
    def is_rest(self) -> bool:
        return self.category.is_rest

    @property
    def is_open(self) -> bool:
        """Still due: neither completed nor skipped."""
        return not self.completed and not self.skipped_reason

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "scheduled_date": self.scheduled_date.isoformat(),
            "category": self.category.value,
            "target_duration_min": self.target_duration_min,
            "target_tss": self.target_tss,
            "target_intensity_factor": self.target_intensity_factor,
            "workout_id": self.workout_id,
            "name": self.name,
            "week_number": self.week_number,
            "completed": self.completed,
            "skipped_reason": self.skipped_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannedWorkout":
        """Create from a plan row (accepts ``workout_type``/``target_duration`` aliases)."""
        scheduled = data.get("scheduled_date") or data.get("date")
        if isinstance(scheduled, str):
            scheduled = date.fromisoformat(scheduled[:10])
        elif isinstance(scheduled, datetime):
            scheduled = scheduled.date()
        if scheduled is None:
            raise ValidationError("Planned workout is missing a scheduled date", field="scheduled_date")

        duration = data.get("target_duration_min", data.get("target_duration"))
        if duration is not None and float(duration) < 0:
            raise ValidationError("Target duration cannot be negative", field="target_duration_min")

        return cls(
            id=str(data.get("id", "")),
            scheduled_date=scheduled,
            category=WorkoutCategory.parse(data.get("category") or data.get("workout_type")),
            target_duration_min=float(duration) if duration is not None else None,
            target_tss=float(data["target_tss"]) if data.get("target_tss") is not None else None,
            target_intensity_factor=data.get("target_intensity_factor"),
            workout_id=data.get("workout_id"),
            name=data.get("name"),
            week_number=data.get("week_number"),
            completed=bool(data.get("completed", False)),
            skipped_reason=data.get("skipped_reason"),
        )


# ============================================================================
# Pydantic models for collaborator inputs
# ============================================================================

class RaceGoal(BaseModel):
    """A target race on the athlete's calendar."""

    name: str
    race_date: date
    priority: Optional[str] = None


class AthleteProfile(BaseModel):
    """Athlete settings consumed by the engine."""

    ftp: Optional[int] = Field(None, gt=0, description="Functional Threshold Power in watts")
    unit_preference: str = Field("metric", description="Display units; unused by the engine")
    race_goals: List[RaceGoal] = Field(default_factory=list)
    max_hr: Optional[int] = Field(None, gt=0)
    rest_hr: Optional[int] = Field(None, gt=0)
    threshold_hr: Optional[int] = Field(None, gt=0)

    @field_validator("ftp", mode="before")
    @classmethod
    def _zero_ftp_is_unknown(cls, value: Any) -> Any:
        # Profiles store 0 for "never tested"
        if value in (0, "0", ""):
            return None
        return value

    @property
    def has_hr_profile(self) -> bool:
        return bool(self.max_hr and self.rest_hr and self.threshold_hr)


class TrainingContext(BaseModel):
    """Caller-supplied training context that overrides recomputed values."""

    week_number: Optional[int] = None
    training_phase: Optional[TrainingPhase] = None
    ctl: Optional[float] = None
    atl: Optional[float] = None
    tsb: Optional[float] = None

    @property
    def has_load_override(self) -> bool:
        return self.ctl is not None and self.atl is not None

    @property
    def form(self) -> Optional[float]:
        """Form (tsb). Derived from ctl and atl when both are known."""
        if self.has_load_override:
            return self.ctl - self.atl
        return self.tsb
