"""
Data models for plan adaptation detection.

This module defines the structures for:
- Classifying how a completed activity deviated from its planned workout
- Breaking down which training stimulus was missed or gained
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class AdaptationType(str, Enum):
    """Classification of a completed activity against its plan."""
    COMPLETED_AS_PLANNED = "completed_as_planned"  # within tolerance
    TIME_TRUNCATED = "time_truncated"              # same category, shorter
    TIME_EXTENDED = "time_extended"                # same category, longer
    INTENSITY_SWAP = "intensity_swap"              # other category, similar stress
    UPGRADED = "upgraded"                          # harder than planned
    DOWNGRADED = "downgraded"                      # easier than planned
    SKIPPED = "skipped"                            # no activity for a due workout
    UNPLANNED = "unplanned"                        # activity with no plan


class AdaptationAssessment(str, Enum):
    """Rule-based judgement of an adaptation's impact on training."""
    BENEFICIAL = "beneficial"
    ACCEPTABLE = "acceptable"
    MINOR_CONCERN = "minor_concern"
    CONCERNING = "concerning"


@dataclass
class StimulusAnalysis:
    """
    What training stimulus was lost and gained.

    ``missing`` and ``gained`` map a workout category to minutes, plus a
    ``tss`` entry for training stress.
    """
    missing: Dict[str, float] = field(default_factory=dict)
    gained: Dict[str, float] = field(default_factory=dict)
    net_assessment: AdaptationAssessment = AdaptationAssessment.ACCEPTABLE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "missing": dict(self.missing),
            "gained": dict(self.gained),
            "net_assessment": self.net_assessment.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StimulusAnalysis":
        return cls(
            missing=dict(data.get("missing") or {}),
            gained=dict(data.get("gained") or {}),
            net_assessment=AdaptationAssessment(data.get("net_assessment", "acceptable")),
        )


@dataclass
class Adaptation:
    """
    Deviation between one planned workout and the activity matched to it.

    Contains:
    - The adaptation type classification
    - Planned vs actual metrics and their deltas
    - The stimulus breakdown and a rule-based assessment
    - The training context at the time of detection
    """
    planned_workout_id: Optional[str]
    activity_id: Optional[str]
    adaptation_type: AdaptationType

    planned_workout_type: Optional[str] = None
    planned_tss: Optional[float] = None
    planned_duration: Optional[float] = None  # minutes
    planned_intensity_factor: Optional[float] = None

    actual_workout_type: Optional[str] = None
    actual_tss: Optional[float] = None
    actual_duration: Optional[float] = None  # minutes
    actual_intensity_factor: Optional[float] = None
    actual_normalized_power: Optional[float] = None

    tss_delta: Optional[float] = None
    duration_delta: Optional[float] = None
    stimulus_achieved_pct: Optional[int] = None
    stimulus_analysis: Optional[StimulusAnalysis] = None

    assessment: Optional[AdaptationAssessment] = None
    explanation: Optional[str] = None

    week_number: Optional[int] = None
    training_phase: Optional[str] = None
    ctl_at_time: Optional[float] = None
    atl_at_time: Optional[float] = None
    tsb_at_time: Optional[float] = None

    detected_at: datetime = field(default_factory=datetime.now)

    @property
    def is_planned(self) -> bool:
        return self.planned_workout_id is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "planned_workout_id": self.planned_workout_id,
            "activity_id": self.activity_id,
            "adaptation_type": self.adaptation_type.value,
            "planned_workout_type": self.planned_workout_type,
            "planned_tss": self.planned_tss,
            "planned_duration": self.planned_duration,
            "planned_intensity_factor": self.planned_intensity_factor,
            "actual_workout_type": self.actual_workout_type,
            "actual_tss": self.actual_tss,
            "actual_duration": self.actual_duration,
            "actual_intensity_factor": self.actual_intensity_factor,
            "actual_normalized_power": self.actual_normalized_power,
            "tss_delta": self.tss_delta,
            "duration_delta": self.duration_delta,
            "stimulus_achieved_pct": self.stimulus_achieved_pct,
            "stimulus_analysis": (
                self.stimulus_analysis.to_dict() if self.stimulus_analysis else None
            ),
            "assessment": self.assessment.value if self.assessment else None,
            "explanation": self.explanation,
            "week_number": self.week_number,
            "training_phase": self.training_phase,
            "ctl_at_time": self.ctl_at_time,
            "atl_at_time": self.atl_at_time,
            "tsb_at_time": self.tsb_at_time,
            "detected_at": self.detected_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Adaptation":
        """Create from a dictionary produced by ``to_dict`` or a store row."""
        analysis = data.get("stimulus_analysis")
        assessment = data.get("assessment")
        detected_at = data.get("detected_at")
        if isinstance(detected_at, str):
            detected_at = datetime.fromisoformat(detected_at)

        return cls(
            planned_workout_id=data.get("planned_workout_id"),
            activity_id=data.get("activity_id"),
            adaptation_type=AdaptationType(data["adaptation_type"]),
            planned_workout_type=data.get("planned_workout_type"),
            planned_tss=data.get("planned_tss"),
            planned_duration=data.get("planned_duration"),
            planned_intensity_factor=data.get("planned_intensity_factor"),
            actual_workout_type=data.get("actual_workout_type"),
            actual_tss=data.get("actual_tss"),
            actual_duration=data.get("actual_duration"),
            actual_intensity_factor=data.get("actual_intensity_factor"),
            actual_normalized_power=data.get("actual_normalized_power"),
            tss_delta=data.get("tss_delta"),
            duration_delta=data.get("duration_delta"),
            stimulus_achieved_pct=data.get("stimulus_achieved_pct"),
            stimulus_analysis=StimulusAnalysis.from_dict(analysis) if analysis else None,
            assessment=AdaptationAssessment(assessment) if assessment else None,
            explanation=data.get("explanation"),
            week_number=data.get("week_number"),
            training_phase=data.get("training_phase"),
            ctl_at_time=data.get("ctl_at_time"),
            atl_at_time=data.get("atl_at_time"),
            tsb_at_time=data.get("tsb_at_time"),
            detected_at=detected_at or datetime.now(),
        )
