"""Completed activity records as delivered by the sync layer."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from ..exceptions import ValidationError


RUNNING_SPORTS = frozenset({"run", "running", "trail_run", "trail_running", "treadmill", "virtual_run"})


def _parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp, a date or a datetime into a datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _first(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first non-None value among the given keys."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


@dataclass(frozen=True)
class Activity:
    """
    Immutable record of a completed session.

    Power fields are in watts, duration in seconds, distance and elevation
    in metres. Device-reported NP/IF/TSS are kept as delivered; whether
    they can be trusted is decided by the power normalizer.
    """

    id: str
    start_time: datetime
    duration_sec: float
    distance_m: Optional[float] = None
    elevation_gain_m: Optional[float] = None
    avg_power: Optional[float] = None
    max_power: Optional[float] = None
    avg_hr: Optional[float] = None
    device_normalized_power: Optional[float] = None
    device_intensity_factor: Optional[float] = None
    device_tss: Optional[float] = None
    sport_type: str = "ride"

    @property
    def date(self) -> date:
        """Calendar date the activity started on."""
        return self.start_time.date()

    @property
    def duration_min(self) -> float:
        return self.duration_sec / 60.0

    @property
    def is_running(self) -> bool:
        return self.sport_type.lower() in RUNNING_SPORTS

    @property
    def pace_sec_per_km(self) -> Optional[float]:
        """Average pace in seconds per kilometre, if distance is known."""
        if not self.distance_m or self.distance_m <= 0 or self.duration_sec <= 0:
            return None
        return self.duration_sec / (self.distance_m / 1000.0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "start_time": self.start_time.isoformat(),
            "duration_sec": self.duration_sec,
            "distance_m": self.distance_m,
            "elevation_gain_m": self.elevation_gain_m,
            "avg_power": self.avg_power,
            "max_power": self.max_power,
            "avg_hr": self.avg_hr,
            "device_normalized_power": self.device_normalized_power,
            "device_intensity_factor": self.device_intensity_factor,
            "device_tss": self.device_tss,
            "sport_type": self.sport_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        """
        Create an Activity from a store row.

        Accepts both this package's field names and the column names used
        by the activity sync tables (``moving_time``, ``average_watts``,
        ``max_watts``, ``normalized_power``, ``tss`` ...).
        """
        start_time = _parse_datetime(_first(data, "start_time", "start_date_local", "start_date", "date"))
        if start_time is None:
            raise ValidationError("Activity is missing a start time", field="start_time")

        duration = _first(data, "duration_sec", "moving_time", "elapsed_time")
        if duration is None and data.get("duration_min") is not None:
            duration = float(data["duration_min"]) * 60
        duration = float(duration or 0)
        if duration < 0:
            raise ValidationError("Activity duration cannot be negative", field="duration_sec")

        return cls(
            id=str(_first(data, "id", "activity_id") or ""),
            start_time=start_time,
            duration_sec=duration,
            distance_m=_optional_float(_first(data, "distance_m", "distance")),
            elevation_gain_m=_optional_float(_first(data, "elevation_gain_m", "total_elevation_gain")),
            avg_power=_optional_float(_first(data, "avg_power", "average_watts", "average_power")),
            max_power=_optional_float(_first(data, "max_power", "max_watts")),
            avg_hr=_optional_float(_first(data, "avg_hr", "average_heartrate")),
            device_normalized_power=_optional_float(
                _first(data, "device_normalized_power", "normalized_power")
            ),
            device_intensity_factor=_optional_float(
                _first(data, "device_intensity_factor", "intensity_factor")
            ),
            device_tss=_optional_float(_first(data, "device_tss", "tss", "training_stress_score")),
            sport_type=str(_first(data, "sport_type", "type") or "ride"),
        )
