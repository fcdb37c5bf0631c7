"""Suggestion, Gap and Placement data models for memoassist.

These are ephemeral: recomputed on every scheduling pass and never persisted.
"""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from memoassist.models.memo import LocationPreference, MemoType


class LocationLabel(str, Enum):
    """Best-effort location of a gap."""
    HOME = "home"
    WORKPLACE = "workplace"
    OTHER = "other"
    UNKNOWN = "unknown"


class EventSource(str, Enum):
    """Where a calendar occurrence came from."""
    TIMETABLE = "timetable"
    CALENDAR = "calendar"


def hhmm_to_minutes(value: str) -> int:
    """Convert an "HH:MM" string to minutes since midnight."""
    hours, _, minutes = value.partition(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_hhmm(total: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{total // 60:02d}:{total % 60:02d}"


def _validate_hhmm(value: str) -> str:
    hours, _, minutes = value.partition(":")
    if not (hours.isdigit() and minutes.isdigit()):
        raise ValueError(f"Expected HH:MM, got {value!r}")
    if not (0 <= int(minutes) < 60 and 0 <= hhmm_to_minutes(value) <= 24 * 60):
        raise ValueError(f"Time of day out of range: {value!r}")
    return value


class Suggestion(BaseModel):
    """A scored candidate for filling a gap."""

    id: str = Field(..., description="Deterministic suggestion id for the day")
    memo_id: str = Field(..., description="Memo this suggestion was derived from")
    need: float = Field(..., ge=0.0, description="Urgency (>= 1.0 mandatory, < 0.5 hidden)")
    importance: float = Field(..., ge=0.0, description="Discrete importance score")
    duration: int = Field(..., gt=0, description="Ideal session minutes")
    base_duration: int = Field(..., gt=0, description="Shrink floor in minutes")
    type: MemoType = Field(..., description="Memo type")
    location_preference: LocationPreference = Field(LocationPreference.NONE, description="Preferred location")
    is_hidden: bool = Field(False, description="Whether the suggestion is kept out of user-facing lists")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def is_mandatory(self) -> bool:
        from memoassist.models.constants import MANDATORY_THRESHOLD
        return self.need >= MANDATORY_THRESHOLD


class Gap(BaseModel):
    """A free window in the day's calendar."""

    gap_id: str = Field(..., description="Gap identifier")
    start: str = Field(..., description="Start time of day (HH:MM)")
    end: str = Field(..., description="End time of day (HH:MM)")
    duration: Optional[int] = Field(None, ge=0, description="Length in minutes (derived from start/end if omitted)")
    location_label: Optional[LocationLabel] = Field(None, description="Best-effort location")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("start", "end")
    @classmethod
    def _validate_times(cls, value: str) -> str:
        return _validate_hhmm(value)

    @model_validator(mode="after")
    def _fill_duration(self):
        span = hhmm_to_minutes(self.end) - hhmm_to_minutes(self.start)
        if span < 0:
            raise ValueError(f"Gap {self.gap_id} ends before it starts")
        if self.duration is None:
            self.duration = span
        elif self.duration != span:
            raise ValueError(
                f"Gap {self.gap_id} declares {self.duration} minutes but spans {span} ({self.start}-{self.end})"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return hhmm_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return hhmm_to_minutes(self.end)


class Event(BaseModel):
    """A calendar or timetable occurrence on the planned day."""

    start: str = Field(..., description="Start time of day (HH:MM)")
    end: str = Field(..., description="End time of day (HH:MM)")
    source: EventSource = Field(EventSource.CALENDAR, description="Origin of the occurrence")
    title: Optional[str] = Field(None, description="Event title")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("start", "end")
    @classmethod
    def _validate_times(cls, value: str) -> str:
        return _validate_hhmm(value)


class Placement(BaseModel):
    """A suggestion placed into a gap."""

    memo_id: str = Field(..., description="Placed memo")
    gap_id: str = Field(..., description="Hosting gap")
    day: Optional[date] = Field(None, description="Planned day")
    start_time: str = Field(..., description="Session start (HH:MM)")
    end_time: str = Field(..., description="Session end (HH:MM)")
    duration: int = Field(..., gt=0, description="Placed minutes")
    shrunk: bool = Field(False, description="Whether the session was shrunk toward its floor")
    remaining_capacity: int = Field(0, ge=0, description="Unused minutes left in the gap")
