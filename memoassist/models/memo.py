"""Memo data model for memoassist."""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator


class MemoType(str, Enum):
    """Memo type enumeration (closed set)."""
    DEADLINE = "deadline"
    BACKLOG = "backlog"
    ROUTINE = "routine"


class Importance(str, Enum):
    """Importance level enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LocationPreference(str, Enum):
    """Where the user prefers to work on a memo."""
    HOME = "home"
    WORKPLACE = "workplace"
    NONE = "none"


class Period(str, Enum):
    """Routine goal period."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class RecurrenceGoal(BaseModel):
    """How often a routine should be done per period."""

    count: int = Field(..., ge=1, description="Completions wanted per period")
    period: Period = Field(..., description="Goal period")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class AcceptedSlot(BaseModel):
    """A time window the user committed to."""

    day: date = Field(..., description="Day the slot belongs to")
    start_time: str = Field(..., description="Slot start (HH:MM)")
    end_time: str = Field(..., description="Slot end (HH:MM)")
    duration: int = Field(..., gt=0, description="Slot length in minutes")
    logged: bool = Field(False, description="Whether a completion consumed this slot")

    @field_validator("start_time", "end_time")
    @classmethod
    def _validate_times(cls, value: str) -> str:
        hours, _, minutes = value.partition(":")
        if not (hours.isdigit() and minutes.isdigit() and 0 <= int(hours) <= 24 and 0 <= int(minutes) < 60):
            raise ValueError(f"Expected HH:MM, got {value!r}")
        return value


class UndoRecord(BaseModel):
    """Snapshot taken right before the most recent accept/complete.

    `state` is the JSON dump of the state record (which may itself carry the
    previous undo record), so restoring walks back one reaction at a time.
    """

    day: date = Field(..., description="Day the snapshot was taken")
    action: str = Field(..., description="Reaction the snapshot precedes")
    state: Dict[str, Any] = Field(..., description="State record before the reaction")
    last_activity: Optional[datetime] = Field(None, description="Memo last_activity before the reaction")
    time_spent_minutes: int = Field(0, description="Memo time_spent_minutes before the reaction")
    time_spent_today: int = Field(0, description="Memo time_spent_today before the reaction")


class RoutineState(BaseModel):
    """Explicit state of a routine memo."""

    kind: Literal["routine"] = "routine"
    accepted_today: bool = False
    completed_today: bool = False
    completed_count_this_period: int = Field(0, ge=0)
    last_completed_day: Optional[date] = None
    period_start_date: date = Field(..., description="Start of the current goal period")
    was_capped_this_period: bool = Field(False, description="Sticky once the period goal has been met")
    rejected_today: bool = False
    accepted_slot: Optional[AcceptedSlot] = None
    last_accepted_duration: Optional[int] = None
    previous_last_completed_day: Optional[date] = None
    undo: Optional[UndoRecord] = None


class DeadlineState(BaseModel):
    """Explicit state of a deadline memo.

    `actual_durations` and `expected_durations` are indexed by day offset from
    `created_day` and always hold exactly `total_days` entries.
    """

    kind: Literal["deadline"] = "deadline"
    created_day: date
    deadline_day: date
    actual_durations: List[int] = Field(default_factory=list)
    expected_durations: List[int] = Field(default_factory=list)
    smoothed_multiplier: float = 1.0
    rejected_today: bool = False
    accepted_slots: List[AcceptedSlot] = Field(default_factory=list)
    last_completed_day: Optional[date] = None
    previous_last_completed_day: Optional[date] = None
    undo: Optional[UndoRecord] = None

    @property
    def total_days(self) -> int:
        return max((self.deadline_day - self.created_day).days + 1, 1)

    def offset_for(self, day: date) -> int:
        """Day offset from creation, clamped into the curve."""
        offset = (day - self.created_day).days
        return min(max(offset, 0), self.total_days - 1)

    @model_validator(mode="after")
    def _validate_curve_lengths(self):
        if len(self.actual_durations) != self.total_days:
            raise ValueError(
                f"actual_durations has {len(self.actual_durations)} entries, expected {self.total_days}"
            )
        if len(self.expected_durations) != self.total_days:
            raise ValueError(
                f"expected_durations has {len(self.expected_durations)} entries, expected {self.total_days}"
            )
        return self


class BacklogState(BaseModel):
    """Explicit state of a backlog memo."""

    kind: Literal["backlog"] = "backlog"
    accepted_today: bool = False
    rejected_today: bool = False
    last_completed_day: Optional[date] = None
    previous_last_completed_day: Optional[date] = None
    accepted_slot: Optional[AcceptedSlot] = None
    last_accepted_duration: Optional[int] = None
    undo: Optional[UndoRecord] = None


MemoState = Annotated[
    Union[RoutineState, DeadlineState, BacklogState],
    Field(discriminator="kind"),
]

STATE_CLASSES = {
    "routine": RoutineState,
    "deadline": DeadlineState,
    "backlog": BacklogState,
}


class Memo(BaseModel):
    """Canonical Memo model."""

    id: str = Field(..., description="Unique memo identifier (UUID v4)")
    title: str = Field(..., description="Memo title")
    genre: Optional[str] = Field(None, description="Free-text category filled by enrichment")
    type: MemoType = Field(..., description="Memo type")
    created_at: datetime = Field(..., description="Memo creation timestamp")
    updated_at: datetime = Field(..., description="Memo last update timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft-delete timestamp (null if active)")
    deadline: Optional[datetime] = Field(None, description="Deadline (deadline memos only)")
    recurrence_goal: Optional[RecurrenceGoal] = Field(None, description="Routine goal (routine memos only)")
    location_preference: LocationPreference = Field(LocationPreference.NONE, description="Preferred location")
    session_duration: Optional[int] = Field(None, gt=0, description="Ideal minutes per session")
    total_duration_expected: Optional[int] = Field(None, gt=0, description="Expected total minutes of work")
    importance: Importance = Field(Importance.MEDIUM, description="Importance level")
    last_activity: Optional[datetime] = Field(
        None,
        description="Last accept/reject/complete (never touched by edits)",
    )
    time_spent_minutes: int = Field(0, ge=0, description="Cumulative logged minutes")
    time_spent_today: int = Field(0, ge=0, description="Logged minutes today")
    suggestion_available_from: Optional[datetime] = Field(
        None, description="Do not suggest before this time (e.g. event-linked memos)"
    )
    state: Optional[MemoState] = Field(None, description="Type-specific state record")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @model_validator(mode="after")
    def _validate_type_fields(self):
        is_deadline = self.type == MemoType.DEADLINE
        is_routine = self.type == MemoType.ROUTINE
        if is_deadline and self.deadline is None:
            raise ValueError("deadline memos require a deadline")
        if not is_deadline and self.deadline is not None:
            raise ValueError(f"{self.type} memos cannot carry a deadline")
        if is_routine and self.recurrence_goal is None:
            raise ValueError("routine memos require a recurrence goal")
        if not is_routine and self.recurrence_goal is not None:
            raise ValueError(f"{self.type} memos cannot carry a recurrence goal")
        return self

    def require_state(self):
        """Return the state record, raising MissingStateError when it does not match the type."""
        from memoassist.engine.errors import MissingStateError

        if self.state is None or self.state.kind != self.type:
            found = self.state.kind if self.state is not None else None
            raise MissingStateError(self.id, self.type, found)
        return self.state
