"""Data models for memoassist."""

from memoassist.models.memo import (
    Memo,
    MemoType,
    Importance,
    LocationPreference,
    Period,
    RecurrenceGoal,
    AcceptedSlot,
    UndoRecord,
    RoutineState,
    DeadlineState,
    BacklogState,
)
from memoassist.models.suggestion import Suggestion, Gap, Event, EventSource, LocationLabel, Placement
from memoassist.models.audit_event import AuditEvent, AuditEventType

__all__ = [
    "Memo",
    "MemoType",
    "Importance",
    "LocationPreference",
    "Period",
    "RecurrenceGoal",
    "AcceptedSlot",
    "UndoRecord",
    "RoutineState",
    "DeadlineState",
    "BacklogState",
    "Suggestion",
    "Gap",
    "Event",
    "EventSource",
    "LocationLabel",
    "Placement",
    "AuditEvent",
    "AuditEventType",
]
