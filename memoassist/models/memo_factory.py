"""Memo creation factory for memoassist.

Centralizes memo creation so every memo starts with consistent defaults and a
state record matching its type.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from memoassist.models.memo import (
    Memo,
    MemoType,
    RecurrenceGoal,
    RoutineState,
    DeadlineState,
    BacklogState,
)
from memoassist.models.constants import (
    DEFAULT_IMPORTANCE,
    DEFAULT_LOCATION_PREFERENCE,
)


def is_private_title(title: str) -> bool:
    """A memo whose title starts with a period (`.`) is never sent to the enrichment model."""
    return title.startswith('.') if title else False


def create_memo_defaults() -> Dict[str, Any]:
    """Get default memo values as a dictionary."""
    return {
        "genre": None,
        "importance": DEFAULT_IMPORTANCE,
        "location_preference": DEFAULT_LOCATION_PREFERENCE,
        "session_duration": None,
        "total_duration_expected": None,
        "suggestion_available_from": None,
    }


def create_initial_state(memo: Memo):
    """Build the state record a freshly created memo starts with."""
    # Imported here: the engine modules import the models package
    from memoassist.engine.duration import base_session, build_expected_curve
    from memoassist.engine.period import current_period_start

    created_day = memo.created_at.date()
    if memo.type == MemoType.ROUTINE:
        return RoutineState(
            period_start_date=current_period_start(created_day, created_day, memo.recurrence_goal.period),
        )
    if memo.type == MemoType.DEADLINE:
        deadline_day = memo.deadline.date()
        total_days = max((deadline_day - created_day).days + 1, 1)
        return DeadlineState(
            created_day=created_day,
            deadline_day=deadline_day,
            actual_durations=[0] * total_days,
            expected_durations=build_expected_curve(base_session(memo), total_days),
        )
    return BacklogState()


def create_memo(
    title: str,
    memo_type: MemoType,
    deadline: Optional[datetime] = None,
    recurrence_goal: Optional[RecurrenceGoal] = None,
    genre: Optional[str] = None,
    importance: Optional[Any] = None,
    location_preference: Optional[Any] = None,
    session_duration: Optional[int] = None,
    total_duration_expected: Optional[int] = None,
    suggestion_available_from: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Memo:
    """Create a memo with defaults and a seeded state record.

    Args:
        title: Memo title (required)
        memo_type: Deadline, backlog or routine
        deadline: Deadline (required for deadline memos)
        recurrence_goal: Goal per period (required for routine memos)
        genre: Free-text category (normally filled by enrichment)
        importance: Importance level (defaults to constant)
        location_preference: Preferred location (defaults to none)
        session_duration: Ideal minutes per session; seeds the deadline curve
            (defaults to DEFAULT_SESSION_MINUTES when absent)
        total_duration_expected: Expected total minutes of work
        suggestion_available_from: Do not suggest before this time
        now: Creation time (defaults to utcnow)

    Returns:
        Memo object with defaults applied and state attached
    """
    now = now or datetime.utcnow()
    defaults = create_memo_defaults()

    memo = Memo(
        id=str(uuid.uuid4()),
        title=title,
        type=memo_type,
        created_at=now,
        updated_at=now,
        deadline=deadline,
        recurrence_goal=recurrence_goal,
        genre=genre if genre is not None else defaults["genre"],
        importance=importance if importance is not None else defaults["importance"],
        location_preference=location_preference if location_preference is not None else defaults["location_preference"],
        session_duration=session_duration if session_duration is not None else defaults["session_duration"],
        total_duration_expected=total_duration_expected if total_duration_expected is not None else defaults["total_duration_expected"],
        suggestion_available_from=suggestion_available_from if suggestion_available_from is not None else defaults["suggestion_available_from"],
    )
    memo.state = create_initial_state(memo)
    return memo