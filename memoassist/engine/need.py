"""Need calculation for memoassist.

Need is a unitless urgency value comparable across memo types:
- need >= MANDATORY_THRESHOLD: the memo must be scheduled today
- need < DISPLAY_THRESHOLD: computed but hidden from the user

Ranges by type:
- Deadline: DEADLINE_MIN_NEED up to 1.0 on the deadline day, more when overdue
- Routine: ROUTINE_MIN_NEED - ROUTINE_MAX_NEED (never mandatory)
- Backlog: BACKLOG_MIN_NEED - BACKLOG_MAX_NEED (never mandatory)
Any type drops to 0 once it is settled for the day.
"""

import logging
from datetime import datetime, timedelta

from memoassist.models.memo import Memo, MemoType, Period, DeadlineState, RoutineState, BacklogState
from memoassist.engine.duration import remaining_capacity
from memoassist.engine.period import period_progress
from memoassist.models.constants import (
    IMPORTANCE_SCORES,
    MANDATORY_THRESHOLD,
    DEADLINE_MIN_NEED,
    DEADLINE_MAX_NEED,
    DEADLINE_OVERDUE_STEP_PER_DAY,
    DEADLINE_OVERDUE_MAX_BONUS,
    DEADLINE_WORK_FLOOR,
    DEFAULT_TOTAL_MINUTES,
    ROUTINE_MIN_NEED,
    ROUTINE_MAX_NEED,
    ROUTINE_MIN_TIME_REMAINING,
    BACKLOG_MIN_NEED,
    BACKLOG_MAX_NEED,
    BACKLOG_DAILY_GROWTH,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def importance_score(memo: Memo) -> float:
    """Map the discrete importance level to its score (low 0.0, medium 0.2, high 0.4)."""
    return IMPORTANCE_SCORES.get(memo.importance, IMPORTANCE_SCORES["medium"])


def remaining_work_ratio(memo: Memo) -> float:
    """Share of the expected total work not yet logged (0.0 - 1.0)."""
    total = memo.total_duration_expected or DEFAULT_TOTAL_MINUTES
    return 1.0 - min(memo.time_spent_minutes / total, 1.0)


def _has_pending_session(state: DeadlineState, now: datetime) -> bool:
    today = now.date()
    return any(slot.day == today and not slot.logged for slot in state.accepted_slots)


def deadline_need(memo: Memo, state: DeadlineState, now: datetime) -> float:
    """Need for a deadline memo.

    Linear from DEADLINE_MIN_NEED at creation to 1.0 at the deadline, weighted
    down when most of the work is already logged. Reaches 1.0 on the deadline
    day, escalates when overdue, and is forced to 1.0 when the remaining work
    no longer fits in the minutes the predictor expects before the deadline.
    """
    if state.rejected_today or _has_pending_session(state, now):
        return 0.0

    deadline = memo.deadline
    if now >= deadline:
        days_overdue = (now - deadline) / ONE_DAY
        return DEADLINE_MAX_NEED + min(days_overdue * DEADLINE_OVERDUE_STEP_PER_DAY, DEADLINE_OVERDUE_MAX_BONUS)
    if now.date() >= state.deadline_day:
        return DEADLINE_MAX_NEED

    span = (deadline - memo.created_at).total_seconds()
    if span <= 0:
        return DEADLINE_MAX_NEED
    position = max(0.0, min(1.0, (now - memo.created_at).total_seconds() / span))
    base_need = DEADLINE_MIN_NEED + (DEADLINE_MAX_NEED - DEADLINE_MIN_NEED) * position

    remaining = remaining_work_ratio(memo)
    need = max(DEADLINE_MIN_NEED, base_need * (DEADLINE_WORK_FLOOR + (1 - DEADLINE_WORK_FLOOR) * remaining))

    total = memo.total_duration_expected or DEFAULT_TOTAL_MINUTES
    remaining_minutes = max(total - memo.time_spent_minutes, 0)
    capacity = remaining_capacity(state, now.date())
    if remaining_minutes > 0 and remaining_minutes >= capacity:
        logger.debug(
            f"Memo {memo.id} needs {remaining_minutes} min but only {capacity} min are expected before the deadline"
        )
        need = max(need, MANDATORY_THRESHOLD)
    return need


def routine_need(memo: Memo, state: RoutineState, now: datetime) -> float:
    """Need for a routine memo.

    Compares the completion shortfall with the time left in the period:
    urgency = (remaining / goal) / time_remaining, normalized so that being
    on track sits mid-range and being far behind saturates at ROUTINE_MAX_NEED.
    """
    if state.accepted_today or state.rejected_today:
        return 0.0

    goal = memo.recurrence_goal
    remaining = goal.count - state.completed_count_this_period
    if remaining <= 0 or state.was_capped_this_period:
        return 0.0
    # Multi-session daily goals stay open after a completion
    if state.completed_today and goal.period != Period.DAY:
        return 0.0

    progress = period_progress(now, state.period_start_date, memo.created_at.date(), goal.period)
    time_remaining = max(1.0 - progress, ROUTINE_MIN_TIME_REMAINING)
    urgency = (remaining / goal.count) / time_remaining
    normalized = max(0.0, min((urgency - 0.5) / 1.5, 1.0))
    return ROUTINE_MIN_NEED + (ROUTINE_MAX_NEED - ROUTINE_MIN_NEED) * normalized


def backlog_need(memo: Memo, state: BacklogState, now: datetime) -> float:
    """Need for a backlog memo: a slow "long untouched" ramp, capped below mandatory."""
    if state.accepted_today or state.rejected_today:
        return 0.0

    reference = memo.last_activity or memo.created_at
    days_untouched = max((now - reference) / ONE_DAY, 0.0)
    return min(BACKLOG_MIN_NEED + BACKLOG_DAILY_GROWTH * days_untouched, BACKLOG_MAX_NEED)


def compute_need(memo: Memo, now: datetime) -> float:
    """Need for any memo type.

    Raises:
        MissingStateError: If the memo has no state record for its type
    """
    state = memo.require_state()
    if memo.suggestion_available_from is not None and memo.suggestion_available_from > now:
        return 0.0

    if memo.type == MemoType.DEADLINE:
        return deadline_need(memo, state, now)
    if memo.type == MemoType.ROUTINE:
        return routine_need(memo, state, now)
    return backlog_need(memo, state, now)
