"""Period tracking for memoassist.

Detects calendar-day and routine-period boundaries and resets the per-day and
per-period bookkeeping on a memo's state record. Routine periods are aligned to
the memo's creation date: a weekly routine created on a Wednesday runs
Wednesday to Tuesday, a monthly one created on the 31st starts on the last day
of shorter months.

Rollover mutates the memo in place and is idempotent for a given `now`.
"""

import calendar
import logging
from datetime import date, datetime, timedelta

from memoassist.models.memo import Memo, MemoType, Period

logger = logging.getLogger(__name__)


class RolloverResult:
    """What a rollover call changed."""

    def __init__(self):
        self.day_rolled: bool = False
        self.period_rolled: bool = False

    @property
    def changed(self) -> bool:
        return self.day_rolled or self.period_rolled


def _clamped_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def _shift_month(year: int, month: int, delta: int):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def current_period_start(created: date, today: date, period: str) -> date:
    """Start of the creation-aligned period containing `today`."""
    if period == Period.DAY:
        return today
    if period == Period.WEEK:
        return today - timedelta(days=(today.weekday() - created.weekday()) % 7)

    anchor = _clamped_day(today.year, today.month, created.day)
    if today >= anchor:
        return anchor
    year, month = _shift_month(today.year, today.month, -1)
    return _clamped_day(year, month, created.day)


def next_period_start(period_start: date, created: date, period: str) -> date:
    """Start of the period after the one beginning at `period_start`."""
    if period == Period.DAY:
        return period_start + timedelta(days=1)
    if period == Period.WEEK:
        return period_start + timedelta(days=7)
    year, month = _shift_month(period_start.year, period_start.month, 1)
    return _clamped_day(year, month, created.day)


def period_progress(now: datetime, period_start: date, created: date, period: str) -> float:
    """Fraction of the current period that has elapsed (0.0 - 1.0)."""
    start = datetime.combine(period_start, datetime.min.time())
    end = datetime.combine(next_period_start(period_start, created, period), datetime.min.time())
    span = (end - start).total_seconds()
    if span <= 0:
        return 1.0
    return max(0.0, min(1.0, (now - start).total_seconds() / span))


def is_new_period(memo: Memo, now: datetime) -> bool:
    """Whether a routine memo's goal period has advanced past its stored start."""
    if memo.type != MemoType.ROUTINE or memo.recurrence_goal is None:
        return False
    state = memo.require_state()
    boundary = next_period_start(state.period_start_date, memo.created_at.date(), memo.recurrence_goal.period)
    return now.date() >= boundary


def _day_has_advanced(memo: Memo, now: datetime) -> bool:
    if memo.last_activity is None:
        return False
    return memo.last_activity.date() < now.date()


def _roll_day(memo: Memo, now: datetime) -> None:
    state = memo.state
    state.rejected_today = False
    state.undo = None
    memo.time_spent_today = 0

    if memo.type == MemoType.ROUTINE:
        state.accepted_today = False
        state.completed_today = False
        state.accepted_slot = None
    elif memo.type == MemoType.BACKLOG:
        state.accepted_today = False
        state.accepted_slot = None
    elif memo.type == MemoType.DEADLINE:
        # Sessions accepted for later days stay until the deadline is over.
        if now.date() > state.deadline_day:
            state.accepted_slots = []


def _roll_period(memo: Memo, now: datetime) -> None:
    state = memo.state
    state.completed_count_this_period = 0
    state.was_capped_this_period = False
    state.period_start_date = current_period_start(
        memo.created_at.date(), now.date(), memo.recurrence_goal.period
    )


def roll_over(memo: Memo, now: datetime) -> RolloverResult:
    """Reset daily flags and routine period counters that `now` has outgrown.

    Args:
        memo: Memo to update in place (callers persist the result)
        now: Current time

    Returns:
        RolloverResult describing which resets actually changed the memo

    Raises:
        MissingStateError: If the memo has no state record for its type
    """
    memo.require_state()
    result = RolloverResult()

    if _day_has_advanced(memo, now):
        before = memo.model_dump()
        _roll_day(memo, now)
        result.day_rolled = memo.model_dump() != before

    if is_new_period(memo, now):
        _roll_period(memo, now)
        result.period_rolled = True

    if result.changed:
        logger.debug(
            f"Rolled over memo {memo.id} (day={result.day_rolled}, period={result.period_rolled})"
        )
    return result
