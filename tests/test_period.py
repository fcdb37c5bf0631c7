"""Tests for period tracking and rollover."""

import pytest
from datetime import date, datetime, timedelta

from memoassist.engine.errors import MissingStateError
from memoassist.engine.period import (
    current_period_start,
    next_period_start,
    period_progress,
    is_new_period,
    roll_over,
)
from memoassist.models.memo import AcceptedSlot, BacklogState, Period


def _slot(day, start="18:00", end="18:30", duration=30):
    return AcceptedSlot(day=day, start_time=start, end_time=end, duration=duration)


class TestPeriodBoundaries:
    """Test creation-aligned period arithmetic."""

    def test_day_period_starts_today(self):
        assert current_period_start(date(2026, 3, 4), date(2026, 3, 9), Period.DAY) == date(2026, 3, 9)

    def test_week_aligned_to_creation_weekday(self):
        """A weekly routine created on a Wednesday runs Wednesday to Tuesday."""
        created = date(2026, 3, 4)  # Wednesday
        assert current_period_start(created, date(2026, 3, 10), Period.WEEK) == date(2026, 3, 4)
        assert current_period_start(created, date(2026, 3, 11), Period.WEEK) == date(2026, 3, 11)

    def test_month_clamped_to_short_month(self):
        """A monthly routine created on the 31st starts on the last day of shorter months."""
        created = date(2026, 1, 31)
        assert current_period_start(created, date(2026, 2, 28), Period.MONTH) == date(2026, 2, 28)
        assert current_period_start(created, date(2026, 2, 27), Period.MONTH) == date(2026, 1, 31)

    def test_next_period_start(self):
        assert next_period_start(date(2026, 3, 4), date(2026, 3, 4), Period.DAY) == date(2026, 3, 5)
        assert next_period_start(date(2026, 3, 4), date(2026, 3, 4), Period.WEEK) == date(2026, 3, 11)
        assert next_period_start(date(2026, 2, 28), date(2026, 1, 31), Period.MONTH) == date(2026, 3, 31)

    def test_period_progress(self):
        start = date(2026, 3, 4)
        assert period_progress(datetime(2026, 3, 4, 0, 0), start, start, Period.WEEK) == 0.0
        assert period_progress(datetime(2026, 3, 7, 12, 0), start, start, Period.WEEK) == pytest.approx(0.5)
        assert period_progress(datetime(2026, 3, 20), start, start, Period.WEEK) == 1.0


class TestRollOver:
    """Test roll_over() day and period resets."""

    def test_new_memo_does_not_roll(self, routine_memo, now):
        result = roll_over(routine_memo, now)
        assert not result.changed

    def test_day_rollover_clears_routine_flags(self, routine_memo, now):
        state = routine_memo.state
        state.accepted_today = True
        state.completed_today = True
        state.accepted_slot = _slot(now.date())
        routine_memo.last_activity = now
        routine_memo.time_spent_today = 30

        result = roll_over(routine_memo, now + timedelta(days=1))

        assert result.day_rolled is True
        assert state.accepted_today is False
        assert state.completed_today is False
        assert state.accepted_slot is None
        assert routine_memo.time_spent_today == 0

    def test_same_day_does_not_roll(self, backlog_memo, now):
        backlog_memo.state.rejected_today = True
        backlog_memo.last_activity = now

        result = roll_over(backlog_memo, now + timedelta(hours=6))

        assert not result.changed
        assert backlog_memo.state.rejected_today is True

    def test_rollover_is_idempotent(self, backlog_memo, now):
        backlog_memo.state.rejected_today = True
        backlog_memo.last_activity = now
        later = now + timedelta(days=1)

        first = roll_over(backlog_memo, later)
        snapshot = backlog_memo.model_dump()
        second = roll_over(backlog_memo, later)

        assert first.changed is True
        assert second.changed is False
        assert backlog_memo.model_dump() == snapshot

    def test_period_rollover_resets_routine_counters(self, routine_memo, now):
        state = routine_memo.state
        state.completed_count_this_period = 3
        state.was_capped_this_period = True
        routine_memo.last_activity = now
        next_week = now + timedelta(days=7)

        assert is_new_period(routine_memo, next_week) is True
        result = roll_over(routine_memo, next_week)

        assert result.period_rolled is True
        assert state.completed_count_this_period == 0
        assert state.was_capped_this_period is False
        assert state.period_start_date == date(2026, 3, 11)
        assert is_new_period(routine_memo, next_week) is False

    def test_period_not_rolled_mid_week(self, routine_memo, now):
        routine_memo.state.completed_count_this_period = 2
        result = roll_over(routine_memo, now + timedelta(days=6))
        assert result.period_rolled is False
        assert routine_memo.state.completed_count_this_period == 2

    def test_deadline_slots_survive_until_deadline_passes(self, deadline_memo, now):
        state = deadline_memo.state
        state.accepted_slots = [_slot(now.date()), _slot(now.date() + timedelta(days=2))]
        state.rejected_today = True
        deadline_memo.last_activity = now

        roll_over(deadline_memo, now + timedelta(days=1))
        assert len(state.accepted_slots) == 2
        assert state.rejected_today is False

        deadline_memo.last_activity = now + timedelta(days=1)
        roll_over(deadline_memo, datetime.combine(state.deadline_day + timedelta(days=1), now.time()))
        assert state.accepted_slots == []

    def test_accepted_and_rejected_never_both_after_rollover(self, backlog_memo, now):
        backlog_memo.state.accepted_today = True
        backlog_memo.state.rejected_today = True
        backlog_memo.last_activity = now

        roll_over(backlog_memo, now + timedelta(days=1))

        assert not (backlog_memo.state.accepted_today and backlog_memo.state.rejected_today)

    def test_mismatched_state_raises(self, routine_memo, now):
        routine_memo.state = BacklogState()
        with pytest.raises(MissingStateError):
            roll_over(routine_memo, now)

    def test_missing_state_raises(self, backlog_memo, now):
        backlog_memo.state = None
        with pytest.raises(MissingStateError):
            roll_over(backlog_memo, now)
