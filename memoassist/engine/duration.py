"""Duration prediction for memoassist.

Deadline memos carry an expected-duration curve that rises linearly from the
base session on the creation day to CURVE_FINAL_FACTOR x base on the deadline
day. Completed sessions feed a smoothed actual/expected multiplier that
extends (never shrinks) the predicted session.

Routine and backlog memos have no curve: their session is the last accepted
duration, falling back to the memo's session duration.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from memoassist.models.memo import Memo, MemoType, DeadlineState
from memoassist.models.constants import (
    DEFAULT_SESSION_MINUTES,
    CURVE_FINAL_FACTOR,
    SMOOTHING_ALPHA,
    SMOOTHING_WINDOW_DAYS,
    MIN_MULTIPLIER,
    MAX_MULTIPLIER,
)

logger = logging.getLogger(__name__)


def base_session(memo: Memo) -> int:
    """The user's original session estimate in minutes."""
    return memo.session_duration or DEFAULT_SESSION_MINUTES


def build_expected_curve(base: int, total_days: int) -> List[int]:
    """Seed the expected-duration curve for a deadline memo.

    Args:
        base: Base session minutes (day 0 value)
        total_days: Number of days from creation to deadline, inclusive

    Returns:
        Non-decreasing list of `total_days` minutes ending at CURVE_FINAL_FACTOR x base
    """
    final = base * CURVE_FINAL_FACTOR
    if total_days <= 1:
        return [final]
    step = (final - base) / (total_days - 1)
    return [int(round(base + step * i)) for i in range(total_days)]


def clamp_multiplier(value: float) -> float:
    return max(MIN_MULTIPLIER, min(MAX_MULTIPLIER, value))


def update_multiplier(state: DeadlineState, today: date) -> float:
    """Smooth the multiplier toward recent actual/expected ratios.

    Looks at up to SMOOTHING_WINDOW_DAYS most recent days (up to and including
    today) that have logged minutes. Mutates and returns `state.smoothed_multiplier`.
    """
    last_offset = state.offset_for(today)
    ratios = []
    for offset in range(last_offset, -1, -1):
        actual = state.actual_durations[offset]
        expected = state.expected_durations[offset]
        if actual > 0 and expected > 0:
            ratios.append(actual / expected)
        if len(ratios) >= SMOOTHING_WINDOW_DAYS:
            break

    if not ratios:
        return state.smoothed_multiplier

    target = sum(ratios) / len(ratios)
    smoothed = (1 - SMOOTHING_ALPHA) * state.smoothed_multiplier + SMOOTHING_ALPHA * target
    state.smoothed_multiplier = clamp_multiplier(smoothed)
    logger.debug(
        f"Multiplier updated to {state.smoothed_multiplier:.3f} "
        f"(target {target:.3f} over {len(ratios)} day(s))"
    )
    return state.smoothed_multiplier


def predict_deadline_duration(memo: Memo, state: DeadlineState, day: date) -> Tuple[int, int]:
    """Predicted session for a deadline memo on `day`.

    Returns:
        Tuple of (duration, base_duration); duration is never below base_duration
    """
    base = base_session(memo)
    expected = state.expected_durations[state.offset_for(day)]
    predicted = int(round(expected * state.smoothed_multiplier))
    return max(base, predicted), base


def predict_session_duration(memo: Memo, last_accepted_duration: Optional[int]) -> Tuple[int, int]:
    """Session for a routine or backlog memo (no regression).

    Returns:
        Tuple of (duration, base_duration)
    """
    session = base_session(memo)
    duration = last_accepted_duration or session
    return duration, min(session, duration)


def predict_duration(memo: Memo, day: date) -> Tuple[int, int]:
    """Dispatch to the type-specific prediction."""
    state = memo.require_state()
    if memo.type == MemoType.DEADLINE:
        return predict_deadline_duration(memo, state, day)
    return predict_session_duration(memo, state.last_accepted_duration)


def remaining_capacity(state: DeadlineState, day: date) -> int:
    """Minutes the predictor expects to be workable from `day` to the deadline."""
    if day > state.deadline_day:
        return 0
    start = state.offset_for(day)
    return int(round(sum(state.expected_durations[start:]) * state.smoothed_multiplier))


def rebase_deadline(memo: Memo, new_deadline: datetime) -> None:
    """Move a deadline memo's deadline, keeping the curve arrays consistent.

    The expected curve is re-seeded for the new length; logged actual minutes
    are kept (truncated or zero-padded).
    """
    state = memo.require_state()
    new_day = new_deadline.date()
    total_days = max((new_day - state.created_day).days + 1, 1)
    actual = list(state.actual_durations[:total_days])
    actual.extend([0] * (total_days - len(actual)))
    expected = build_expected_curve(base_session(memo), total_days)

    memo.deadline = new_deadline
    memo.state = DeadlineState(
        **{
            **state.model_dump(),
            "deadline_day": new_day,
            "actual_durations": actual,
            "expected_durations": expected,
        }
    )
    logger.debug(f"Rebased memo {memo.id} to {new_day} ({total_days} day(s))")
