"""State mutation for memoassist.

Applies the user's reaction (accept, reject, complete, undo) to a memo's state
record. Each reaction either applies completely or raises
InvalidReactionError before touching anything.

Accept and complete store a snapshot of the state right before the change, so
undo restores it exactly. Reject drops the snapshot; rollover to a new day
drops it too, which makes undo a same-day operation.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from memoassist.models.memo import Memo, MemoType, Period, AcceptedSlot, UndoRecord, STATE_CLASSES
from memoassist.engine.errors import InvalidReactionError
from memoassist.engine.duration import update_multiplier

logger = logging.getLogger(__name__)


class ReactionType(str, Enum):
    """User reaction enumeration."""
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"
    UNDO = "undo"


def _snapshot(memo: Memo, action: str, now: datetime) -> UndoRecord:
    return UndoRecord(
        day=now.date(),
        action=action,
        state=memo.state.model_dump(mode="json"),
        last_activity=memo.last_activity,
        time_spent_minutes=memo.time_spent_minutes,
        time_spent_today=memo.time_spent_today,
    )


def _mark_slot_logged(memo: Memo, now: datetime) -> None:
    today = now.date()
    if memo.type == MemoType.DEADLINE:
        for slot in memo.state.accepted_slots:
            if slot.day == today and not slot.logged:
                slot.logged = True
                return
    elif memo.state.accepted_slot is not None:
        memo.state.accepted_slot.logged = True


def accept(memo: Memo, now: datetime, slot: Optional[AcceptedSlot] = None) -> None:
    """Commit to working on the memo today (deadline memos append a session slot)."""
    state = memo.require_state()
    if state.rejected_today:
        raise InvalidReactionError(memo.id, ReactionType.ACCEPT.value, "memo was already rejected today")
    if memo.type == MemoType.DEADLINE and slot is None:
        raise InvalidReactionError(memo.id, ReactionType.ACCEPT.value, "deadline memos need a time slot")

    undo = _snapshot(memo, ReactionType.ACCEPT.value, now)
    if memo.type == MemoType.DEADLINE:
        state.accepted_slots.append(slot)
    else:
        state.accepted_today = True
        state.accepted_slot = slot
        if slot is not None:
            state.last_accepted_duration = slot.duration

    state.previous_last_completed_day = state.last_completed_day
    state.last_completed_day = now.date()
    state.rejected_today = False
    state.undo = undo
    memo.last_activity = now


def reject(memo: Memo, now: datetime) -> None:
    """Dismiss the memo for the rest of the day."""
    state = memo.require_state()
    today = now.date()
    if memo.type == MemoType.DEADLINE:
        state.accepted_slots = [slot for slot in state.accepted_slots if slot.day != today or slot.logged]
    else:
        state.accepted_today = False
        state.accepted_slot = None

    state.rejected_today = True
    state.undo = None
    memo.last_activity = now


def complete(memo: Memo, now: datetime, actual_duration: int) -> None:
    """Log a finished session of `actual_duration` minutes."""
    state = memo.require_state()
    if actual_duration is None or actual_duration <= 0:
        raise InvalidReactionError(memo.id, ReactionType.COMPLETE.value, "actual duration must be positive")

    today = now.date()
    undo = _snapshot(memo, ReactionType.COMPLETE.value, now)
    _mark_slot_logged(memo, now)

    if memo.type == MemoType.ROUTINE:
        state.completed_count_this_period += 1
        state.completed_today = True
        state.last_accepted_duration = actual_duration
        if state.completed_count_this_period >= memo.recurrence_goal.count:
            state.was_capped_this_period = True
        elif memo.recurrence_goal.period == Period.DAY:
            # Daily goals above one session reopen after each logged session
            state.accepted_today = False
    elif memo.type == MemoType.DEADLINE:
        # Minutes logged outside the creation..deadline span never feed the predictor
        if state.created_day <= today <= state.deadline_day:
            state.actual_durations[state.offset_for(today)] += actual_duration
            update_multiplier(state, today)
    else:
        state.accepted_today = True
        state.rejected_today = False
        state.last_accepted_duration = actual_duration

    state.previous_last_completed_day = state.last_completed_day
    state.last_completed_day = today
    state.undo = undo
    memo.time_spent_minutes += actual_duration
    memo.time_spent_today += actual_duration
    memo.last_activity = now


def undo(memo: Memo, now: datetime) -> None:
    """Restore the state from right before the most recent accept/complete today."""
    state = memo.require_state()
    record = state.undo
    if record is None:
        raise InvalidReactionError(memo.id, ReactionType.UNDO.value, "nothing to undo")
    same_day = memo.last_activity is not None and memo.last_activity.date() == now.date()
    if record.day != now.date() or not same_day:
        raise InvalidReactionError(memo.id, ReactionType.UNDO.value, "undo is only possible on the same day")

    memo.state = STATE_CLASSES[memo.type].model_validate(record.state)
    memo.last_activity = record.last_activity
    memo.time_spent_minutes = record.time_spent_minutes
    memo.time_spent_today = record.time_spent_today
    logger.debug(f"Undid {record.action} on memo {memo.id}")


def apply_reaction(
    memo: Memo,
    action: str,
    now: datetime,
    slot: Optional[AcceptedSlot] = None,
    actual_duration: Optional[int] = None,
) -> None:
    """Dispatch a reaction by name.

    Raises:
        InvalidReactionError: If the reaction cannot be applied
        MissingStateError: If the memo has no state record for its type
    """
    try:
        reaction = ReactionType(action)
    except ValueError:
        raise InvalidReactionError(memo.id, str(action), "unknown reaction")

    if reaction == ReactionType.ACCEPT:
        accept(memo, now, slot)
    elif reaction == ReactionType.REJECT:
        reject(memo, now)
    elif reaction == ReactionType.COMPLETE:
        complete(memo, now, actual_duration)
    else:
        undo(memo, now)
