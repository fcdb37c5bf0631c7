"""Suggestion building for memoassist.

Turns memos into scored Suggestions for one day. Period rollover runs lazily
here, so every memo read for scoring has fresh daily and period bookkeeping.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from memoassist.models.memo import Memo, MemoType
from memoassist.models.suggestion import Suggestion
from memoassist.models.constants import DISPLAY_THRESHOLD
from memoassist.engine.errors import MissingStateError
from memoassist.engine.period import roll_over, RolloverResult
from memoassist.engine.need import compute_need, importance_score
from memoassist.engine.duration import predict_duration

logger = logging.getLogger(__name__)


class SuggestionBatch:
    """Result of scoring a set of memos."""

    def __init__(self):
        self.suggestions: List[Suggestion] = []
        self.rollovers: Dict[str, RolloverResult] = {}
        self.failed_memo_ids: List[str] = []

    @property
    def visible(self) -> List[Suggestion]:
        return [s for s in self.suggestions if not s.is_hidden]

    @property
    def rolled_memo_ids(self) -> List[str]:
        return [memo_id for memo_id, result in self.rollovers.items() if result.changed]


def suggestion_id(memo_id: str, now: datetime) -> str:
    """Stable id for a memo's suggestion on a given day."""
    return f"suggestion-{memo_id}-{now.date().isoformat()}"


def is_settled(memo: Memo, now: datetime) -> bool:
    """Whether the memo was already accepted or rejected for today."""
    state = memo.require_state()
    if state.rejected_today:
        return True
    if memo.type == MemoType.DEADLINE:
        today = now.date()
        return any(slot.day == today and not slot.logged for slot in state.accepted_slots)
    return state.accepted_today


def build_suggestion(memo: Memo, now: datetime) -> Optional[Suggestion]:
    """Score one memo.

    Returns:
        Suggestion, or None when the memo is deleted, settled for today, or has no need

    Raises:
        MissingStateError: If the memo has no state record for its type
    """
    if memo.deleted_at is not None:
        return None
    if is_settled(memo, now):
        return None

    need = compute_need(memo, now)
    if need <= 0:
        return None

    duration, base_duration = predict_duration(memo, now.date())
    return Suggestion(
        id=suggestion_id(memo.id, now),
        memo_id=memo.id,
        need=need,
        importance=importance_score(memo),
        duration=duration,
        base_duration=base_duration,
        type=memo.type,
        location_preference=memo.location_preference,
        is_hidden=need < DISPLAY_THRESHOLD,
    )


def build_suggestions(memos: List[Memo], now: datetime) -> SuggestionBatch:
    """Roll over and score every memo; one memo failing never stops the rest.

    Args:
        memos: Memos to score (mutated in place by rollover)
        now: Current time

    Returns:
        SuggestionBatch with all suggestions (hidden ones included)
    """
    batch = SuggestionBatch()
    for memo in memos:
        if memo.deleted_at is not None:
            continue
        try:
            batch.rollovers[memo.id] = roll_over(memo, now)
            suggestion = build_suggestion(memo, now)
        except MissingStateError as e:
            logger.error(f"Excluding memo from scoring: {e}")
            batch.failed_memo_ids.append(memo.id)
            continue
        except Exception as e:
            logger.error(f"Failed to score memo {memo.id}: {type(e).__name__}: {str(e)}")
            batch.failed_memo_ids.append(memo.id)
            continue

        if suggestion is not None:
            batch.suggestions.append(suggestion)

    logger.debug(
        f"Scored {len(memos)} memo(s): {len(batch.suggestions)} suggestion(s), "
        f"{len(batch.visible)} visible, {len(batch.failed_memo_ids)} failed"
    )
    return batch
