"""Suggestion engine service for memoassist.

Wires the scoring pipeline (rollover -> need -> duration -> suggestions ->
allocation) and the reaction mutator to persistence.

Scoring is a read-mostly pass: memos are loaded, rolled over in memory, scored,
and only memos whose rollover changed something are written back. Scoring a
day other than today never writes anything.

Reactions run under a per-memo lock. A reaction for a memo that no longer
exists (deleted while the reaction was in flight) is a silent no-op.
"""

import logging
import threading
import uuid
import weakref
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from memoassist.database.repository import MemoRepository
from memoassist.models.memo import Memo, MemoType, AcceptedSlot, RecurrenceGoal
from memoassist.models.suggestion import Suggestion, Gap, Event
from memoassist.models.audit_event import AuditEvent, AuditEventType
from memoassist.models.memo_factory import create_memo, create_initial_state
from memoassist.engine.errors import InvalidReactionError, MissingStateError
from memoassist.engine.period import roll_over
from memoassist.engine.suggestions import build_suggestions, SuggestionBatch
from memoassist.engine.allocator import allocate, rank_suggestions, AllocationResult
from memoassist.engine.reactions import apply_reaction, ReactionType
from memoassist.engine.enrichment import enrich_memo, missing_fields, SOURCE_NONE
from memoassist.engine.duration import rebase_deadline
from memoassist.engine.gap_location import label_gaps

logger = logging.getLogger(__name__)
# Audit trail of engine decisions
audit_logger = logging.getLogger("memoassist.audit")

GapSource = Callable[[date], List[Gap]]

EDITABLE_FIELDS = (
    "title",
    "genre",
    "importance",
    "location_preference",
    "session_duration",
    "total_duration_expected",
    "suggestion_available_from",
)

# Per-memo locks shared by every engine instance in the process; an entry lives
# only while some caller holds a reference to its lock
_memo_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_memo_locks_guard = threading.Lock()


def _lock_for(memo_id: str) -> threading.Lock:
    with _memo_locks_guard:
        lock = _memo_locks.get(memo_id)
        if lock is None:
            lock = threading.Lock()
            _memo_locks[memo_id] = lock
        return lock


class PlanningContext:
    """Everything one scheduling pass shares, discarded with the pass.

    The day's gaps are fetched at most once per pass; call `invalidate_gaps`
    when the calendar changes mid-pass.
    """

    def __init__(self, now: datetime, day: Optional[date] = None, gap_source: Optional[GapSource] = None):
        self.now = now
        self.day = day or now.date()
        self._gap_source = gap_source
        self._gaps: Optional[List[Gap]] = None

    @property
    def is_today(self) -> bool:
        return self.day == self.now.date()

    @property
    def scoring_time(self) -> datetime:
        """`now` for today, the same time of day on the previewed day otherwise."""
        if self.is_today:
            return self.now
        return datetime.combine(self.day, self.now.time())

    def gaps(self) -> List[Gap]:
        if self._gaps is None:
            self._gaps = list(self._gap_source(self.day)) if self._gap_source else []
        return self._gaps

    def invalidate_gaps(self) -> None:
        self._gaps = None


class ReactionResult:
    """Outcome of one reaction."""

    def __init__(self, memo_id: str, action: str):
        self.memo_id = memo_id
        self.action = action
        self.applied: bool = False
        self.missing: bool = False
        self.error: Optional[str] = None
        self.memo: Optional[Memo] = None


class PlanResult:
    """Suggestions and their allocation for one day."""

    def __init__(self, day: date):
        self.day = day
        self.suggestions: List[Suggestion] = []
        self.allocation: AllocationResult = AllocationResult()


class SuggestionEngine:
    """Entry points used by the API and by the day-boundary job."""

    def __init__(
        self,
        repository: MemoRepository,
        gap_source: Optional[GapSource] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.gap_source = gap_source
        self.clock = clock or datetime.utcnow
        self.audit_events: List[AuditEvent] = []

    def _audit(self, event_type: AuditEventType, memo_id: Optional[str] = None, **details: Any) -> None:
        event = AuditEvent(id=str(uuid.uuid4()), event_type=event_type, memo_id=memo_id, details=details)
        self.audit_events.append(event)
        audit_logger.info(
            f"{event.event_type} memo={event.memo_id or '-'} details={event.details}",
            extra={"audit_event": event.model_dump(mode="json")},
        )

    # Memo lifecycle

    def create_memo(
        self,
        title: str,
        memo_type: MemoType,
        deadline: Optional[datetime] = None,
        recurrence_goal: Optional[RecurrenceGoal] = None,
        importance: Optional[Any] = None,
        enrich: bool = True,
        **fields: Any,
    ) -> Memo:
        """Create, enrich and persist a memo.

        Enrichment fills whatever the caller left out (importance only when not
        given). The state record is seeded after enrichment so the deadline
        curve starts from the enriched session length.
        """
        now = self.clock()
        memo = create_memo(
            title=title,
            memo_type=memo_type,
            deadline=deadline,
            recurrence_goal=recurrence_goal,
            importance=importance,
            now=now,
            **fields,
        )

        if enrich:
            wanted = missing_fields(memo)
            if importance is None:
                wanted.add("importance")
            source = enrich_memo(memo, wanted)
            if source != SOURCE_NONE:
                memo.state = create_initial_state(memo)
                self._audit(AuditEventType.MEMO_ENRICHED, memo.id, source=source, fields=sorted(wanted))

        created = self.repository.create(memo)
        self._audit(AuditEventType.MEMO_CREATED, created.id, type=created.type)
        logger.info(f"Created {created.type} memo {created.id}")
        return created

    def update_memo(self, memo_id: str, changes: Dict[str, Any]) -> Optional[Memo]:
        """Apply user edits; never touches last_activity.

        A new deadline re-bases the duration curve so its arrays keep matching
        the deadline span.
        """
        with _lock_for(memo_id):
            memo = self.repository.get(memo_id)
            if memo is None:
                return None

            for name in EDITABLE_FIELDS:
                if name in changes:
                    setattr(memo, name, changes[name])
            if changes.get("recurrence_goal") is not None and memo.type == MemoType.ROUTINE:
                memo.recurrence_goal = RecurrenceGoal.model_validate(changes["recurrence_goal"])
            if changes.get("deadline") is not None and memo.type == MemoType.DEADLINE:
                rebase_deadline(memo, changes["deadline"])

            memo.updated_at = self.clock()
            # Re-validate the edited memo as a whole
            memo = Memo.model_validate(memo.model_dump())
            return self.repository.update(memo)

    def delete_memo(self, memo_id: str) -> bool:
        with _lock_for(memo_id):
            return self.repository.delete(memo_id)

    # Scoring and allocation

    def _persist_rollover(self, memo_ids: List[str], now: datetime) -> List[str]:
        """Re-load each memo under its lock, roll it over and save it.

        Rollover is idempotent, so re-applying it to the freshest copy never
        overwrites a reaction saved since the scoring pass loaded the memo.
        """
        saved: List[str] = []
        for memo_id in memo_ids:
            with _lock_for(memo_id):
                memo = self.repository.get(memo_id)
                if memo is None:
                    continue
                try:
                    result = roll_over(memo, now)
                except MissingStateError as e:
                    logger.error(f"Skipping rollover: {e}")
                    continue
                if not result.changed:
                    continue
                self.repository.update(memo)
            saved.append(memo_id)
            if result.period_rolled:
                self._audit(AuditEventType.PERIOD_ROLLED_OVER, memo_id)
            if result.day_rolled:
                self._audit(AuditEventType.DAY_ROLLED_OVER, memo_id)
        return saved

    def _score(self, context: PlanningContext) -> SuggestionBatch:
        memos = self.repository.get_active()
        batch = build_suggestions(memos, context.scoring_time)
        if context.is_today and batch.rolled_memo_ids:
            self._persist_rollover(batch.rolled_memo_ids, context.now)
        return batch

    def compute_suggestions(self, day: Optional[date] = None) -> List[Suggestion]:
        """Visible suggestions for `day` (today by default), highest priority first."""
        context = PlanningContext(self.clock(), day)
        return rank_suggestions(self._score(context).visible)

    def allocate(self, suggestions: List[Suggestion], gaps: List[Gap], day: Optional[date] = None) -> AllocationResult:
        result = allocate(suggestions, gaps, day)
        for memo_id in result.mandatory_unplaced:
            self._audit(AuditEventType.MANDATORY_UNPLACED, memo_id, day=str(day) if day else None)
        return result

    def plan_day(
        self,
        day: Optional[date] = None,
        gaps: Optional[List[Gap]] = None,
        events: Optional[List[Event]] = None,
    ) -> PlanResult:
        """Score memos and allocate the visible suggestions to the day's gaps.

        Args:
            day: Day to plan (today by default)
            gaps: The day's gaps; fetched from the gap source when omitted
            events: The day's events, used to label gaps that have no location yet
        """
        context = PlanningContext(self.clock(), day, self.gap_source)
        day_gaps = gaps if gaps is not None else context.gaps()
        if events:
            day_gaps = label_gaps(day_gaps, events)

        plan = PlanResult(context.day)
        plan.suggestions = rank_suggestions(self._score(context).visible)
        plan.allocation = self.allocate(plan.suggestions, day_gaps, context.day)
        self._audit(
            AuditEventType.PLAN_BUILT,
            day=context.day.isoformat(),
            suggestions=len(plan.suggestions),
            placed=len(plan.allocation.placements),
        )
        return plan

    # Reactions and rollover

    def react(
        self,
        memo_id: str,
        action: str,
        slot: Optional[AcceptedSlot] = None,
        actual_duration: Optional[int] = None,
    ) -> ReactionResult:
        """Apply a user reaction to a memo under its lock."""
        result = ReactionResult(memo_id, action)
        with _lock_for(memo_id):
            memo = self.repository.get(memo_id)
            if memo is None:
                logger.info(f"Ignoring {action} for missing memo {memo_id}")
                result.missing = True
                return result

            now = self.clock()
            try:
                roll_over(memo, now)
                apply_reaction(memo, action, now, slot=slot, actual_duration=actual_duration)
            except InvalidReactionError as e:
                logger.info(f"Refused reaction: {e}")
                result.error = e.reason
                self._audit(AuditEventType.REACTION_REFUSED, memo_id, action=action, reason=e.reason)
                return result
            except MissingStateError as e:
                logger.error(f"Cannot apply {action}: {e}")
                result.error = str(e)
                return result

            try:
                result.memo = self.repository.update(memo)
            except ValueError:
                # Deleted between load and save
                logger.info(f"Memo {memo_id} disappeared while applying {action}")
                result.missing = True
                return result

        result.applied = True
        self._audit(_AUDIT_ACTIONS[ReactionType(action)], memo_id, duration=actual_duration)
        return result

    def on_day_boundary(self, now: Optional[datetime] = None) -> int:
        """Roll every stored memo over to `now`; returns how many changed."""
        now = now or self.clock()
        memo_ids = [memo.id for memo in self.repository.get_active()]
        rolled = self._persist_rollover(memo_ids, now)
        logger.info(f"Day boundary {now.date()}: {len(rolled)} memo(s) rolled over")
        return len(rolled)


_AUDIT_ACTIONS = {
    ReactionType.ACCEPT: AuditEventType.ACCEPTED,
    ReactionType.REJECT: AuditEventType.REJECTED,
    ReactionType.COMPLETE: AuditEventType.COMPLETED,
    ReactionType.UNDO: AuditEventType.UNDONE,
}
