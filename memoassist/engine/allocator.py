"""Gap allocation for memoassist.

Greedy best-fit assignment of suggestions to the day's free gaps:
1. Mandatory suggestions (need >= 1.0) go first, whatever their need order
2. Then by need (desc), importance (desc), duration (asc), memo id
3. Each suggestion takes the smallest compatible gap that fits its duration,
   retrying at its base duration when nothing fits
4. A gap hosts at most one suggestion and is consumed whole

This function is deterministic - same inputs always produce same outputs.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

from memoassist.models.memo import LocationPreference
from memoassist.models.suggestion import Suggestion, Gap, LocationLabel, Placement, minutes_to_hhmm

logger = logging.getLogger(__name__)


class AllocationResult:
    """Result of allocating suggestions to gaps."""

    def __init__(self):
        self.placements: Dict[str, str] = {}  # memo_id -> gap_id
        self.details: List[Placement] = []
        self.durations: Dict[str, int] = {}  # memo_id -> placed minutes
        self.remaining_capacity: Dict[str, int] = {}  # gap_id -> unused minutes
        self.unplaced: List[str] = []
        self.mandatory_unplaced: List[str] = []

    @property
    def is_overcommitted(self) -> bool:
        return bool(self.mandatory_unplaced)


def rank_suggestions(suggestions: List[Suggestion]) -> List[Suggestion]:
    """Order suggestions for allocation (highest priority first)."""
    return sorted(suggestions, key=_priority_sort_key)


def _priority_sort_key(suggestion: Suggestion) -> tuple:
    """Sort key: mandatory first, then need desc, importance desc, quick wins, memo id."""
    return (
        0 if suggestion.is_mandatory else 1,
        -suggestion.need,
        -suggestion.importance,
        suggestion.duration,
        suggestion.memo_id,
    )


def is_location_compatible(preference: str, label: Optional[str]) -> bool:
    """A gap suits a memo when either side has no preference, or they match."""
    if preference == LocationPreference.NONE:
        return True
    if label is None or label == LocationLabel.UNKNOWN:
        return True
    return preference == label


def _find_best_gap(pool: List[Gap], duration: int, preference: str) -> Optional[Gap]:
    fitting = [
        gap for gap in pool
        if gap.duration >= duration and is_location_compatible(preference, gap.location_label)
    ]
    if not fitting:
        return None
    return min(fitting, key=lambda gap: (gap.duration, gap.start_minutes, gap.gap_id))


def _warn_on_overlaps(gaps: List[Gap]) -> None:
    for previous, current in zip(gaps, gaps[1:]):
        if current.start_minutes < previous.end_minutes:
            logger.warning(f"Gaps {previous.gap_id} and {current.gap_id} overlap")


def allocate(
    suggestions: List[Suggestion],
    gaps: List[Gap],
    day: Optional[date] = None,
) -> AllocationResult:
    """Assign suggestions to gaps.

    Args:
        suggestions: Candidate suggestions (already visibility-filtered)
        gaps: The day's ordered, non-overlapping free gaps
        day: Planned day, copied onto placements

    Returns:
        AllocationResult with placements, unplaced memo ids and leftover gap capacity
    """
    result = AllocationResult()
    pool = sorted(gaps, key=lambda gap: (gap.start_minutes, gap.gap_id))
    _warn_on_overlaps(pool)

    for suggestion in rank_suggestions(suggestions):
        duration = suggestion.duration
        gap = _find_best_gap(pool, duration, suggestion.location_preference)

        # Retry at the shrink floor, then take as much of the gap as the ideal allows
        if gap is None and suggestion.base_duration < suggestion.duration:
            gap = _find_best_gap(pool, suggestion.base_duration, suggestion.location_preference)
            if gap is not None:
                duration = min(suggestion.duration, gap.duration)

        if gap is None:
            result.unplaced.append(suggestion.memo_id)
            if suggestion.is_mandatory:
                result.mandatory_unplaced.append(suggestion.memo_id)
                logger.warning(
                    f"No gap fits mandatory memo {suggestion.memo_id} "
                    f"({suggestion.duration} min, floor {suggestion.base_duration} min)"
                )
            continue

        pool.remove(gap)
        placement = Placement(
            memo_id=suggestion.memo_id,
            gap_id=gap.gap_id,
            day=day,
            start_time=gap.start,
            end_time=minutes_to_hhmm(gap.start_minutes + duration),
            duration=duration,
            shrunk=duration < suggestion.duration,
            remaining_capacity=gap.duration - duration,
        )
        result.placements[suggestion.memo_id] = gap.gap_id
        result.durations[suggestion.memo_id] = duration
        result.remaining_capacity[gap.gap_id] = placement.remaining_capacity
        result.details.append(placement)

    logger.debug(
        f"Allocated {len(result.placements)} of {len(suggestions)} suggestion(s) "
        f"into {len(gaps)} gap(s); {len(result.mandatory_unplaced)} mandatory unplaced"
    )
    return result
