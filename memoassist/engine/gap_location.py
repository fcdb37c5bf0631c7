"""Gap location labelling for memoassist.

Labels the day's gaps with a best-effort location using layers:
- home is the base layer covering the whole day
- timetable events merge into one "workplace" span (earliest start to latest end)
- calendar events merge into one "other" span
A gap takes the label of the shortest span it overlaps.
"""

import math
from typing import List

from memoassist.models.suggestion import Gap, Event, EventSource, LocationLabel, hhmm_to_minutes

DAY_MINUTES = 24 * 60


class LocationSpan:
    """A continuous stretch of the day spent at one location."""

    def __init__(self, location: str, start: int, end: int, duration: float):
        self.location = location
        self.start = start
        self.end = end
        self.duration = duration


def _merged_span(events: List[Event], location: str) -> LocationSpan:
    start = min(hhmm_to_minutes(e.start) for e in events)
    end = max(hhmm_to_minutes(e.end) for e in events)
    return LocationSpan(location, start, end, end - start)


def build_location_spans(events: List[Event]) -> List[LocationSpan]:
    spans = []
    work_events = [e for e in events if e.source == EventSource.TIMETABLE]
    other_events = [e for e in events if e.source == EventSource.CALENDAR]
    if work_events:
        spans.append(_merged_span(work_events, LocationLabel.WORKPLACE.value))
    if other_events:
        spans.append(_merged_span(other_events, LocationLabel.OTHER.value))
    spans.append(LocationSpan(LocationLabel.HOME.value, 0, DAY_MINUTES, math.inf))
    return spans


def location_for_gap(gap: Gap, spans: List[LocationSpan]) -> str:
    overlapping = [s for s in spans if s.start < gap.end_minutes and s.end > gap.start_minutes]
    if not overlapping:
        return LocationLabel.HOME.value
    return min(overlapping, key=lambda s: s.duration).location


def label_gaps(gaps: List[Gap], events: List[Event]) -> List[Gap]:
    """Return copies of `gaps` with location labels; already-labelled gaps are kept as they are."""
    spans = build_location_spans(events)
    labelled = []
    for gap in gaps:
        if gap.location_label is not None:
            labelled.append(gap)
        else:
            labelled.append(gap.model_copy(update={"location_label": location_for_gap(gap, spans)}))
    return labelled
