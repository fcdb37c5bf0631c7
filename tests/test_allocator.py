"""Tests for gap allocation (deterministic greedy best-fit)."""

import pytest
from datetime import date
from pydantic import ValidationError

from memoassist.engine.allocator import allocate, rank_suggestions, is_location_compatible
from memoassist.models.suggestion import Suggestion, Gap


def _suggestion(memo_id, need, duration, base_duration=None, location="none", importance=0.2, memo_type="backlog"):
    return Suggestion(
        id=f"suggestion-{memo_id}",
        memo_id=memo_id,
        need=need,
        importance=importance,
        duration=duration,
        base_duration=base_duration or duration,
        type=memo_type,
        location_preference=location,
        is_hidden=need < 0.5,
    )


def _gap(gap_id, start, end, label=None):
    return Gap(gap_id=gap_id, start=start, end=end, location_label=label)


class TestRanking:
    """Test priority ordering of candidates."""

    def test_mandatory_before_higher_optional(self):
        optional = _suggestion("optional", 0.9, 30)
        mandatory = _suggestion("mandatory", 1.0, 30)
        overdue = _suggestion("overdue", 1.3, 30)
        ranked = rank_suggestions([optional, mandatory, overdue])
        assert [s.memo_id for s in ranked] == ["overdue", "mandatory", "optional"]

    def test_ties_broken_by_importance_then_quick_wins(self):
        a = _suggestion("a", 0.6, 45, importance=0.2)
        b = _suggestion("b", 0.6, 15, importance=0.2)
        c = _suggestion("c", 0.6, 60, importance=0.4)
        ranked = rank_suggestions([a, b, c])
        assert [s.memo_id for s in ranked] == ["c", "b", "a"]


class TestLocationCompatibility:
    """Test location matching rules."""

    def test_no_preference_fits_anywhere(self):
        assert is_location_compatible("none", "workplace") is True

    def test_unknown_or_missing_label_fits_anything(self):
        assert is_location_compatible("home", "unknown") is True
        assert is_location_compatible("home", None) is True

    def test_mismatch(self):
        assert is_location_compatible("home", "workplace") is False
        assert is_location_compatible("workplace", "workplace") is True


class TestAllocate:
    """Test allocate() placement behavior."""

    def test_mandatory_takes_smallest_feasible_gap(self):
        """A 60-min home gap and a 20-min workplace gap host a 30-min mandatory memo and a 15-min workplace memo."""
        gaps = [_gap("g-home", "09:00", "10:00", "home"), _gap("g-work", "13:00", "13:20", "workplace")]
        mandatory = _suggestion("m1", 1.2, 30, location="none", memo_type="deadline")
        workplace = _suggestion("m2", 0.9, 15, location="workplace", memo_type="routine")

        result = allocate([workplace, mandatory], gaps, date(2026, 3, 4))

        assert result.placements == {"m1": "g-home", "m2": "g-work"}
        assert result.unplaced == []
        assert result.remaining_capacity == {"g-home": 30, "g-work": 5}

    def test_mandatory_placed_first_when_gaps_are_scarce(self):
        gaps = [_gap("only", "18:00", "18:30")]
        optional = _suggestion("optional", 0.95, 30, importance=0.4)
        mandatory = _suggestion("mandatory", 1.0, 30, importance=0.0)

        result = allocate([optional, mandatory], gaps)

        assert result.placements == {"mandatory": "only"}
        assert result.unplaced == ["optional"]
        assert result.mandatory_unplaced == []

    def test_never_double_books_or_overfills(self):
        gaps = [
            _gap("a", "08:00", "08:20"),
            _gap("b", "10:00", "10:45"),
            _gap("c", "12:00", "13:00"),
        ]
        suggestions = [_suggestion(f"m{i}", 0.5 + i * 0.05, 15 + i * 10) for i in range(6)]
        gap_durations = {g.gap_id: g.duration for g in gaps}

        result = allocate(suggestions, gaps)

        hosted = list(result.placements.values())
        assert len(hosted) == len(set(hosted))
        for memo_id, gap_id in result.placements.items():
            assert result.durations[memo_id] <= gap_durations[gap_id]
        assert set(result.placements) | set(result.unplaced) == {s.memo_id for s in suggestions}

    def test_shrinks_toward_base_duration(self):
        gaps = [_gap("g", "16:00", "16:45")]
        suggestion = _suggestion("d1", 0.8, 60, base_duration=30, memo_type="deadline")

        result = allocate([suggestion], gaps)

        assert result.placements == {"d1": "g"}
        assert result.durations["d1"] == 45
        detail = result.details[0]
        assert detail.shrunk is True
        assert detail.start_time == "16:00"
        assert detail.end_time == "16:45"
        assert detail.remaining_capacity == 0

    def test_never_shrinks_below_base_duration(self):
        gaps = [_gap("g", "16:00", "16:20")]
        suggestion = _suggestion("d1", 0.8, 60, base_duration=30)

        result = allocate([suggestion], gaps)

        assert result.placements == {}
        assert result.unplaced == ["d1"]

    def test_infeasible_mandatory_is_reported(self):
        gaps = [_gap("g", "07:00", "07:15")]
        suggestion = _suggestion("late", 1.4, 90, base_duration=30, memo_type="deadline")

        result = allocate([suggestion], gaps)

        assert result.mandatory_unplaced == ["late"]
        assert result.is_overcommitted is True

    def test_placement_never_runs_past_gap_end(self):
        gaps = [_gap("late", "23:00", "23:30")]
        result = allocate([_suggestion("m", 0.8, 90, base_duration=45)], gaps)

        assert result.placements == {}
        assert result.unplaced == ["m"]

    def test_location_mismatch_leaves_unplaced(self):
        gaps = [_gap("g", "09:00", "10:00", "workplace")]
        result = allocate([_suggestion("home-only", 0.7, 30, location="home")], gaps)
        assert result.unplaced == ["home-only"]

    def test_gap_consumed_whole(self):
        gaps = [_gap("g", "09:00", "11:00")]
        suggestions = [_suggestion("a", 0.8, 15), _suggestion("b", 0.7, 15)]

        result = allocate(suggestions, gaps)

        assert result.placements == {"a": "g"}
        assert result.unplaced == ["b"]
        assert result.remaining_capacity["g"] == 105

    def test_deterministic(self):
        gaps = [_gap("g1", "09:00", "09:30"), _gap("g2", "11:00", "11:30"), _gap("g3", "15:00", "16:00")]
        suggestions = [
            _suggestion("x", 0.7, 30),
            _suggestion("y", 0.7, 30),
            _suggestion("z", 0.6, 45),
        ]

        first = allocate(suggestions, gaps)
        second = allocate(list(reversed(suggestions)), list(reversed(gaps)))

        assert first.placements == second.placements
        assert first.placements == {"x": "g1", "y": "g2", "z": "g3"}


class TestGapModel:
    """Test gap length derivation and consistency."""

    def test_duration_derived_from_times(self):
        assert _gap("g", "09:15", "10:00").duration == 45

    def test_matching_duration_is_accepted(self):
        assert Gap(gap_id="g", start="09:00", end="09:30", duration=30).duration == 30

    def test_duration_disagreeing_with_times_is_rejected(self):
        with pytest.raises(ValidationError):
            Gap(gap_id="g", start="23:00", end="23:30", duration=120)
