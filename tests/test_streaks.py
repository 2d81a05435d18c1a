"""Tests for streak calculation."""

from datetime import date, timedelta

from ckd_tracker.domain.summaries import DailySummary
from ckd_tracker.services.streaks import (
    compute_streaks,
    longest_streak,
    next_streak,
    propagate_forward,
)

START = date(2025, 3, 1)


def _day(offset: int) -> date:
    return START + timedelta(days=offset)


def test_streak_boundary_sequence() -> None:
    streaks = compute_streaks(
        [(_day(0), True), (_day(1), True), (_day(2), False), (_day(3), True)]
    )

    assert streaks[_day(1)] == 2
    assert streaks[_day(2)] == 0
    assert streaks[_day(3)] == 1


def test_calendar_gap_resets_streak() -> None:
    streaks = compute_streaks([(_day(0), True), (_day(2), True)])

    assert streaks[_day(2)] == 1


def test_next_streak() -> None:
    assert next_streak(True, 4) == 5
    assert next_streak(False, 4) == 0


def test_propagate_forward_rescoring_later_days() -> None:
    later = [
        DailySummary(day=_day(1), overall_treatment_done=True, overall_streak=1),
        DailySummary(day=_day(2), overall_treatment_done=True, overall_streak=2),
    ]

    updates = propagate_forward(_day(0), 1, later)

    assert updates == [(_day(1), 2), (_day(2), 3)]


def test_propagate_forward_stops_at_missed_day() -> None:
    later = [
        DailySummary(day=_day(1), overall_treatment_done=True, overall_streak=3),
        DailySummary(day=_day(2), overall_treatment_done=False, overall_streak=0),
        DailySummary(day=_day(3), overall_treatment_done=True, overall_streak=1),
    ]

    updates = propagate_forward(_day(0), 0, later)

    assert updates == [(_day(1), 1)]


def test_propagate_forward_stops_at_gap() -> None:
    later = [
        DailySummary(day=_day(2), overall_treatment_done=True, overall_streak=1),
    ]

    assert propagate_forward(_day(0), 5, later) == []


def test_longest_streak_of_empty_sequence() -> None:
    assert longest_streak([]) == 0
    assert longest_streak([1, 4, 2]) == 4
