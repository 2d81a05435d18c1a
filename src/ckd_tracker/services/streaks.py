"""Consecutive-day adherence streaks."""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from ckd_tracker.domain.summaries import DailySummary


def next_streak(treatment_done: bool, previous_streak: int) -> int:
    """Return the streak for a day given the streak of the day before it."""
    return previous_streak + 1 if treatment_done else 0


def compute_streaks(days: Iterable[tuple[date, bool]]) -> dict[date, int]:
    """Compute streaks for a set of days; calendar gaps reset the streak."""
    streaks: dict[date, int] = {}
    previous_day: date | None = None
    previous_streak = 0
    for day, done in sorted(days):
        if previous_day is None or day - previous_day != timedelta(days=1):
            previous_streak = 0
        previous_streak = next_streak(done, previous_streak)
        streaks[day] = previous_streak
        previous_day = day
    return streaks


def propagate_forward(
    day: date, streak: int, later_days: Sequence[DailySummary]
) -> list[tuple[date, int]]:
    """Re-score the days after a rewritten day.

    Walks consecutive calendar days and returns only the streaks that change.
    Stops at the first gap or the first day whose stored streak is already
    correct, since every later day then keeps its value.
    """
    updates: list[tuple[date, int]] = []
    expected_day = day + timedelta(days=1)
    current = streak
    for summary in sorted(later_days, key=lambda item: item.day):
        if summary.day < expected_day:
            continue
        if summary.day != expected_day:
            break
        current = next_streak(summary.overall_treatment_done, current)
        if current == summary.overall_streak:
            break
        updates.append((summary.day, current))
        expected_day += timedelta(days=1)
    return updates


def longest_streak(streaks: Iterable[int]) -> int:
    return max(streaks, default=0)
