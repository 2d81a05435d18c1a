"""Tests for summary models, period keys and document parsing."""

from datetime import date

import pytest

from ckd_tracker.domain.documents import parse_summary_document
from ckd_tracker.domain.events import (
    FluidSessionEvent,
    SymptomEvent,
    WeightEvent,
    parse_event,
)
from ckd_tracker.domain.periods import (
    Granularity,
    period_bounds,
    period_key,
    period_starts,
)
from ckd_tracker.domain.summaries import (
    DailySummary,
    MonthlySummary,
    SymptomKind,
    WeeklySummary,
    empty_summary,
)
from ckd_tracker.errors import EventValidationError


def test_period_keys_are_canonical() -> None:
    day = date(2025, 1, 2)

    assert period_key(Granularity.DAY, day) == "2025-01-02"
    assert period_key(Granularity.WEEK, day) == "2025-W01"
    assert period_key(Granularity.MONTH, day) == "2025-01"


def test_iso_week_can_belong_to_next_year() -> None:
    assert period_key(Granularity.WEEK, date(2024, 12, 30)) == "2025-W01"


def test_period_bounds() -> None:
    assert period_bounds(Granularity.WEEK, date(2025, 3, 5)) == (
        date(2025, 3, 3),
        date(2025, 3, 9),
    )
    assert period_bounds(Granularity.MONTH, date(2024, 2, 10)) == (
        date(2024, 2, 1),
        date(2024, 2, 29),
    )
    assert period_bounds(Granularity.MONTH, date(2024, 12, 31)) == (
        date(2024, 12, 1),
        date(2024, 12, 31),
    )


def test_period_starts_cover_range() -> None:
    starts = period_starts(Granularity.MONTH, date(2024, 11, 15), date(2025, 1, 3))

    assert starts == [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1)]


def test_empty_period_summary_carries_bounds() -> None:
    weekly = empty_summary(Granularity.WEEK, date(2025, 3, 5))

    assert isinstance(weekly, WeeklySummary)
    assert weekly.start_date == date(2025, 3, 3)
    assert weekly.period_key == "2025-W10"


def test_daily_computed_properties() -> None:
    daily = DailySummary(
        day=date(2025, 3, 5),
        medication_total_doses=1,
        medication_scheduled_doses=2,
        medication_missed_count=1,
        fluid_total_volume=300,
        fluid_session_count=2,
    )

    assert daily.medication_adherence == 0.5
    assert daily.medication_adherence_percentage == 50
    assert daily.average_fluid_volume_per_session == 150
    assert daily.is_tracked
    assert daily.is_missed


def test_invariant_errors_flag_broken_counters() -> None:
    daily = DailySummary(
        day=date(2025, 3, 5),
        medication_total_doses=2,
        medication_scheduled_doses=1,
        overall_streak=3,
    )

    errors = daily.invariant_errors()

    assert "completed doses cannot exceed scheduled doses" in errors
    assert "streak must be 0 when overall treatment is not done" in errors


def test_monthly_day_limit_follows_month_length() -> None:
    monthly = MonthlySummary(
        start_date=date(2025, 2, 1),
        end_date=date(2025, 2, 28),
        overall_treatment_days=20,
        overall_missed_days=9,
    )

    assert monthly.day_limit() == 28
    assert "treatment + missed days cannot exceed 28" in monthly.invariant_errors()


def test_overall_adherence_over_tracked_days() -> None:
    weekly = WeeklySummary(overall_treatment_days=3, overall_missed_days=1)

    assert weekly.overall_adherence == 0.75


def test_parse_document_defaults_malformed_fields() -> None:
    parsed = parse_summary_document(
        DailySummary,
        {
            "day": "2025-03-05",
            "fluid_total_volume": "lots",
            "fluid_session_count": 2,
            "had_vomiting": None,
        },
    )

    assert parsed.summary.fluid_total_volume == 0
    assert parsed.summary.fluid_session_count == 2
    assert not parsed.summary.had_vomiting
    assert set(parsed.invalid_fields) == {"fluid_total_volume", "had_vomiting"}
    assert not parsed.is_clean


def test_parse_document_falls_back_for_required_fields() -> None:
    parsed = parse_summary_document(
        DailySummary, {"day": "not-a-date"}, {"day": "2025-03-05"}
    )

    assert parsed.summary.day == date(2025, 3, 5)
    assert parsed.invalid_fields == ("day",)


def test_parse_clean_document() -> None:
    weekly = WeeklySummary(
        start_date=date(2025, 3, 3), end_date=date(2025, 3, 9), fluid_session_count=4
    )

    parsed = parse_summary_document(WeeklySummary, weekly.to_document())

    assert parsed.is_clean
    assert parsed.summary == weekly


def test_symptom_event_derivation() -> None:
    event = SymptomEvent(scores={SymptomKind.VOMITING: 2, SymptomKind.LETHARGY: 0})

    assert event.has_symptoms
    assert event.total == 2
    assert event.average == 1
    assert SymptomEvent().total is None


@pytest.mark.parametrize(
    ("model", "payload", "field"),
    [
        (SymptomEvent, {"scores": {"vomiting": 11}}, "scores.vomiting"),
        (SymptomEvent, {"notes": "x" * 501}, "notes"),
        (FluidSessionEvent, {"volume_ml": -5}, "volume_ml"),
        (WeightEvent, {"kg": 0}, "kg"),
        (WeightEvent, {"kg": 15.5}, "kg"),
    ],
)
def test_parse_event_rejects_invalid_payloads(model, payload, field) -> None:
    with pytest.raises(EventValidationError) as exc_info:
        parse_event(model, payload)

    assert field in exc_info.value.fields
    assert exc_info.value.code == "EVENT_INVALID"
