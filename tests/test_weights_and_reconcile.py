"""Tests for weight trends, rollups and reconciliation."""

import asyncio
from datetime import date

import pytest

from ckd_tracker.domain.events import FluidSessionEvent, SymptomEvent, WeightEvent
from ckd_tracker.domain.periods import Granularity
from ckd_tracker.domain.summaries import DailySummary, SymptomKind, WeeklySummary
from ckd_tracker.errors import InvalidRangeError
from ckd_tracker.services.rollups import rollup_period, weight_fields, weight_trend


def test_weight_trend_threshold() -> None:
    assert weight_trend(0.1) == "stable"
    assert weight_trend(0.15) == "increasing"
    assert weight_trend(-0.2) == "decreasing"


def test_weight_fields_from_entries() -> None:
    fields = weight_fields({"2025-03-20": 4.4, "2025-03-02": 4.0, "2025-03-10": 4.2})

    assert fields["weight_first"] == 4.0
    assert fields["weight_first_date"] == "2025-03-02"
    assert fields["weight_latest"] == 4.4
    assert fields["weight_latest_date"] == "2025-03-20"
    assert fields["weight_entries_count"] == 3
    assert fields["weight_average"] == pytest.approx(4.2)
    assert fields["weight_change"] == pytest.approx(0.4)
    assert fields["weight_change_percent"] == pytest.approx(10.0)
    assert fields["weight_trend"] == "increasing"


def test_weight_upsert_and_delete(hooks, repository, subject_id) -> None:
    asyncio.run(
        hooks.on_weight_logged(subject_id, date(2025, 3, 2), WeightEvent(kg=4.0))
    )
    asyncio.run(
        hooks.on_weight_logged(subject_id, date(2025, 3, 9), WeightEvent(kg=4.1))
    )
    monthly = asyncio.run(
        hooks.on_weight_logged(subject_id, date(2025, 3, 9), WeightEvent(kg=3.8))
    )

    assert monthly.weight_entries_count == 2
    assert monthly.weight_latest == 3.8
    assert monthly.weight_trend == "decreasing"

    monthly = asyncio.run(hooks.on_weight_deleted(subject_id, date(2025, 3, 9)))

    stored = repository.data(subject_id, Granularity.MONTH, "2025-03")
    assert monthly.weight_entries_count == 1
    assert monthly.weight_latest == 4.0
    assert monthly.weight_trend == "stable"
    assert stored["weight_entries"] == {"2025-03-02": 4.0}
    assert stored["start_date"] == "2025-03-01"


def test_deleting_unknown_weight_writes_nothing(hooks, repository, subject_id) -> None:
    monthly = asyncio.run(hooks.on_weight_deleted(subject_id, date(2025, 3, 9)))

    assert monthly.weight_entries_count == 0
    assert repository.batches == []


def test_rollup_period_uses_true_average() -> None:
    days = [
        DailySummary(
            day=date(2025, 3, 3),
            symptom_score_total=4,
            symptom_score_average=2.0,
            had_vomiting=True,
            has_symptoms=True,
        ),
        DailySummary(
            day=date(2025, 3, 4),
            symptom_score_total=1,
            symptom_score_average=1.0,
            had_lethargy=True,
            has_symptoms=True,
        ),
        DailySummary(
            day=date(2025, 3, 5),
            fluid_session_count=1,
            fluid_total_volume=100,
            fluid_treatment_done=True,
            overall_treatment_done=True,
            overall_streak=4,
        ),
    ]

    fields = rollup_period(days, include_longest_streak=True)

    assert fields["symptom_score_total"] == 5
    assert fields["symptom_score_max"] == 4
    assert fields["symptom_score_average"] == 1.5
    assert fields["days_with_vomiting"] == 1
    assert fields["days_with_any_symptoms"] == 2
    assert fields["fluid_treatment_days"] == 1
    assert fields["overall_treatment_days"] == 1
    assert fields["overall_longest_streak"] == 4


def test_reconcile_replaces_incremental_average(
    engine, hooks, repository, subject_id
) -> None:
    asyncio.run(
        hooks.on_symptoms_saved(
            subject_id, date(2025, 3, 3), SymptomEvent(scores={SymptomKind.VOMITING: 4})
        )
    )
    asyncio.run(
        hooks.on_symptoms_saved(
            subject_id, date(2025, 3, 4), SymptomEvent(scores={SymptomKind.VOMITING: 2})
        )
    )
    asyncio.run(
        hooks.on_fluid_session_logged(
            subject_id, date(2025, 3, 4), FluidSessionEvent(volume_ml=80)
        )
    )
    assert repository.data(subject_id, Granularity.WEEK, "2025-W10")[
        "symptom_score_average"
    ] == 2

    weekly = asyncio.run(
        engine.reconcile(subject_id, Granularity.WEEK, date(2025, 3, 6))
    )

    stored = repository.data(subject_id, Granularity.WEEK, "2025-W10")
    assert isinstance(weekly, WeeklySummary)
    assert weekly.symptom_score_average == 3
    assert stored["symptom_score_average"] == 3
    assert stored["symptom_score_max"] == 4
    assert stored["days_with_vomiting"] == 2
    assert stored["fluid_total_volume"] == 80
    assert stored["fluid_treatment_days"] == 1


def test_reconcile_keeps_monthly_weights(engine, hooks, repository, subject_id) -> None:
    asyncio.run(
        hooks.on_weight_logged(subject_id, date(2025, 3, 2), WeightEvent(kg=4.0))
    )

    monthly = asyncio.run(
        engine.reconcile(subject_id, Granularity.MONTH, date(2025, 3, 15))
    )

    assert monthly.weight_entries == {"2025-03-02": 4.0}
    stored = repository.data(subject_id, Granularity.MONTH, "2025-03")
    assert stored["weight_first"] == 4.0
    assert stored["overall_longest_streak"] == 0


def test_daily_summaries_cannot_be_reconciled(engine, subject_id) -> None:
    with pytest.raises(InvalidRangeError):
        asyncio.run(engine.reconcile(subject_id, Granularity.DAY, date(2025, 3, 5)))
