"""Signed summary deltas."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from ckd_tracker.domain.summaries import (
    DailySummary,
    PeriodSummary,
    SymptomKind,
)

# Delta attribute -> summary field it increments.
_DAILY_COUNTERS = {
    "medication_doses_delta": "medication_total_doses",
    "medication_scheduled_delta": "medication_scheduled_doses",
    "medication_missed_delta": "medication_missed_count",
    "fluid_volume_delta": "fluid_total_volume",
    "fluid_session_delta": "fluid_session_count",
    "fluid_scheduled_delta": "fluid_scheduled_sessions",
}
_PERIOD_ONLY_COUNTERS = {
    "fluid_treatment_days_delta": "fluid_treatment_days",
    "fluid_missed_days_delta": "fluid_missed_days",
    "overall_treatment_days_delta": "overall_treatment_days",
    "overall_missed_days_delta": "overall_missed_days",
    "any_symptom_days_delta": "days_with_any_symptoms",
    "symptom_score_total_delta": "symptom_score_total",
}
_OVERWRITES = ("fluid_treatment_done", "overall_treatment_done")


@dataclass(frozen=True)
class SummaryUpdate:
    """Signed increments for summary counters, plus absolute boolean overwrites.

    Zero deltas are normalized to None so that an absent field always means
    "leave unchanged" rather than "reset".
    """

    medication_doses_delta: int | None = None
    medication_scheduled_delta: int | None = None
    medication_missed_delta: int | None = None
    fluid_volume_delta: float | None = None
    fluid_session_delta: int | None = None
    fluid_scheduled_delta: int | None = None
    fluid_treatment_days_delta: int | None = None
    fluid_missed_days_delta: int | None = None
    overall_treatment_days_delta: int | None = None
    overall_missed_days_delta: int | None = None
    symptom_days_deltas: Mapping[SymptomKind, int] = field(default_factory=dict)
    any_symptom_days_delta: int | None = None
    symptom_score_total_delta: int | None = None
    fluid_treatment_done: bool | None = None
    overall_treatment_done: bool | None = None

    def __post_init__(self) -> None:
        for name in (*_DAILY_COUNTERS, *_PERIOD_ONLY_COUNTERS):
            if getattr(self, name) == 0:
                object.__setattr__(self, name, None)
        object.__setattr__(
            self,
            "symptom_days_deltas",
            {kind: value for kind, value in self.symptom_days_deltas.items() if value},
        )

    @property
    def has_updates(self) -> bool:
        return bool(self.period_increments() or self.overwrites())

    def daily_increments(self) -> dict[str, float]:
        """Increments that apply to a daily summary."""
        return {
            column: getattr(self, name)
            for name, column in _DAILY_COUNTERS.items()
            if getattr(self, name) is not None
        }

    def period_increments(self) -> dict[str, float]:
        """Increments that apply to a weekly or monthly summary."""
        increments = self.daily_increments()
        for name, column in _PERIOD_ONLY_COUNTERS.items():
            value = getattr(self, name)
            if value is not None:
                increments[column] = value
        for kind, value in self.symptom_days_deltas.items():
            increments[f"days_with_{kind.value}"] = value
        return increments

    def overwrites(self) -> dict[str, bool]:
        return {
            name: getattr(self, name)
            for name in _OVERWRITES
            if getattr(self, name) is not None
        }

    def negated(self) -> "SummaryUpdate":
        """Return the inverse delta; boolean overwrites are dropped."""
        values = {
            name: -getattr(self, name)
            for name in (*_DAILY_COUNTERS, *_PERIOD_ONLY_COUNTERS)
            if getattr(self, name) is not None
        }
        return SummaryUpdate(
            **values,
            symptom_days_deltas={
                kind: -value for kind, value in self.symptom_days_deltas.items()
            },
        )

    def __add__(self, other: "SummaryUpdate") -> "SummaryUpdate":
        values: dict[str, object] = {}
        for name in (*_DAILY_COUNTERS, *_PERIOD_ONLY_COUNTERS):
            left = getattr(self, name)
            right = getattr(other, name)
            if left is None and right is None:
                continue
            values[name] = (left or 0) + (right or 0)
        symptom_days = dict(self.symptom_days_deltas)
        for kind, value in other.symptom_days_deltas.items():
            symptom_days[kind] = symptom_days.get(kind, 0) + value
        for name in _OVERWRITES:
            right = getattr(other, name)
            values[name] = right if right is not None else getattr(self, name)
        return SummaryUpdate(**values, symptom_days_deltas=symptom_days)

    def apply_to_daily(self, summary: DailySummary) -> DailySummary:
        """Return the daily summary with counters incremented and overwrites set."""
        changes: dict[str, object] = {
            column: getattr(summary, column) + value
            for column, value in self.daily_increments().items()
        }
        changes.update(self.overwrites())
        return summary.model_copy(update=changes)

    def apply_to_period(self, summary: PeriodSummary) -> PeriodSummary:
        """Return the period summary with every period counter incremented."""
        changes: dict[str, object] = {}
        for column, value in self.period_increments().items():
            current = getattr(summary, column)
            changes[column] = (current or 0) + value
        return summary.model_copy(update=changes)
