"""Domain models for daily, weekly and monthly treatment summaries."""

from datetime import date, datetime
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from ckd_tracker.domain.periods import Granularity, period_bounds, period_key


class SymptomKind(str, Enum):
    """Symptoms tracked on daily summaries."""

    VOMITING = "vomiting"
    DIARRHEA = "diarrhea"
    CONSTIPATION = "constipation"
    LETHARGY = "lethargy"
    SUPPRESSED_APPETITE = "suppressed_appetite"
    INJECTION_SITE_REACTION = "injection_site_reaction"


class TreatmentSummaryBase(BaseModel):
    """Counters shared by every summary granularity."""

    model_config = ConfigDict(frozen=True)

    granularity: ClassVar[Granularity]

    medication_total_doses: int = 0
    medication_scheduled_doses: int = 0
    medication_missed_count: int = 0
    fluid_total_volume: float = 0.0
    fluid_session_count: int = 0
    fluid_scheduled_sessions: int = 0
    symptom_score_total: int | None = None
    symptom_score_average: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def medication_adherence(self) -> float:
        """Ratio of completed to scheduled doses."""
        if self.medication_scheduled_doses == 0:
            return 0.0
        return self.medication_total_doses / self.medication_scheduled_doses

    @property
    def medication_adherence_percentage(self) -> float:
        return self.medication_adherence * 100

    @property
    def average_fluid_volume_per_session(self) -> float:
        if self.fluid_session_count == 0:
            return 0.0
        return self.fluid_total_volume / self.fluid_session_count

    @property
    def has_any_sessions(self) -> bool:
        return self.medication_scheduled_doses > 0 or self.fluid_session_count > 0

    def to_document(self) -> dict[str, object]:
        """Return the JSON document stored for this summary."""
        return self.model_dump(mode="json")

    def invariant_errors(self) -> list[str]:
        """Return human-readable descriptions of broken invariants."""
        errors: list[str] = []
        for name in (
            "medication_total_doses",
            "medication_scheduled_doses",
            "medication_missed_count",
            "fluid_session_count",
            "fluid_scheduled_sessions",
        ):
            if getattr(self, name) < 0:
                errors.append(f"{name} cannot be negative")
        if self.fluid_total_volume < 0:
            errors.append("fluid_total_volume cannot be negative")
        if self.medication_total_doses > self.medication_scheduled_doses:
            errors.append("completed doses cannot exceed scheduled doses")
        if (
            self.medication_total_doses + self.medication_missed_count
            > self.medication_scheduled_doses
        ):
            errors.append("completed + missed doses cannot exceed scheduled doses")
        if (
            self.created_at is not None
            and self.updated_at is not None
            and self.updated_at < self.created_at
        ):
            errors.append("updated_at cannot be before created_at")
        return errors


class DailySummary(TreatmentSummaryBase):
    """Authoritative per-day state for one subject."""

    granularity: ClassVar[Granularity] = Granularity.DAY

    day: date
    overall_streak: int = 0
    fluid_treatment_done: bool = False
    overall_treatment_done: bool = False
    has_symptoms: bool = False
    had_vomiting: bool = False
    had_diarrhea: bool = False
    had_constipation: bool = False
    had_lethargy: bool = False
    had_suppressed_appetite: bool = False
    had_injection_site_reaction: bool = False
    vomiting_max_score: int | None = None
    diarrhea_max_score: int | None = None
    constipation_max_score: int | None = None
    lethargy_max_score: int | None = None
    suppressed_appetite_max_score: int | None = None
    injection_site_reaction_max_score: int | None = None

    @classmethod
    def empty(cls, day: date) -> "DailySummary":
        return cls(day=day)

    @property
    def period_key(self) -> str:
        return period_key(Granularity.DAY, self.day)

    @property
    def is_tracked(self) -> bool:
        """Whether any treatment was scheduled or logged on this day."""
        return self.has_any_sessions or self.fluid_scheduled_sessions > 0

    @property
    def is_missed(self) -> bool:
        return self.is_tracked and not self.overall_treatment_done

    @property
    def is_fluid_missed(self) -> bool:
        return self.fluid_scheduled_sessions > 0 and not self.fluid_treatment_done

    def had_symptom(self, kind: SymptomKind) -> bool:
        return bool(getattr(self, f"had_{kind.value}"))

    def max_score(self, kind: SymptomKind) -> int | None:
        return getattr(self, f"{kind.value}_max_score")

    def invariant_errors(self) -> list[str]:
        errors = super().invariant_errors()
        if self.overall_streak < 0:
            errors.append("overall_streak cannot be negative")
        if not self.overall_treatment_done and self.overall_streak > 0:
            errors.append("streak must be 0 when overall treatment is not done")
        return errors


class PeriodSummary(TreatmentSummaryBase):
    """Counters accumulated from daily deltas over a week or month."""

    max_days: ClassVar[int] = 7

    start_date: date | None = None
    end_date: date | None = None
    fluid_treatment_days: int = 0
    fluid_missed_days: int = 0
    overall_treatment_days: int = 0
    overall_missed_days: int = 0
    days_with_vomiting: int = 0
    days_with_diarrhea: int = 0
    days_with_constipation: int = 0
    days_with_lethargy: int = 0
    days_with_suppressed_appetite: int = 0
    days_with_injection_site_reaction: int = 0
    days_with_any_symptoms: int = 0
    symptom_score_max: int | None = None

    @classmethod
    def empty(cls, day: date) -> "PeriodSummary":
        start, end = period_bounds(cls.granularity, day)
        return cls(start_date=start, end_date=end)

    @property
    def period_key(self) -> str | None:
        if self.start_date is None:
            return None
        return period_key(self.granularity, self.start_date)

    @property
    def overall_adherence(self) -> float:
        """Share of tracked days on which all treatment was done."""
        tracked_days = self.overall_treatment_days + self.overall_missed_days
        if tracked_days == 0:
            return 0.0
        return self.overall_treatment_days / tracked_days

    def days_with(self, kind: SymptomKind) -> int:
        return getattr(self, f"days_with_{kind.value}")

    def day_limit(self) -> int:
        return self.max_days

    def invariant_errors(self) -> list[str]:
        errors = super().invariant_errors()
        day_fields = [
            "fluid_treatment_days",
            "fluid_missed_days",
            "overall_treatment_days",
            "overall_missed_days",
            "days_with_any_symptoms",
        ] + [f"days_with_{kind.value}" for kind in SymptomKind]
        limit = self.day_limit()
        for name in day_fields:
            value = getattr(self, name)
            if value < 0:
                errors.append(f"{name} cannot be negative")
            elif value > limit:
                errors.append(f"{name} cannot exceed {limit}")
        if self.overall_treatment_days + self.overall_missed_days > limit:
            errors.append(f"treatment + missed days cannot exceed {limit}")
        if self.fluid_treatment_days + self.fluid_missed_days > limit:
            errors.append(f"fluid treatment + missed days cannot exceed {limit}")
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.end_date < self.start_date
        ):
            errors.append("end_date must not be before start_date")
        return errors


class WeeklySummary(PeriodSummary):
    """Summary of one ISO week."""

    granularity: ClassVar[Granularity] = Granularity.WEEK
    max_days: ClassVar[int] = 7


class MonthlySummary(PeriodSummary):
    """Summary of one calendar month, with the month's weight trend."""

    granularity: ClassVar[Granularity] = Granularity.MONTH
    max_days: ClassVar[int] = 31

    overall_longest_streak: int = 0
    weight_entries: dict[str, float] = {}
    weight_entries_count: int = 0
    weight_first: float | None = None
    weight_first_date: date | None = None
    weight_latest: float | None = None
    weight_latest_date: date | None = None
    weight_average: float | None = None
    weight_change: float | None = None
    weight_change_percent: float | None = None
    weight_trend: str | None = None

    def day_limit(self) -> int:
        if self.end_date is not None:
            return self.end_date.day
        return self.max_days

    def invariant_errors(self) -> list[str]:
        errors = super().invariant_errors()
        if self.overall_longest_streak < 0:
            errors.append("overall_longest_streak cannot be negative")
        if self.weight_entries_count != len(self.weight_entries):
            errors.append("weight_entries_count does not match weight entries")
        if (
            self.start_date is not None
            and self.end_date is not None
            and (
                self.start_date.year != self.end_date.year
                or self.start_date.month != self.end_date.month
            )
        ):
            errors.append("start_date and end_date must be in the same month")
        return errors


SUMMARY_MODELS: dict[Granularity, type[TreatmentSummaryBase]] = {
    Granularity.DAY: DailySummary,
    Granularity.WEEK: WeeklySummary,
    Granularity.MONTH: MonthlySummary,
}


def empty_summary(granularity: Granularity, day: date) -> TreatmentSummaryBase:
    """Return a zero-filled summary for the period containing a day."""
    model = SUMMARY_MODELS[granularity]
    return model.empty(day)  # type: ignore[attr-defined]
