"""Request and response bodies for the summary API."""

from datetime import date

from pydantic import BaseModel, Field

from ckd_tracker.domain.periods import Granularity
from ckd_tracker.domain.summaries import TreatmentSummaryBase
from ckd_tracker.services.aggregation import RecordResult


class EventRequest(BaseModel):
    """A logged event for one day; ``previous`` marks an edit."""

    day: date
    event: dict[str, object]
    previous: dict[str, object] | None = None


class DayRequest(BaseModel):
    day: date


class FluidScheduleRequest(BaseModel):
    day: date
    scheduled_sessions: int = Field(ge=0)


class RecordResponse(BaseModel):
    """Result of a recorded event."""

    daily: dict[str, object]
    period_increments: dict[str, float]
    propagated_streaks: dict[str, int]

    @classmethod
    def from_result(cls, result: RecordResult) -> "RecordResponse":
        return cls(
            daily=result.daily.to_document(),
            period_increments=result.period_update.period_increments(),
            propagated_streaks={
                day.isoformat(): streak for day, streak in result.propagated_streaks
            },
        )


class SummaryResponse(BaseModel):
    granularity: Granularity
    summary: dict[str, object]

    @classmethod
    def from_summary(cls, summary: TreatmentSummaryBase) -> "SummaryResponse":
        return cls(granularity=summary.granularity, summary=summary.to_document())


class SummaryPageResponse(BaseModel):
    """A page of summaries; request again from ``next_start`` for the rest."""

    granularity: Granularity
    summaries: list[dict[str, object]]
    next_start: date | None = None
