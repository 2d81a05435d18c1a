"""Aggregation engine maintaining daily, weekly and monthly summaries."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from uuid import UUID

from ckd_tracker.domain.deltas import SummaryUpdate
from ckd_tracker.domain.documents import (
    ParsedDocument,
    SummaryT,
    load_parsed_document,
    load_stored_document,
)
from ckd_tracker.domain.events import SymptomEvent
from ckd_tracker.domain.periods import Granularity, period_bounds, period_key
from ckd_tracker.domain.summaries import (
    DailySummary,
    MonthlySummary,
    PeriodSummary,
    SymptomKind,
    WeeklySummary,
)
from ckd_tracker.domain.writes import StoredDocument, SummaryChange, SummaryWrite
from ckd_tracker.errors import (
    AggregationWriteError,
    EventValidationError,
    InvalidRangeError,
)
from ckd_tracker.services.deltas import delta_for_day_status, delta_for_symptom_save
from ckd_tracker.services.rollups import rollup_period, weight_fields
from ckd_tracker.services.streaks import next_streak, propagate_forward

_logger = logging.getLogger(__name__)

SummaryListener = Callable[[SummaryChange], None]


class SummaryRepository(Protocol):
    """Persistence interface for summary documents."""

    def get_document(
        self, subject_id: UUID, granularity: Granularity, period_key: str
    ) -> StoredDocument | None:
        """Return a stored summary document, if present."""

    def list_documents(
        self,
        subject_id: UUID,
        granularity: Granularity,
        start_key: str,
        end_key: str,
        limit: int,
    ) -> list[StoredDocument]:
        """Return documents with keys in ``[start_key, end_key]``, ascending."""

    def apply_writes(self, writes: list[SummaryWrite]) -> None:
        """Apply every write in one all-or-nothing transaction."""


@dataclass(frozen=True)
class RecordResult:
    """Outcome of a recorded event."""

    daily: DailySummary
    period_update: SummaryUpdate
    propagated_streaks: list[tuple[date, int]]


@dataclass
class _DayState:
    daily: DailySummary | None
    previous: DailySummary | None
    later: list[DailySummary]
    weekly: ParsedDocument[WeeklySummary]
    monthly: ParsedDocument[MonthlySummary]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SummaryEngine:
    """Applies logged-event transitions to the summaries of one subject."""

    repository: SummaryRepository
    streak_propagation_days: int = 60
    clock: Callable[[], datetime] = _utcnow
    listeners: list[SummaryListener] = field(default_factory=list)
    _locks: dict[UUID, asyncio.Lock] = field(
        default_factory=dict, init=False, repr=False
    )

    def add_listener(self, listener: SummaryListener) -> None:
        """Register a callback invoked after every committed batch."""
        self.listeners.append(listener)

    async def record_event(
        self,
        subject_id: UUID,
        day: date,
        update: SummaryUpdate,
        *,
        symptoms: SymptomEvent | None = None,
        fluid_scheduled_sessions: int | None = None,
    ) -> RecordResult:
        """Apply one event transition to the day, week and month of ``day``.

        ``update`` carries the signed counter deltas of the event. Symptom
        saves pass the day's full ``symptoms`` entry instead and schedule
        changes pass the absolute ``fluid_scheduled_sessions``; the engine
        derives the matching period deltas from the stored day.
        """
        async with self._lock_for(subject_id):
            state = await asyncio.to_thread(self._load_day_state, subject_id, day)
            now = self.clock()
            base = state.daily or DailySummary.empty(day)
            if fluid_scheduled_sessions is not None:
                update = update + SummaryUpdate(
                    fluid_scheduled_delta=(
                        fluid_scheduled_sessions - base.fluid_scheduled_sessions
                    )
                )

            daily = update.apply_to_daily(base)
            if symptoms is not None:
                daily = apply_symptoms(daily, symptoms)
            previous_streak = state.previous.overall_streak if state.previous else 0
            daily = derive_day_status(daily, previous_streak)
            daily = daily.model_copy(
                update={"created_at": base.created_at or now, "updated_at": now}
            )
            errors = daily.invariant_errors()
            if errors:
                _logger.warning(
                    "Rejected event for daily summary %s of subject %s: %s",
                    daily.period_key,
                    subject_id,
                    "; ".join(errors),
                )
                raise EventValidationError(
                    f"Event does not match the stored summary for {day.isoformat()}: "
                    + "; ".join(errors)
                )

            period_update = (
                update
                + delta_for_symptom_save(state.daily, daily)
                + delta_for_day_status(state.daily, daily)
            )
            propagated = propagate_forward(day, daily.overall_streak, state.later)
            if propagated:
                _logger.info(
                    "Propagating streak after %s for subject %s through %s day(s)",
                    day.isoformat(),
                    subject_id,
                    len(propagated),
                )

            writes = self._build_writes(
                subject_id,
                state,
                daily,
                period_update,
                propagated,
                now,
                symptoms_saved=symptoms is not None,
            )
            await self._commit(subject_id, writes)
            return RecordResult(
                daily=daily,
                period_update=period_update,
                propagated_streaks=propagated,
            )

    async def record_weight(
        self, subject_id: UUID, day: date, kg: float | None
    ) -> MonthlySummary:
        """Upsert (or, with ``kg=None``, delete) the weight of one day."""
        async with self._lock_for(subject_id):
            parsed = await asyncio.to_thread(
                self._load_period, subject_id, MonthlySummary, day
            )
            monthly = parsed.summary
            entries = dict(monthly.weight_entries)
            if kg is None:
                if entries.pop(day.isoformat(), None) is None:
                    return monthly
            else:
                entries[day.isoformat()] = kg
            now = self.clock()
            fields = weight_fields(entries)
            write = SummaryWrite(
                subject_id=subject_id,
                granularity=Granularity.MONTH,
                period_key=period_key(Granularity.MONTH, day),
                set_fields={**fields, "updated_at": now.isoformat()},
                seed_fields=_period_seed(Granularity.MONTH, day, now),
            )
            await self._commit(subject_id, [write])
            return MonthlySummary.model_validate(
                {**monthly.to_document(), **fields, "updated_at": now}
            )

    async def reconcile(
        self, subject_id: UUID, granularity: Granularity, day: date
    ) -> PeriodSummary:
        """Recompute the week or month containing ``day`` from its daily summaries.

        Replaces every incrementally maintained field with its exact value,
        including the true period-wide symptom average.
        """
        if granularity is Granularity.DAY:
            raise InvalidRangeError("Daily summaries cannot be reconciled")
        model = WeeklySummary if granularity is Granularity.WEEK else MonthlySummary
        start, end = period_bounds(granularity, day)
        async with self._lock_for(subject_id):
            current, days = await asyncio.to_thread(
                self._load_period_days, subject_id, model, start, end
            )
            now = self.clock()
            fields = rollup_period(
                days, include_longest_streak=granularity is Granularity.MONTH
            )
            fields.update(
                {
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                    "updated_at": now.isoformat(),
                }
            )
            write = SummaryWrite(
                subject_id=subject_id,
                granularity=granularity,
                period_key=period_key(granularity, start),
                set_fields=fields,
                seed_fields={"created_at": now.isoformat()},
            )
            await self._commit(subject_id, [write])
            _logger.info(
                "Reconciled %s summary %s for subject %s from %s day(s)",
                granularity.value,
                write.period_key,
                subject_id,
                len(days),
            )
            return model.model_validate({**current.to_document(), **fields})

    def _lock_for(self, subject_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(subject_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[subject_id] = lock
        return lock

    def _load_day_state(self, subject_id: UUID, day: date) -> _DayState:
        later: list[DailySummary] = []
        if self.streak_propagation_days > 0:
            first_later = day + timedelta(days=1)
            last_later = day + timedelta(days=self.streak_propagation_days)
            documents = self.repository.list_documents(
                subject_id,
                Granularity.DAY,
                period_key(Granularity.DAY, first_later),
                period_key(Granularity.DAY, last_later),
                self.streak_propagation_days,
            )
            for document in documents:
                parsed = self._parse_daily(subject_id, document)
                if parsed is not None:
                    later.append(parsed)
        return _DayState(
            daily=self._load_daily(subject_id, day),
            previous=self._load_daily(subject_id, day - timedelta(days=1)),
            later=later,
            weekly=self._load_period(subject_id, WeeklySummary, day),
            monthly=self._load_period(subject_id, MonthlySummary, day),
        )

    def _load_daily(self, subject_id: UUID, day: date) -> DailySummary | None:
        document = self.repository.get_document(
            subject_id, Granularity.DAY, period_key(Granularity.DAY, day)
        )
        if document is None:
            return None
        return self._parse_daily(subject_id, document)

    def _parse_daily(
        self, subject_id: UUID, document: StoredDocument
    ) -> DailySummary | None:
        try:
            day = date.fromisoformat(document.period_key)
        except ValueError:
            _logger.warning(
                "Skipping daily summary with bad key %r for subject %s",
                document.period_key,
                subject_id,
            )
            return None
        return load_stored_document(DailySummary, document, day, subject_id)

    def _load_period(
        self, subject_id: UUID, model: type[SummaryT], day: date
    ) -> ParsedDocument[SummaryT]:
        key = period_key(model.granularity, day)
        document = self.repository.get_document(subject_id, model.granularity, key)
        if document is None:
            empty = model.empty(day)  # type: ignore[attr-defined]
            return ParsedDocument(summary=empty)
        return load_parsed_document(model, document, day, subject_id)

    def _load_period_days(
        self,
        subject_id: UUID,
        model: type[PeriodSummary],
        start: date,
        end: date,
    ) -> tuple[PeriodSummary, list[DailySummary]]:
        current = self._load_period(subject_id, model, start).summary
        documents = self.repository.list_documents(
            subject_id,
            Granularity.DAY,
            period_key(Granularity.DAY, start),
            period_key(Granularity.DAY, end),
            (end - start).days + 1,
        )
        days = [
            parsed
            for parsed in (self._parse_daily(subject_id, doc) for doc in documents)
            if parsed is not None
        ]
        return current, days

    def _build_writes(
        self,
        subject_id: UUID,
        state: _DayState,
        daily: DailySummary,
        period_update: SummaryUpdate,
        propagated: list[tuple[date, int]],
        now: datetime,
        *,
        symptoms_saved: bool,
    ) -> list[SummaryWrite]:
        document = daily.to_document()
        created_at = document.pop("created_at")
        writes = [
            SummaryWrite(
                subject_id=subject_id,
                granularity=Granularity.DAY,
                period_key=daily.period_key,
                set_fields=document,
                seed_fields={"created_at": created_at},
            )
        ]
        for later_day, streak in propagated:
            writes.append(
                SummaryWrite(
                    subject_id=subject_id,
                    granularity=Granularity.DAY,
                    period_key=period_key(Granularity.DAY, later_day),
                    set_fields={
                        "overall_streak": streak,
                        "updated_at": now.isoformat(),
                    },
                )
            )

        increments = period_update.period_increments()
        # The period average holds the latest saved day's average; only
        # symptom saves touch it or the period max.
        average_fields: dict[str, object] = {}
        total = daily.symptom_score_total if symptoms_saved else None
        if symptoms_saved and daily.symptom_score_average is not None:
            average_fields["symptom_score_average"] = daily.symptom_score_average

        for parsed in (state.weekly, state.monthly):
            current = parsed.summary
            # Malformed stored values restart from their defaults so the
            # atomic adds below have a number to apply to.
            resets = parsed.field_resets()
            maximums: dict[str, float] = {}
            if total is not None and (
                current.symptom_score_max is None or total > current.symptom_score_max
            ):
                maximums["symptom_score_max"] = total
            if isinstance(current, MonthlySummary):
                month_streaks = [daily.overall_streak] + [
                    streak
                    for later_day, streak in propagated
                    if period_key(Granularity.MONTH, later_day)
                    == period_key(Granularity.MONTH, daily.day)
                ]
                longest = max(month_streaks)
                if longest > current.overall_longest_streak:
                    maximums["overall_longest_streak"] = longest
            if not (increments or maximums or average_fields or resets):
                continue
            writes.append(
                SummaryWrite(
                    subject_id=subject_id,
                    granularity=current.granularity,
                    period_key=period_key(current.granularity, daily.day),
                    set_fields={
                        **resets,
                        **average_fields,
                        "updated_at": now.isoformat(),
                    },
                    increments=increments,
                    maximums=maximums,
                    seed_fields=_period_seed(current.granularity, daily.day, now),
                )
            )
        writes.extend(self._later_month_writes(subject_id, daily, propagated, now))
        return writes

    def _later_month_writes(
        self,
        subject_id: UUID,
        daily: DailySummary,
        propagated: list[tuple[date, int]],
        now: datetime,
    ) -> list[SummaryWrite]:
        # Streaks propagated past the end of the month raise the next month's
        # longest streak; the backend applies it with greatest().
        longest_by_month: dict[str, tuple[date, int]] = {}
        own_month = period_key(Granularity.MONTH, daily.day)
        for later_day, streak in propagated:
            key = period_key(Granularity.MONTH, later_day)
            if key == own_month:
                continue
            _, best = longest_by_month.get(key, (later_day, 0))
            if streak > best:
                longest_by_month[key] = (later_day, streak)
        return [
            SummaryWrite(
                subject_id=subject_id,
                granularity=Granularity.MONTH,
                period_key=key,
                set_fields={"updated_at": now.isoformat()},
                maximums={"overall_longest_streak": streak},
                seed_fields=_period_seed(Granularity.MONTH, later_day, now),
            )
            for key, (later_day, streak) in longest_by_month.items()
        ]

    async def _commit(self, subject_id: UUID, writes: list[SummaryWrite]) -> None:
        try:
            await asyncio.to_thread(self.repository.apply_writes, writes)
        except Exception as exc:
            _logger.exception(
                "Failed to commit %s summary write(s) for subject %s",
                len(writes),
                subject_id,
            )
            raise AggregationWriteError(
                f"Summary update for subject {subject_id} was not applied"
            ) from exc
        change = SummaryChange(
            subject_id=subject_id,
            keys=tuple((write.granularity, write.period_key) for write in writes),
        )
        for listener in self.listeners:
            try:
                listener(change)
            except Exception:
                _logger.exception("Summary change listener failed")


def apply_symptoms(summary: DailySummary, symptoms: SymptomEvent) -> DailySummary:
    """Replace the day's symptom fields with a saved symptom entry."""
    changes: dict[str, object] = {
        "has_symptoms": symptoms.has_symptoms,
        "symptom_score_total": symptoms.total,
        "symptom_score_average": symptoms.average,
    }
    for kind in SymptomKind:
        changes[f"had_{kind.value}"] = symptoms.score(kind) > 0
        changes[f"{kind.value}_max_score"] = symptoms.scores.get(kind)
    return summary.model_copy(update=changes)


def derive_day_status(summary: DailySummary, previous_streak: int) -> DailySummary:
    """Recompute the day's treatment flags and streak from its counters."""
    overall_done = (
        summary.is_tracked
        and summary.medication_missed_count == 0
        and (
            summary.fluid_scheduled_sessions == 0
            or summary.fluid_session_count >= summary.fluid_scheduled_sessions
        )
    )
    return summary.model_copy(
        update={
            "fluid_treatment_done": summary.fluid_session_count > 0,
            "overall_treatment_done": overall_done,
            "overall_streak": next_streak(overall_done, previous_streak),
        }
    )


def _period_seed(
    granularity: Granularity, day: date, now: datetime
) -> dict[str, object]:
    start, end = period_bounds(granularity, day)
    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "created_at": now.isoformat(),
    }
