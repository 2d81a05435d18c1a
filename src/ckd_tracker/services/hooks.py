"""Inbound hooks called by the logging subsystem."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from ckd_tracker.domain.deltas import SummaryUpdate
from ckd_tracker.domain.events import (
    FluidSessionEvent,
    MedicationDoseEvent,
    SymptomEvent,
    WeightEvent,
)
from ckd_tracker.domain.summaries import MonthlySummary
from ckd_tracker.errors import EventValidationError
from ckd_tracker.services.aggregation import RecordResult, SummaryEngine
from ckd_tracker.services.deltas import (
    delta_for_fluid_session_delete,
    delta_for_fluid_session_edit,
    delta_for_medication_dose_delete,
    delta_for_medication_dose_edit,
    delta_for_new_fluid_session,
    delta_for_new_medication_dose,
)


@dataclass
class TreatmentLogHooks:
    """Translate logged/updated/deleted notifications into engine calls."""

    engine: SummaryEngine

    async def on_medication_dose_logged(
        self,
        subject_id: UUID,
        day: date,
        new: MedicationDoseEvent,
        old: MedicationDoseEvent | None = None,
    ) -> RecordResult:
        """Record a new dose, or an edit when ``old`` is given."""
        if old is None:
            update = delta_for_new_medication_dose(new)
        else:
            update = delta_for_medication_dose_edit(old, new)
        return await self.engine.record_event(subject_id, day, update)

    async def on_medication_dose_deleted(
        self, subject_id: UUID, day: date, old: MedicationDoseEvent
    ) -> RecordResult:
        return await self.engine.record_event(
            subject_id, day, delta_for_medication_dose_delete(old)
        )

    async def on_fluid_session_logged(
        self,
        subject_id: UUID,
        day: date,
        new: FluidSessionEvent,
        old: FluidSessionEvent | None = None,
    ) -> RecordResult:
        """Record a new fluid session, or an edit when ``old`` is given."""
        if old is None:
            update = delta_for_new_fluid_session(new)
        else:
            update = delta_for_fluid_session_edit(old, new)
        return await self.engine.record_event(subject_id, day, update)

    async def on_fluid_session_deleted(
        self, subject_id: UUID, day: date, old: FluidSessionEvent
    ) -> RecordResult:
        return await self.engine.record_event(
            subject_id, day, delta_for_fluid_session_delete(old)
        )

    async def on_fluid_schedule_set(
        self, subject_id: UUID, day: date, scheduled_sessions: int
    ) -> RecordResult:
        """Set the number of fluid sessions scheduled for a day."""
        if scheduled_sessions < 0:
            raise EventValidationError(
                "scheduled_sessions cannot be negative", ["scheduled_sessions"]
            )
        return await self.engine.record_event(
            subject_id,
            day,
            SummaryUpdate(),
            fluid_scheduled_sessions=scheduled_sessions,
        )

    async def on_symptoms_saved(
        self, subject_id: UUID, day: date, symptoms: SymptomEvent
    ) -> RecordResult:
        """Save the day's symptom entry; the stored day is the before-state."""
        return await self.engine.record_event(
            subject_id, day, SummaryUpdate(), symptoms=symptoms
        )

    async def on_symptoms_cleared(self, subject_id: UUID, day: date) -> RecordResult:
        return await self.on_symptoms_saved(subject_id, day, SymptomEvent())

    async def on_weight_logged(
        self, subject_id: UUID, day: date, weight: WeightEvent
    ) -> MonthlySummary:
        return await self.engine.record_weight(subject_id, day, weight.kg)

    async def on_weight_deleted(self, subject_id: UUID, day: date) -> MonthlySummary:
        return await self.engine.record_weight(subject_id, day, None)
