"""Delta computation for logged-event transitions.

Every function here is pure: the result depends only on the before/after
payloads, never on stored totals, so a failed batch can be retried by
recomputing the same deltas.
"""

from ckd_tracker.domain.deltas import SummaryUpdate
from ckd_tracker.domain.events import FluidSessionEvent, MedicationDoseEvent
from ckd_tracker.domain.summaries import DailySummary, SymptomKind


def delta_for_new_medication_dose(dose: MedicationDoseEvent) -> SummaryUpdate:
    """A new dose always adds to the scheduled denominator."""
    return SummaryUpdate(
        medication_doses_delta=1 if dose.completed else 0,
        medication_scheduled_delta=1,
        medication_missed_delta=0 if dose.completed else 1,
    )


def delta_for_medication_dose_edit(
    old: MedicationDoseEvent, new: MedicationDoseEvent
) -> SummaryUpdate:
    doses_delta = int(new.completed) - int(old.completed)
    return SummaryUpdate(
        medication_doses_delta=doses_delta,
        medication_missed_delta=-doses_delta,
    )


def delta_for_medication_dose_delete(old: MedicationDoseEvent) -> SummaryUpdate:
    return delta_for_new_medication_dose(old).negated()


def delta_for_new_fluid_session(session: FluidSessionEvent) -> SummaryUpdate:
    return SummaryUpdate(
        fluid_volume_delta=session.volume_ml,
        fluid_session_delta=1,
        fluid_treatment_done=True,
    )


def delta_for_fluid_session_edit(
    old: FluidSessionEvent, new: FluidSessionEvent
) -> SummaryUpdate:
    return SummaryUpdate(fluid_volume_delta=new.volume_ml - old.volume_ml)


def delta_for_fluid_session_delete(old: FluidSessionEvent) -> SummaryUpdate:
    # fluid_treatment_done is re-derived from the remaining session count.
    return SummaryUpdate(fluid_volume_delta=-old.volume_ml, fluid_session_delta=-1)


def delta_for_symptom_save(
    old_daily: DailySummary | None, new_daily: DailySummary
) -> SummaryUpdate:
    """Day-counter deltas for a symptom save.

    Counters move only when a had-symptom flag flips, never on a change of
    severity alone.
    """
    symptom_days = {
        kind: _transition(
            old_daily.had_symptom(kind) if old_daily else False,
            new_daily.had_symptom(kind),
        )
        for kind in SymptomKind
    }
    old_total = old_daily.symptom_score_total if old_daily else None
    new_total = new_daily.symptom_score_total
    return SummaryUpdate(
        symptom_days_deltas=symptom_days,
        any_symptom_days_delta=_transition(
            old_daily.has_symptoms if old_daily else False, new_daily.has_symptoms
        ),
        symptom_score_total_delta=(new_total or 0) - (old_total or 0),
    )


def delta_for_day_status(
    old_daily: DailySummary | None, new_daily: DailySummary
) -> SummaryUpdate:
    """Treatment-day and missed-day counter deltas for a daily status change."""
    if old_daily is None:
        old_daily = DailySummary.empty(new_daily.day)
    return SummaryUpdate(
        fluid_treatment_days_delta=_transition(
            old_daily.fluid_treatment_done, new_daily.fluid_treatment_done
        ),
        fluid_missed_days_delta=_transition(
            old_daily.is_fluid_missed, new_daily.is_fluid_missed
        ),
        overall_treatment_days_delta=_transition(
            old_daily.overall_treatment_done, new_daily.overall_treatment_done
        ),
        overall_missed_days_delta=_transition(
            old_daily.is_missed, new_daily.is_missed
        ),
    )


def _transition(old: bool, new: bool) -> int:
    return int(new) - int(old)
