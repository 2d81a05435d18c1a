"""Subject-scoped endpoints for logged events and summary reads."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from ckd_tracker.api.models import (
    DayRequest,
    EventRequest,
    FluidScheduleRequest,
    RecordResponse,
    SummaryPageResponse,
    SummaryResponse,
)
from ckd_tracker.domain.events import (
    FluidSessionEvent,
    MedicationDoseEvent,
    SymptomEvent,
    WeightEvent,
    parse_event,
)
from ckd_tracker.domain.periods import Granularity  # noqa: TC001

if TYPE_CHECKING:
    from ckd_tracker.containers import AppContainer


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_api_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include the shared API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


async def require_subject_access(subject_id: UUID, request: Request) -> None:
    """Reject subjects outside the configured allow-list."""
    allowed: set[UUID] | None = request.app.state.allowed_subject_ids
    if allowed is not None and subject_id not in allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)


router = APIRouter(
    prefix="/subjects/{subject_id}",
    tags=["subjects"],
    dependencies=[Depends(require_api_token), Depends(require_subject_access)],
)


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.post("/medication-doses")
async def log_medication_dose(
    subject_id: UUID, body: EventRequest, request: Request
) -> RecordResponse:
    """Record a new or edited medication dose."""
    new = parse_event(MedicationDoseEvent, body.event)
    old = (
        parse_event(MedicationDoseEvent, body.previous)
        if body.previous is not None
        else None
    )
    result = await _container(request).log_hooks.on_medication_dose_logged(
        subject_id, body.day, new, old
    )
    return RecordResponse.from_result(result)


@router.post("/medication-doses/delete")
async def delete_medication_dose(
    subject_id: UUID, body: EventRequest, request: Request
) -> RecordResponse:
    old = parse_event(MedicationDoseEvent, body.event)
    result = await _container(request).log_hooks.on_medication_dose_deleted(
        subject_id, body.day, old
    )
    return RecordResponse.from_result(result)


@router.post("/fluid-sessions")
async def log_fluid_session(
    subject_id: UUID, body: EventRequest, request: Request
) -> RecordResponse:
    """Record a new or edited fluid session."""
    new = parse_event(FluidSessionEvent, body.event)
    old = (
        parse_event(FluidSessionEvent, body.previous)
        if body.previous is not None
        else None
    )
    result = await _container(request).log_hooks.on_fluid_session_logged(
        subject_id, body.day, new, old
    )
    return RecordResponse.from_result(result)


@router.post("/fluid-sessions/delete")
async def delete_fluid_session(
    subject_id: UUID, body: EventRequest, request: Request
) -> RecordResponse:
    old = parse_event(FluidSessionEvent, body.event)
    result = await _container(request).log_hooks.on_fluid_session_deleted(
        subject_id, body.day, old
    )
    return RecordResponse.from_result(result)


@router.post("/fluid-schedule")
async def set_fluid_schedule(
    subject_id: UUID, body: FluidScheduleRequest, request: Request
) -> RecordResponse:
    result = await _container(request).log_hooks.on_fluid_schedule_set(
        subject_id, body.day, body.scheduled_sessions
    )
    return RecordResponse.from_result(result)


@router.post("/symptoms")
async def save_symptoms(
    subject_id: UUID, body: EventRequest, request: Request
) -> RecordResponse:
    """Save the full symptom entry of a day."""
    symptoms = parse_event(SymptomEvent, body.event)
    result = await _container(request).log_hooks.on_symptoms_saved(
        subject_id, body.day, symptoms
    )
    return RecordResponse.from_result(result)


@router.post("/symptoms/delete")
async def clear_symptoms(
    subject_id: UUID, body: DayRequest, request: Request
) -> RecordResponse:
    result = await _container(request).log_hooks.on_symptoms_cleared(
        subject_id, body.day
    )
    return RecordResponse.from_result(result)


@router.post("/weights")
async def log_weight(
    subject_id: UUID, body: EventRequest, request: Request
) -> SummaryResponse:
    weight = parse_event(WeightEvent, body.event)
    monthly = await _container(request).log_hooks.on_weight_logged(
        subject_id, body.day, weight
    )
    return SummaryResponse.from_summary(monthly)


@router.post("/weights/delete")
async def delete_weight(
    subject_id: UUID, body: DayRequest, request: Request
) -> SummaryResponse:
    monthly = await _container(request).log_hooks.on_weight_deleted(
        subject_id, body.day
    )
    return SummaryResponse.from_summary(monthly)


@router.get("/summaries/{granularity}")
async def list_summaries(
    subject_id: UUID,
    granularity: Granularity,
    request: Request,
    start: date,
    end: date,
) -> SummaryPageResponse:
    """Return summaries for every period overlapping ``[start, end]``."""
    page = _container(request).query_service.get_summaries(
        subject_id, granularity, start, end
    )
    return SummaryPageResponse(
        granularity=page.granularity,
        summaries=[summary.to_document() for summary in page.summaries],
        next_start=page.next_start,
    )


@router.post("/summaries/{granularity}/reconcile")
async def reconcile_summary(
    subject_id: UUID,
    granularity: Granularity,
    request: Request,
    day: date = Query(alias="date"),
) -> SummaryResponse:
    """Recompute a weekly or monthly summary from its daily summaries."""
    summary = await _container(request).summary_engine.reconcile(
        subject_id, granularity, day
    )
    return SummaryResponse.from_summary(summary)
