"""Tests for container wiring."""

import asyncio
from datetime import date

from ckd_tracker.adapters.supabase_summary_repository import SupabaseSummaryRepository
from ckd_tracker.containers import build_container
from ckd_tracker.domain.events import FluidSessionEvent
from ckd_tracker.domain.periods import Granularity


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert isinstance(container.summary_engine.repository, SupabaseSummaryRepository)
    assert container.query_service.page_size == settings.summary_page_size
    assert (
        container.summary_engine.streak_propagation_days
        == settings.streak_propagation_days
    )


def test_wired_engine_notifies_query_cache(container, subject_id) -> None:
    day = date(2025, 3, 5)
    container.query_service.get_summary(subject_id, Granularity.DAY, day)

    asyncio.run(
        container.log_hooks.on_fluid_session_logged(
            subject_id, day, FluidSessionEvent(volume_ml=60)
        )
    )

    summary = container.query_service.get_summary(subject_id, Granularity.DAY, day)
    assert summary.fluid_total_volume == 60
