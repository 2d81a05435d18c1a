"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from ckd_tracker.adapters.supabase_summary_repository import (
    SupabaseSummaryRepository,
)
from ckd_tracker.config import Settings
from ckd_tracker.services.aggregation import SummaryEngine, SummaryRepository
from ckd_tracker.services.cache import InMemoryCache
from ckd_tracker.services.hooks import TreatmentLogHooks
from ckd_tracker.services.queries import SummaryQueryService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    summary_engine: SummaryEngine
    log_hooks: TreatmentLogHooks
    query_service: SummaryQueryService


def wire_services(settings: Settings, repository: SummaryRepository) -> AppContainer:
    """Build the services around a summary repository."""
    engine = SummaryEngine(
        repository=repository,
        streak_propagation_days=settings.streak_propagation_days,
    )
    query_service = SummaryQueryService(
        repository=repository,
        cache=InMemoryCache(),
        page_size=settings.summary_page_size,
        cache_ttl_seconds=settings.summary_cache_ttl_seconds,
    )
    engine.add_listener(query_service.handle_change)
    return AppContainer(
        settings=settings,
        summary_engine=engine,
        log_hooks=TreatmentLogHooks(engine),
        query_service=query_service,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    return wire_services(resolved_settings, SupabaseSummaryRepository(supabase_client))
