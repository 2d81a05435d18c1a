"""Read layer serving pre-aggregated summaries to dashboards and charts."""

import logging
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from ckd_tracker.domain.documents import load_stored_document
from ckd_tracker.domain.periods import Granularity, period_key, period_starts
from ckd_tracker.domain.summaries import (
    SUMMARY_MODELS,
    MonthlySummary,
    TreatmentSummaryBase,
    empty_summary,
)
from ckd_tracker.domain.writes import SummaryChange
from ckd_tracker.errors import InvalidRangeError
from ckd_tracker.services.aggregation import SummaryRepository
from ckd_tracker.services.cache import Cache

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryPage:
    """One page of summaries, oldest first, with gaps zero-filled."""

    granularity: Granularity
    summaries: list[TreatmentSummaryBase]
    next_start: date | None = None


@dataclass
class SummaryQueryService:
    """Range reads over summary documents with a per-period cache."""

    repository: SummaryRepository
    cache: Cache
    page_size: int = 62
    cache_ttl_seconds: int = 300

    def get_summaries(
        self, subject_id: UUID, granularity: Granularity, start: date, end: date
    ) -> SummaryPage:
        """Return every period overlapping ``[start, end]``, one page at a time.

        Periods without a stored document come back as empty summaries.
        ``next_start`` is set when the range holds more than one page.
        """
        if end < start:
            raise InvalidRangeError(
                f"Range end {end.isoformat()} is before start {start.isoformat()}"
            )
        starts = period_starts(granularity, start, end)
        page = starts[: self.page_size]
        next_start = starts[self.page_size] if len(starts) > self.page_size else None

        cached: dict[date, TreatmentSummaryBase] = {}
        for period_start in page:
            key = period_key(granularity, period_start)
            value = self.cache.get(_cache_key(subject_id, granularity, key))
            if isinstance(value, TreatmentSummaryBase):
                cached[period_start] = value
        if len(cached) < len(page):
            cached.update(self._fetch(subject_id, granularity, page))

        return SummaryPage(
            granularity=granularity,
            summaries=[cached[period_start] for period_start in page],
            next_start=next_start,
        )

    def get_summary(
        self, subject_id: UUID, granularity: Granularity, day: date
    ) -> TreatmentSummaryBase:
        """Return the summary of the period containing a day."""
        return self.get_summaries(subject_id, granularity, day, day).summaries[0]

    def get_weight_history(
        self, subject_id: UUID, start: date, end: date
    ) -> list[tuple[date, float]]:
        """Return logged weights within ``[start, end]``, oldest first."""
        points: list[tuple[date, float]] = []
        next_start: date | None = start
        while next_start is not None:
            page = self.get_summaries(subject_id, Granularity.MONTH, next_start, end)
            for summary in page.summaries:
                if not isinstance(summary, MonthlySummary):
                    continue
                for raw_day, kg in sorted(summary.weight_entries.items()):
                    day = date.fromisoformat(raw_day)
                    if start <= day <= end:
                        points.append((day, kg))
            next_start = page.next_start
        return points

    def handle_change(self, change: SummaryChange) -> None:
        """Drop cached periods that a committed batch rewrote."""
        for granularity, key in change.keys:
            self.cache.invalidate(_cache_key(change.subject_id, granularity, key))

    def _fetch(
        self, subject_id: UUID, granularity: Granularity, page: list[date]
    ) -> dict[date, TreatmentSummaryBase]:
        model = SUMMARY_MODELS[granularity]
        by_key = {period_key(granularity, start): start for start in page}
        documents = self.repository.list_documents(
            subject_id,
            granularity,
            period_key(granularity, page[0]),
            period_key(granularity, page[-1]),
            len(page),
        )
        summaries: dict[date, TreatmentSummaryBase] = {
            period_start: empty_summary(granularity, period_start)
            for period_start in page
        }
        for document in documents:
            period_start = by_key.get(document.period_key)
            if period_start is None:
                _logger.warning(
                    "Ignoring %s summary with unexpected key %r for subject %s",
                    granularity.value,
                    document.period_key,
                    subject_id,
                )
                continue
            summaries[period_start] = load_stored_document(
                model, document, period_start, subject_id
            )
        for period_start, summary in summaries.items():
            self.cache.set(
                _cache_key(
                    subject_id, granularity, period_key(granularity, period_start)
                ),
                summary,
                ttl_seconds=self.cache_ttl_seconds,
            )
        return summaries


def _cache_key(subject_id: UUID, granularity: Granularity, key: str) -> str:
    return f"summary:{subject_id}:{granularity.value}:{key}"
