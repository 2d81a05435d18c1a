"""Schema-validated parsing of stored summary documents."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import ValidationError

from ckd_tracker.domain.periods import Granularity, period_bounds
from ckd_tracker.domain.summaries import TreatmentSummaryBase
from ckd_tracker.domain.writes import StoredDocument

SummaryT = TypeVar("SummaryT", bound=TreatmentSummaryBase)

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedDocument(Generic[SummaryT]):
    """Parse result: the typed summary plus the fields that had to be dropped."""

    summary: SummaryT
    invalid_fields: tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.invalid_fields

    def field_resets(self) -> dict[str, object]:
        """Return the defaulted values of the invalid fields, as stored JSON."""
        document = self.summary.to_document()
        return {
            name: document[name] for name in self.invalid_fields if name in document
        }


def parse_summary_document(
    model: type[SummaryT],
    data: Mapping[str, object],
    defaults: Mapping[str, object] | None = None,
) -> ParsedDocument[SummaryT]:
    """Parse a stored document, replacing invalid fields with their defaults.

    ``defaults`` supplies values for fields the document must carry (such as
    the day of a daily summary) when the stored value is missing or invalid.
    """
    fallback = dict(defaults or {})
    payload = {**fallback, **data}
    invalid: list[str] = []
    while True:
        try:
            summary = model.model_validate(payload)
        except ValidationError as exc:
            bad_fields = {
                str(error["loc"][0]) for error in exc.errors() if error["loc"]
            }
            retry = False
            for name in sorted(bad_fields):
                if name in fallback and payload.get(name) is not fallback[name]:
                    payload[name] = fallback[name]
                    retry = True
                elif name in payload and name not in fallback:
                    del payload[name]
                    retry = True
                else:
                    continue
                if name not in invalid:
                    invalid.append(name)
            if not retry:
                raise
            continue
        return ParsedDocument(summary=summary, invalid_fields=tuple(invalid))


def document_defaults(granularity: Granularity, day: date) -> dict[str, object]:
    """Return the identifying fields of the document for a period."""
    if granularity is Granularity.DAY:
        return {"day": day.isoformat()}
    start, end = period_bounds(granularity, day)
    return {"start_date": start.isoformat(), "end_date": end.isoformat()}


def load_parsed_document(
    model: type[SummaryT],
    document: StoredDocument,
    day: date,
    subject_id: UUID,
) -> ParsedDocument[SummaryT]:
    """Parse a stored document, logging any field that had to be defaulted."""
    parsed = parse_summary_document(
        model, document.data, document_defaults(model.granularity, day)
    )
    if not parsed.is_clean:
        _logger.warning(
            "Malformed %s summary %s for subject %s; defaulted fields: %s",
            model.granularity.value,
            document.period_key,
            subject_id,
            ", ".join(parsed.invalid_fields),
        )
    return parsed


def load_stored_document(
    model: type[SummaryT],
    document: StoredDocument,
    day: date,
    subject_id: UUID,
) -> SummaryT:
    return load_parsed_document(model, document, day, subject_id).summary
