"""Write operations and change notifications for summary documents."""

from dataclasses import dataclass, field
from uuid import UUID

from ckd_tracker.domain.periods import Granularity


@dataclass(frozen=True)
class StoredDocument:
    """A raw summary document as read from storage."""

    period_key: str
    data: dict[str, object]


@dataclass(frozen=True)
class SummaryWrite:
    """One document's share of an atomic summary batch.

    Applied in order: ``seed_fields`` only where the field is absent,
    ``set_fields`` as absolute values, ``increments`` as atomic adds, and
    ``maximums`` as ``greatest(current, value)``.
    """

    subject_id: UUID
    granularity: Granularity
    period_key: str
    set_fields: dict[str, object] = field(default_factory=dict)
    increments: dict[str, float] = field(default_factory=dict)
    maximums: dict[str, float] = field(default_factory=dict)
    seed_fields: dict[str, object] = field(default_factory=dict)

    def to_payload(self) -> dict[str, object]:
        return {
            "subject_id": str(self.subject_id),
            "granularity": self.granularity.value,
            "period_key": self.period_key,
            "set": self.set_fields,
            "increment": self.increments,
            "maximum": self.maximums,
            "seed": self.seed_fields,
        }


@dataclass(frozen=True)
class SummaryChange:
    """Notification that summary documents of a subject were rewritten."""

    subject_id: UUID
    keys: tuple[tuple[Granularity, str], ...]
