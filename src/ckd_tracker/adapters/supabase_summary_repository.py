"""Supabase repository for treatment summary documents."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from ckd_tracker.domain.periods import Granularity
from ckd_tracker.domain.writes import StoredDocument, SummaryWrite
from ckd_tracker.services.aggregation import SummaryRepository

SUMMARY_TABLE = "treatment_summaries"
APPLY_WRITES_FUNCTION = "apply_summary_writes"


@dataclass
class SupabaseSummaryRepository(SummaryRepository):
    """Supabase implementation storing one jsonb document per period."""

    client: Client

    def get_document(
        self, subject_id: UUID, granularity: Granularity, period_key: str
    ) -> StoredDocument | None:
        """Return the document for one period."""
        response = (
            self.client.table(SUMMARY_TABLE)
            .select("period_key, data")
            .eq("subject_id", str(subject_id))
            .eq("granularity", granularity.value)
            .eq("period_key", period_key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_documents(
        self,
        subject_id: UUID,
        granularity: Granularity,
        start_key: str,
        end_key: str,
        limit: int,
    ) -> list[StoredDocument]:
        """Return documents in a key range, oldest first."""
        response = (
            self.client.table(SUMMARY_TABLE)
            .select("period_key, data")
            .eq("subject_id", str(subject_id))
            .eq("granularity", granularity.value)
            .gte("period_key", start_key)
            .lte("period_key", end_key)
            .order("period_key", desc=False)
            .limit(limit)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def apply_writes(self, writes: list[SummaryWrite]) -> None:
        """Apply a batch through the transactional RPC."""
        if not writes:
            return
        self.client.rpc(
            APPLY_WRITES_FUNCTION,
            {"writes": [write.to_payload() for write in writes]},
        ).execute()


def _parse_row(row: dict[str, object]) -> StoredDocument:
    data = row.get("data")
    return StoredDocument(
        period_key=str(row.get("period_key", "")),
        data=data if isinstance(data, dict) else {},
    )
