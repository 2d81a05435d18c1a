"""Error types raised by the summary engine."""


class SummaryError(Exception):
    """Base class for summary errors, with a machine-readable code."""

    code: str = "SUMMARY_ERROR"
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message, "retryable": self.retryable}


class EventValidationError(SummaryError):
    """A logged event failed validation and must not reach the engine."""

    code = "EVENT_INVALID"

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["fields"] = self.fields
        return payload


class InvalidRangeError(SummaryError):
    """A summary query range is empty or inverted."""

    code = "INVALID_RANGE"


class AggregationWriteError(SummaryError):
    """The atomic summary batch could not be committed.

    No partial state was written; the whole call can be retried.
    """

    code = "AGGREGATION_WRITE_FAILED"
    retryable = True
