"""Logged events received from the logging subsystem."""

from collections.abc import Mapping
from typing import Annotated, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ckd_tracker.domain.summaries import SymptomKind
from ckd_tracker.errors import EventValidationError

MAX_NOTES_LENGTH = 500
MAX_WEIGHT_KG = 15.0

SymptomScore = Annotated[int, Field(ge=0, le=10)]


class MedicationDoseEvent(BaseModel):
    """A single scheduled medication dose, completed or not."""

    model_config = ConfigDict(frozen=True)

    session_id: str | None = None
    medication_name: str | None = None
    completed: bool


class FluidSessionEvent(BaseModel):
    """A subcutaneous fluid session."""

    model_config = ConfigDict(frozen=True)

    session_id: str | None = None
    volume_ml: float = Field(ge=0)


class SymptomEvent(BaseModel):
    """The symptom scores entered for one day."""

    model_config = ConfigDict(frozen=True)

    scores: dict[SymptomKind, SymptomScore] = Field(default_factory=dict)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)

    def score(self, kind: SymptomKind) -> int:
        return self.scores.get(kind, 0)

    @property
    def has_symptoms(self) -> bool:
        return any(score > 0 for score in self.scores.values())

    @property
    def total(self) -> int | None:
        """Sum of entered scores, or None when nothing was entered."""
        if not self.scores:
            return None
        return sum(self.scores.values())

    @property
    def average(self) -> float | None:
        if not self.scores:
            return None
        return sum(self.scores.values()) / len(self.scores)


class WeightEvent(BaseModel):
    """A body weight measurement; one per day."""

    model_config = ConfigDict(frozen=True)

    kg: float = Field(gt=0, le=MAX_WEIGHT_KG)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)


EventT = TypeVar("EventT", bound=BaseModel)


def parse_event(model: type[EventT], payload: Mapping[str, object]) -> EventT:
    """Validate a raw payload, raising EventValidationError on bad input."""
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        fields = sorted(
            {".".join(str(part) for part in error["loc"]) for error in exc.errors()}
        )
        raise EventValidationError(
            f"Invalid {model.__name__}: {', '.join(fields)}", fields=fields
        ) from exc
