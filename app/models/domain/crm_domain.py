"""
Domain models for CRM records.

Records are persisted as camelCase JSON objects. Keys the models do not know
about (legacy data) are kept so a read-modify-write never drops them.
"""

import math
from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

OPPORTUNITY_STAGES: tuple[str, ...] = (
    "Prospecto",
    "Calificado",
    "Propuesta",
    "Negociacion",
    "Cerrado/Ganado",
    "Cerrado/Perdido",
)
DEFAULT_STAGE = OPPORTUNITY_STAGES[0]
LOST_STAGE = "Cerrado/Perdido"

DEFAULT_CONTACT_STATUS = "Prospect"
DEFAULT_TASK_STATUS = "pending"
DEFAULT_TASK_ASSIGNEE = "Me"

LinkedType = Literal["contact", "opportunity"]


class CRMRecord(BaseModel):
    """Fields shared by every stored entity."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    archived: bool = False
    archived_at: datetime | None = None
    version: int = 1

    @field_validator("*", mode="before")
    @classmethod
    def _lenient_legacy_value(cls, raw: Any, info: ValidationInfo) -> Any:
        # Merge-updates in older documents could store null or numbers for any key
        field = cls.model_fields[info.field_name]
        if raw is None and not field.is_required():
            return field.get_default(call_default_factory=True)
        if field.annotation is str and isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return str(raw)
        return raw

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted (and wire) camelCase representation."""
        return self.model_dump(mode="json", by_alias=True)


class Contact(CRMRecord):
    name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""
    status: str = DEFAULT_CONTACT_STATUS
    notes: str = ""
    interaction_history: list[Any] = Field(default_factory=list)


def coerce_number(raw: Any, fallback: float) -> float:
    """Coerce a loosely typed numeric input, returning fallback when it is not a finite number."""
    if isinstance(raw, bool) or raw is None:
        return fallback
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str) and raw.strip():
        try:
            number = float(raw.strip())
        except ValueError:
            return fallback
    else:
        return fallback
    if math.isnan(number) or math.isinf(number):
        return fallback
    return number


def clamp_probability(raw: float) -> int:
    return int(min(100, max(0, round(raw))))


class Opportunity(CRMRecord):
    contact_id: str | None = None
    title: str = ""
    value: float = 0
    probability: int = 0
    estimated_close_date: str | None = None
    description: str = ""
    stage: str = DEFAULT_STAGE

    @field_validator("value", mode="before")
    @classmethod
    def _lenient_value(cls, raw: Any) -> float:
        # Older documents were written by a permissive merge-update.
        return coerce_number(raw, 0)

    @field_validator("probability", mode="before")
    @classmethod
    def _lenient_probability(cls, raw: Any) -> int:
        return clamp_probability(coerce_number(raw, 0))


class Task(CRMRecord):
    title: str = ""
    due_date: str | None = None
    status: str = DEFAULT_TASK_STATUS
    assigned_to: str = DEFAULT_TASK_ASSIGNEE
    linked_type: LinkedType | None = None
    linked_id: str | None = None
    notes: str = ""

    @field_validator("linked_type", mode="before")
    @classmethod
    def _known_linked_type(cls, raw: Any) -> Any:
        return raw if raw in get_args(LinkedType) else None

    @field_validator("linked_id", mode="before")
    @classmethod
    def _blank_as_none(cls, raw: Any) -> Any:
        return raw or None


class ContactsSeries(BaseModel):
    """Weekly new-contact counts, oldest bucket first."""

    labels: list[str]
    data: list[int]


class MetricsSnapshot(BaseModel):
    """Dashboard rollup over active records."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    new_contacts: int
    total_pipeline_value: float
    by_stage: dict[str, int]
    contacts_series: ContactsSeries
    tasks_status: dict[str, int]
