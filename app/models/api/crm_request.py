# app/models/api/crm_request.py
"""
CRM API request models.
Used by routes for input validation. Update models list exactly the fields a
client may change; anything else (id, createdAt, ...) is rejected.
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from app.models.domain.crm_domain import LinkedType

_BLANK_AS_NONE = frozenset(
    {"estimated_close_date", "due_date", "linked_type", "linked_id", "contact_id"}
)


class CRMRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_optional_as_none(cls, raw: Any, info: ValidationInfo) -> Any:
        # HTML forms post "" for untouched date/select inputs
        if raw == "" and info.field_name in _BLANK_AS_NONE:
            return None
        return raw

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True, exclude={"version"})


class VersionedUpdate(CRMRequest):
    version: int | None = Field(
        default=None, ge=1, description="Expected current version (optimistic concurrency)"
    )


# ---------- Contacts ----------


class ContactCreateRequest(CRMRequest):
    """Request for creating a contact."""

    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=200)
    status: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    interaction_history: list[Any] | None = None


class ContactUpdateRequest(VersionedUpdate):
    """Partial update of a contact."""

    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=200)
    status: str | None = Field(default=None, max_length=50)
    notes: str | None = None
    interaction_history: list[Any] | None = None
    archived: bool | None = None


# ---------- Opportunities ----------


class OpportunityCreateRequest(CRMRequest):
    """Request for creating an opportunity. Numbers are coerced by the repository."""

    contact_id: str | None = None
    title: str | None = Field(default=None, max_length=200)
    value: Any = None
    probability: Any = None
    estimated_close_date: date | None = None
    description: str | None = None
    stage: str | None = None


class OpportunityUpdateRequest(VersionedUpdate):
    """Partial update of an opportunity."""

    contact_id: str | None = None
    title: str | None = Field(default=None, max_length=200)
    value: Any = None
    probability: Any = None
    estimated_close_date: date | None = None
    description: str | None = None
    stage: str | None = None
    archived: bool | None = None


# ---------- Tasks ----------


class TaskCreateRequest(CRMRequest):
    """Request for creating a task."""

    title: str | None = Field(default=None, max_length=200)
    due_date: date | None = None
    status: str | None = Field(default=None, max_length=50)
    assigned_to: str | None = Field(default=None, max_length=100)
    linked_type: LinkedType | None = None
    linked_id: str | None = None
    notes: str | None = None


class TaskUpdateRequest(VersionedUpdate):
    """Partial update of a task."""

    title: str | None = Field(default=None, max_length=200)
    due_date: date | None = None
    status: str | None = Field(default=None, max_length=50)
    assigned_to: str | None = Field(default=None, max_length=100)
    linked_type: LinkedType | None = None
    linked_id: str | None = None
    notes: str | None = None
    archived: bool | None = None


# ---------- AI ----------


class SummarizeRequest(CRMRequest):
    notes: str = Field(default="", description="Interaction notes to summarize")


class PredictRequest(CRMRequest):
    description: str = Field(default="", description="Opportunity description")
    value: float = Field(default=0, description="Opportunity value")


class AdviseRequest(CRMRequest):
    contact: dict[str, Any] | None = Field(default=None, description="Contact profile")
    opportunity_description: str = Field(default="", description="Extra sales context")
