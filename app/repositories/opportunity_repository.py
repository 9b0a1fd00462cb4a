"""
Opportunity repository.

Numeric inputs are coerced leniently: a non-numeric value or probability
keeps the previous number (0 on create). Probability is always clamped to
0..100 and stage must be one of the pipeline stages.
"""

from datetime import date
from typing import Any

from app.db.json_store import StoreDocument
from app.models.domain.crm_domain import (
    DEFAULT_STAGE,
    OPPORTUNITY_STAGES,
    Opportunity,
    clamp_probability,
    coerce_number,
)
from app.models.domain.errors import ValidationError
from app.repositories.base import EntityRepository


def _validate_stage(stage: str) -> str:
    if stage not in OPPORTUNITY_STAGES:
        raise ValidationError(
            f"Invalid stage '{stage}'",
            details={"allowed": list(OPPORTUNITY_STAGES)},
        )
    return stage


def _validate_value(value: float) -> float:
    if value < 0:
        raise ValidationError("Opportunity value must be non-negative", details={"value": value})
    return value


def _iso_date(raw: Any) -> str | None:
    if isinstance(raw, date):
        return raw.isoformat()
    return raw or None


class OpportunityRepository(EntityRepository[Opportunity]):
    collection = "opportunities"
    model = Opportunity
    label = "Opportunity"

    def _build(self, fields: dict[str, Any], document: StoreDocument) -> dict[str, Any]:
        return {
            "contact_id": fields.get("contact_id") or None,
            "title": fields.get("title") or "",
            "value": _validate_value(coerce_number(fields.get("value"), 0)),
            "probability": clamp_probability(coerce_number(fields.get("probability"), 0)),
            "estimated_close_date": _iso_date(fields.get("estimated_close_date")),
            "description": fields.get("description") or "",
            "stage": _validate_stage(fields.get("stage") or DEFAULT_STAGE),
        }

    def _merge(
        self, current: Opportunity, changes: dict[str, Any], document: StoreDocument
    ) -> dict[str, Any]:
        overrides = dict(changes)

        if "value" in overrides:
            overrides["value"] = _validate_value(coerce_number(overrides["value"], current.value))
        if "probability" in overrides:
            overrides["probability"] = clamp_probability(
                coerce_number(overrides["probability"], current.probability)
            )
        if "stage" in overrides:
            overrides["stage"] = _validate_stage(overrides["stage"] or DEFAULT_STAGE)
        if "estimated_close_date" in overrides:
            overrides["estimated_close_date"] = _iso_date(overrides["estimated_close_date"])
        if "contact_id" in overrides:
            overrides["contact_id"] = overrides["contact_id"] or None

        return overrides
