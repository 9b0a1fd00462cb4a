"""
Contact repository.

Email addresses are validated syntactically and must be unique among
non-archived contacts (case-insensitive).
"""

import re
from typing import Any

from app.db.json_store import StoreDocument
from app.infrastructure.observability.logging import get_logger
from app.models.domain.crm_domain import DEFAULT_CONTACT_STATUS, Contact
from app.models.domain.errors import ConflictError, ValidationError
from app.repositories.base import EntityRepository

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


class ContactRepository(EntityRepository[Contact]):
    collection = "contacts"
    model = Contact
    label = "Contact"

    def _build(self, fields: dict[str, Any], document: StoreDocument) -> dict[str, Any]:
        email = fields.get("email") or ""
        if email:
            self._ensure_email_available(email, document)

        return {
            "name": fields.get("name") or "",
            "email": email,
            "phone": fields.get("phone") or "",
            "company": fields.get("company") or "",
            "status": fields.get("status") or DEFAULT_CONTACT_STATUS,
            "notes": fields.get("notes") or "",
            "interaction_history": fields.get("interaction_history") or [],
        }

    def _merge(
        self, current: Contact, changes: dict[str, Any], document: StoreDocument
    ) -> dict[str, Any]:
        overrides = dict(changes)

        if "email" in overrides:
            email = overrides["email"] or ""
            overrides["email"] = email
            if email and email != current.email:
                self._ensure_email_available(email, document, exclude_id=current.id)

        if "interaction_history" in overrides and overrides["interaction_history"] is None:
            overrides["interaction_history"] = []

        return overrides

    def _ensure_email_available(
        self, email: str, document: StoreDocument, exclude_id: str | None = None
    ) -> None:
        if not is_valid_email(email):
            raise ValidationError("Invalid email address", details={"email": email})

        wanted = email.lower()
        for record in document.collection(self.collection):
            if record.get("archived") or record.get("id") == exclude_id:
                continue
            existing = record.get("email") or ""
            if existing.lower() == wanted:
                logger.info("Duplicate contact email rejected", existing_id=record.get("id"))
                raise ConflictError(
                    "A contact with this email already exists",
                    details={"email": email, "contactId": record.get("id")},
                )
