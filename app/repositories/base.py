"""
Generic entity repository over one collection of the record store.

Subclasses declare the collection, the domain model and how new records are
built and how partial updates are applied. Soft delete (archive) and
timestamp/version bookkeeping live here.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, ClassVar, Generic, TypeVar

from app.db.json_store import JsonRecordStore, StoreDocument
from app.infrastructure.observability.logging import get_logger
from app.models.domain.crm_domain import CRMRecord
from app.models.domain.errors import ConflictError, NotFoundError

logger = get_logger(__name__)

EntityT = TypeVar("EntityT", bound=CRMRecord)

Clock = Callable[[], datetime]

# Server-managed fields a partial update may never touch
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "archived_at", "version"})


def utc_now() -> datetime:
    return datetime.now(UTC)


class EntityRepository(Generic[EntityT]):
    collection: ClassVar[str]
    model: ClassVar[type[CRMRecord]]
    label: ClassVar[str]

    def __init__(self, store: JsonRecordStore, clock: Clock | None = None):
        self.store = store
        self.clock = clock or utc_now

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def _build(self, fields: dict[str, Any], document: StoreDocument) -> dict[str, Any]:
        """Return the non-managed attributes of a new record, defaults applied."""
        raise NotImplementedError

    def _merge(
        self, current: EntityT, changes: dict[str, Any], document: StoreDocument
    ) -> dict[str, Any]:
        """Return the attribute values to overwrite on an existing record."""
        return dict(changes)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list(self, include_archived: bool = False) -> list[EntityT]:
        records = self.store.snapshot().collection(self.collection)
        entities = [self.model.model_validate(record) for record in records]
        if include_archived:
            return entities
        return [entity for entity in entities if not entity.archived]

    def get(self, entity_id: str) -> EntityT:
        records = self.store.snapshot().collection(self.collection)
        index = self._find_index(records, entity_id)
        return self.model.model_validate(records[index])

    def create(self, fields: dict[str, Any]) -> EntityT:
        now = self.clock()
        with self.store.transaction() as document:
            attributes = self._build(fields, document)
            entity = self.model(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                archived=False,
                archived_at=None,
                version=1,
                **attributes,
            )
            document.collection(self.collection).append(entity.to_record())

        logger.info(f"{self.label} created", entity=self.collection, entity_id=entity.id)
        return entity

    def update(
        self, entity_id: str, changes: dict[str, Any], expected_version: int | None = None
    ) -> EntityT:
        now = self.clock()
        with self.store.transaction() as document:
            records = document.collection(self.collection)
            index = self._find_index(records, entity_id)
            current = self.model.model_validate(records[index])
            self._check_version(current, expected_version)

            settable = {
                k: v
                for k, v in changes.items()
                if k not in PROTECTED_FIELDS and not (k == "archived" and v is None)
            }
            overrides = self._null_to_default(self._merge(current, settable, document))

            if "archived" in overrides:
                # archived=true re-stamps like archive() does
                overrides["archived_at"] = now if overrides["archived"] else None

            overrides.update(updated_at=now, version=current.version + 1)
            entity = self._apply(current, overrides)
            records[index] = entity.to_record()

        logger.info(
            f"{self.label} updated",
            entity=self.collection,
            entity_id=entity_id,
            fields=sorted(settable.keys()),
            version=entity.version,
        )
        return entity

    def archive(self, entity_id: str) -> EntityT:
        now = self.clock()
        with self.store.transaction() as document:
            records = document.collection(self.collection)
            index = self._find_index(records, entity_id)
            current = self.model.model_validate(records[index])
            entity = self._apply(
                current,
                {
                    "archived": True,
                    "archived_at": now,
                    "updated_at": now,
                    "version": current.version + 1,
                },
            )
            records[index] = entity.to_record()

        logger.info(f"{self.label} archived", entity=self.collection, entity_id=entity_id)
        return entity

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find_index(self, records: list[dict[str, Any]], entity_id: str) -> int:
        for index, record in enumerate(records):
            if record.get("id") == entity_id:
                return index
        raise NotFoundError(f"{self.label} not found")

    def _check_version(self, current: EntityT, expected_version: int | None) -> None:
        if expected_version is not None and expected_version != current.version:
            logger.warning(
                "Stale write rejected",
                entity=self.collection,
                entity_id=current.id,
                expected_version=expected_version,
                current_version=current.version,
            )
            raise ConflictError(
                f"{self.label} was modified by another request",
                details={"currentVersion": current.version},
            )

    def _null_to_default(self, overrides: dict[str, Any]) -> dict[str, Any]:
        """An explicit null on a non-nullable field resets it to the field default."""
        fields = self.model.model_fields
        for name, value in overrides.items():
            if value is None and name in fields:
                overrides[name] = fields[name].get_default(call_default_factory=True)
        return overrides

    def _apply(self, current: EntityT, overrides: dict[str, Any]) -> EntityT:
        # Re-validate so coercion and field constraints run on the merged record
        merged = current.model_dump()
        merged.update(overrides)
        return self.model.model_validate(merged)
