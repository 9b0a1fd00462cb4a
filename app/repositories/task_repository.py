"""Task repository."""

from datetime import date
from typing import Any

from app.db.json_store import StoreDocument
from app.models.domain.crm_domain import DEFAULT_TASK_ASSIGNEE, DEFAULT_TASK_STATUS, Task
from app.repositories.base import EntityRepository


class TaskRepository(EntityRepository[Task]):
    collection = "tasks"
    model = Task
    label = "Task"

    def _build(self, fields: dict[str, Any], document: StoreDocument) -> dict[str, Any]:
        due_date = fields.get("due_date")
        return {
            "title": fields.get("title") or "",
            "due_date": due_date.isoformat() if isinstance(due_date, date) else due_date or None,
            "status": fields.get("status") or DEFAULT_TASK_STATUS,
            "assigned_to": fields.get("assigned_to") or DEFAULT_TASK_ASSIGNEE,
            # linkedId is an advisory pointer, existence is not checked
            "linked_type": fields.get("linked_type") or None,
            "linked_id": fields.get("linked_id") or None,
            "notes": fields.get("notes") or "",
        }

    def _merge(
        self, current: Task, changes: dict[str, Any], document: StoreDocument
    ) -> dict[str, Any]:
        overrides = dict(changes)
        if isinstance(overrides.get("due_date"), date):
            overrides["due_date"] = overrides["due_date"].isoformat()
        if "status" in overrides:
            overrides["status"] = overrides["status"] or DEFAULT_TASK_STATUS
        return overrides
