"""
Entity repositories over the JSON record store.

Each repository owns one collection and is handed the store (and, in
tests, a fixed clock) by the FastAPI dependencies below.
"""

from fastapi import Depends

from app.db.json_store import JsonRecordStore, get_record_store
from app.repositories.contact_repository import ContactRepository
from app.repositories.opportunity_repository import OpportunityRepository
from app.repositories.task_repository import TaskRepository


def get_contact_repository(
    store: JsonRecordStore = Depends(get_record_store),
) -> ContactRepository:
    return ContactRepository(store)


def get_opportunity_repository(
    store: JsonRecordStore = Depends(get_record_store),
) -> OpportunityRepository:
    return OpportunityRepository(store)


def get_task_repository(store: JsonRecordStore = Depends(get_record_store)) -> TaskRepository:
    return TaskRepository(store)


__all__ = [
    "ContactRepository",
    "OpportunityRepository",
    "TaskRepository",
    "get_contact_repository",
    "get_opportunity_repository",
    "get_task_repository",
]
